from typing import Any, Tuple
from pydantic import BaseModel, Field, confloat, model_validator


class Location(BaseModel):
    lat: confloat(ge=-90, le=90)
    lon: confloat(ge=-180, le=180)
    display_name: str = ""

    class Config:
        frozen = True


class RouteCandidate(BaseModel):
    duration: float = Field(..., description="Travel time in seconds")
    distance: float = Field(..., description="Length in meters")
    # Provider geometry (GeoJSON LineString from OSRM), forwarded untouched
    geometry: Any = None

    class Config:
        frozen = True


class RouteResult(BaseModel):
    origin: Location
    destination: Location
    candidates: Tuple[RouteCandidate, ...] = Field(..., alias="routes")
    best_index: int = Field(..., alias="bestRouteIndex")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "origin": {"lat": 1.0, "lon": 2.0, "display_name": "Point A"},
                "destination": {"lat": 3.0, "lon": 4.0, "display_name": "Point B"},
                "routes": [
                    {"duration": 120.0, "distance": 1500.0, "geometry": None},
                    {"duration": 95.0, "distance": 1800.0, "geometry": None},
                ],
                "bestRouteIndex": 1,
            }
        }

    @model_validator(mode="after")
    def _check_best_index(self):
        if not self.candidates:
            raise ValueError("a route result needs at least one candidate")
        if not 0 <= self.best_index < len(self.candidates):
            raise ValueError("bestRouteIndex out of range")
        return self

    @property
    def best(self) -> RouteCandidate:
        return self.candidates[self.best_index]
