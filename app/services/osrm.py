from typing import Optional

import httpx
from structlog import get_logger

from app.config import settings
from app.core.errors import RoutingFailure
from app.schemas.route import Location
from app.services.providers import HttpAdapter, Router, RouterReply

logger = get_logger()


def _coords_param(origin: Location, destination: Location) -> str:
    # OSRM wants lon,lat;lon,lat
    return f"{origin.lon},{origin.lat};{destination.lon},{destination.lat}"


class OSRMRouter(HttpAdapter, Router):
    def __init__(self, base_url: Optional[str] = None, profile: Optional[str] = None, **kwargs):
        super().__init__(base_url or settings.OSRM_URL, **kwargs)
        self.profile = profile or settings.OSRM_PROFILE

    async def route(self, origin: Location, destination: Location) -> RouterReply:
        """
        Call the OSRM /route service with alternatives and full GeoJSON geometry.
        OSRM reports failures such as NoRoute as 4xx responses with a JSON body,
        so the body is read before the HTTP status is considered.
        """
        path = f"/route/v1/{self.profile}/{_coords_param(origin, destination)}"
        try:
            response = await self._get(
                path,
                params={"alternatives": "true", "overview": "full", "geometries": "geojson"},
            )
        except httpx.HTTPError as e:
            logger.error("OSRM request failed", path=path, error=str(e), error_type=type(e).__name__)
            raise RoutingFailure(str(e) or type(e).__name__)

        try:
            data = response.json()
        except ValueError:
            logger.error("OSRM returned a non-JSON body", status=response.status_code, text=response.text[:200])
            raise RoutingFailure(f"HTTP {response.status_code}" if response.is_error else "malformed response")

        if not isinstance(data, dict):
            raise RoutingFailure("malformed response")
        if response.is_error and "code" not in data:
            raise RoutingFailure(f"HTTP {response.status_code}")

        if data.get("routes") is not None and not isinstance(data["routes"], list):
            logger.error("OSRM routes field is not a list", routes_type=type(data["routes"]).__name__)
            raise RoutingFailure("malformed response")

        reply = RouterReply(code=data.get("code"), routes=data.get("routes"), message=data.get("message"))
        logger.info("OSRM reply", code=reply.code, route_count=len(reply.routes or []))
        return reply
