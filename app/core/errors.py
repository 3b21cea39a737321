from typing import Optional


class RouteLookupError(Exception):
    """Base for every recoverable route lookup failure."""

    status_code = 500
    stage = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "stage": self.stage}


class InvalidInput(RouteLookupError):
    status_code = 400
    stage = "input"

    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field


class GeocodeFailure(RouteLookupError):
    """No match for a query (404), or the geocoder itself failed (502, ``upstream``)."""

    status_code = 404
    stage = "geocode"

    def __init__(self, query: str, reason: Optional[str] = None, upstream: bool = False):
        message = f"Geocode failed for: {query}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.query = query
        self.reason = reason
        self.upstream = upstream
        if upstream:
            self.status_code = 502

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["query"] = self.query
        return data


class RoutingFailure(RouteLookupError):
    status_code = 502
    stage = "route"

    def __init__(self, provider_message: Optional[str] = None):
        super().__init__(f"Routing failed: {provider_message or 'unknown error'}")
        self.provider_message = provider_message


class NoRouteFound(RouteLookupError):
    status_code = 404
    stage = "route"

    def __init__(self):
        super().__init__("No routes found")
