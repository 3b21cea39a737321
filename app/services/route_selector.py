import asyncio
from functools import reduce
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from structlog import get_logger

from app.config import settings
from app.core.errors import GeocodeFailure, InvalidInput, NoRouteFound, RoutingFailure
from app.schemas.route import Location, RouteCandidate, RouteResult
from app.services.providers import Geocoder, Router

logger = get_logger()


def select_best_index(candidates: Sequence[RouteCandidate]) -> int:
    """
    Index of the fastest candidate. A single left fold with a strict comparison,
    so the first candidate wins when durations are equal. Distance is ignored.
    """
    if not candidates:
        raise NoRouteFound()
    return reduce(
        lambda best, i: i if candidates[i].duration < candidates[best].duration else best,
        range(1, len(candidates)),
        0,
    )


def _require(value: Optional[str], field: str) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise InvalidInput(field)
    return value.strip()


def _to_candidates(routes: List[Dict[str, Any]]) -> List[RouteCandidate]:
    try:
        return [
            RouteCandidate(duration=r["duration"], distance=r["distance"], geometry=r.get("geometry"))
            for r in routes
        ]
    except (KeyError, TypeError, AttributeError, ValidationError):
        raise RoutingFailure("malformed route candidate")


class RouteSelector:
    """
    Turns two place descriptions into a RouteResult.

    Holds only its collaborators, so one instance can serve any number of
    concurrent resolutions. Failures surface as RouteLookupError subclasses;
    nothing is retried here.
    """

    def __init__(self, geocoder: Geocoder, router: Router, timeout: Optional[float] = None):
        self.geocoder = geocoder
        self.router = router
        self.timeout = settings.STAGE_TIMEOUT if timeout is None else timeout

    async def resolve_route(self, origin_text: Optional[str], destination_text: Optional[str]) -> RouteResult:
        origin_text = _require(origin_text, "from")
        destination_text = _require(destination_text, "to")

        # Both lookups run together; a failed origin is reported first and cancels the other
        origin_task = asyncio.ensure_future(self._geocode(origin_text))
        destination_task = asyncio.ensure_future(self._geocode(destination_text))
        try:
            origin = await origin_task
        except BaseException:
            if not destination_task.done():
                destination_task.cancel()
            elif not destination_task.cancelled():
                # retrieve it so asyncio does not warn about an unobserved failure
                destination_task.exception()
            raise
        destination = await destination_task

        candidates = await self._route(origin, destination)
        best_index = select_best_index(candidates)
        logger.info(
            "Route resolved",
            origin=origin.display_name,
            destination=destination.display_name,
            candidate_count=len(candidates),
            best_index=best_index,
        )
        return RouteResult(
            origin=origin,
            destination=destination,
            candidates=tuple(candidates),
            best_index=best_index,
        )

    async def _geocode(self, text: str) -> Location:
        try:
            location = await asyncio.wait_for(self.geocoder.geocode(text), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Geocode timed out", query=text, timeout=self.timeout)
            raise GeocodeFailure(text, reason="timed out", upstream=True)
        if location is None:
            raise GeocodeFailure(text)
        return location

    async def _route(self, origin: Location, destination: Location) -> List[RouteCandidate]:
        try:
            reply = await asyncio.wait_for(self.router.route(origin, destination), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Routing timed out", timeout=self.timeout)
            raise RoutingFailure("timed out")

        if not reply.ok or reply.routes is None:
            raise RoutingFailure(reply.message or reply.code)
        if not isinstance(reply.routes, list):
            raise RoutingFailure("malformed response")
        if len(reply.routes) == 0:
            raise NoRouteFound()
        return _to_candidates(reply.routes)
