from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from structlog import get_logger

from app.core.errors import RouteLookupError
from app.dependencies.routing import get_route_selector, route_rate_limiter
from app.schemas.route import RouteResult
from app.services.route_selector import RouteSelector

logger = get_logger()
router = APIRouter(tags=["route"])

REQUEST_EXAMPLE = {"from": "Point A", "to": "Point B"}


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


async def _read_places(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull `from` and `to` out of a JSON or form body. Anything unreadable counts
    as missing, so the selector reports it as InvalidInput.
    """
    body: Dict[str, Any] = {}
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        body = dict(form)
    else:
        raw = await request.body()
        if raw:
            try:
                parsed = await request.json()
            except ValueError:
                logger.info("Route request body is not JSON", content_type=content_type)
                parsed = None
            if isinstance(parsed, dict):
                body = parsed
    return _as_text(body.get("from")), _as_text(body.get("to"))


@router.post(
    "/route",
    response_model=RouteResult,
    dependencies=[Depends(route_rate_limiter)],
    openapi_extra={"requestBody": {"content": {"application/json": {"example": REQUEST_EXAMPLE}}}},
)
@router.post(
    "/api/v1/route",
    response_model=RouteResult,
    dependencies=[Depends(route_rate_limiter)],
    openapi_extra={"requestBody": {"content": {"application/json": {"example": REQUEST_EXAMPLE}}}},
)
async def find_route(request: Request, selector: RouteSelector = Depends(get_route_selector)):
    origin, destination = await _read_places(request)
    logger.info("Received route request", origin=origin, destination=destination)
    try:
        return await selector.resolve_route(origin, destination)
    except RouteLookupError as e:
        logger.warning("Route lookup failed", stage=e.stage, error=e.message, status_code=e.status_code)
        raise
    except Exception as e:
        logger.error("Route error", origin=origin, destination=destination, error=str(e), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Routing error"},
        )
