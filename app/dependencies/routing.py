from fastapi_limiter.depends import RateLimiter
from redis.asyncio import Redis

from app.config import settings
from app.services.nominatim import NominatimGeocoder
from app.services.osrm import OSRMRouter
from app.services.route_selector import RouteSelector

# Shared instance so tests can override it through app.dependency_overrides
route_rate_limiter = RateLimiter(times=settings.ROUTE_RATE_LIMIT, seconds=60)


def get_route_selector() -> RouteSelector:
    cache = None
    if settings.GEOCODE_CACHE_TTL > 0:
        cache = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
    return RouteSelector(NominatimGeocoder(cache=cache), OSRMRouter())
