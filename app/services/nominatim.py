import json
from typing import Optional

import httpx
from redis.asyncio import Redis
from redis.exceptions import RedisError
from structlog import get_logger

from app.config import settings
from app.core.errors import GeocodeFailure
from app.schemas.route import Location
from app.services.providers import Geocoder, HttpAdapter

logger = get_logger()


class NominatimGeocoder(HttpAdapter, Geocoder):
    """
    Geocoder backed by the OpenStreetMap Nominatim search API.
    Only the first match is used. Answers are cached in Redis when a cache is given.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        cache: Optional[Redis] = None,
        cache_ttl: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(base_url or settings.NOMINATIM_URL, **kwargs)
        self.user_agent = user_agent or settings.USER_AGENT
        self.cache = cache
        self.cache_ttl = settings.GEOCODE_CACHE_TTL if cache_ttl is None else cache_ttl

    async def geocode(self, query: str) -> Optional[Location]:
        cache_key = f"geocode:{query}"
        cached = await self._cache_get(cache_key)
        if cached:
            logger.info("Geocode cache hit", query=query)
            try:
                return Location(**json.loads(cached))
            except (TypeError, ValueError):
                logger.warning("Geocode cache entry corrupted; refetching", cache_key=cache_key)

        logger.info("Geocode cache miss", query=query)
        try:
            response = await self._get(
                "/search",
                params={"format": "json", "limit": 1, "q": query},
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Geocode failed", query=query, status_code=e.response.status_code, response=e.response.text[:200])
            raise GeocodeFailure(query, reason=f"HTTP {e.response.status_code}", upstream=True)
        except httpx.HTTPError as e:
            logger.error("Geocode failed", query=query, error=str(e), error_type=type(e).__name__)
            raise GeocodeFailure(query, reason=str(e) or type(e).__name__, upstream=True)
        except ValueError:
            logger.error("Geocode returned a non-JSON body", query=query)
            raise GeocodeFailure(query, reason="malformed response", upstream=True)

        if not isinstance(data, list):
            raise GeocodeFailure(query, reason="malformed response", upstream=True)
        if not data:
            logger.info("Geocode returned no results", query=query)
            return None

        first = data[0]
        try:
            location = Location(
                lat=float(first["lat"]),
                lon=float(first["lon"]),
                display_name=first.get("display_name") or query,
            )
        except (KeyError, TypeError, ValueError):
            raise GeocodeFailure(query, reason="malformed response", upstream=True)

        await self._cache_set(cache_key, location.model_dump_json())
        return location

    async def _cache_get(self, key: str) -> Optional[str]:
        if self.cache is None or self.cache_ttl <= 0:
            return None
        try:
            return await self.cache.get(key)
        except RedisError as e:
            logger.warning("Geocode cache unavailable", error=str(e))
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        if self.cache is None or self.cache_ttl <= 0:
            return
        try:
            await self.cache.setex(key, self.cache_ttl, value)
        except RedisError as e:
            logger.warning("Geocode cache write failed", error=str(e))
