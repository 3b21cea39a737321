# Contracts for the external geocoding and routing services, plus the shared
# HTTP plumbing (timeout, retry on transport errors, optional injected client).

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.schemas.route import Location
from app.utils.retry import retry


# Errors worth a second attempt; timeouts are not retried so a stage stays bounded
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.RemoteProtocolError, httpx.ReadError)


@dataclass(frozen=True)
class RouterReply:
    """Raw answer of a routing provider, before any validation."""

    code: Optional[str]
    routes: Optional[List[Dict[str, Any]]] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.code == "Ok"


class Geocoder(ABC):
    @abstractmethod
    async def geocode(self, query: str) -> Optional[Location]:
        """Resolve free text to the first matching Location, or None when nothing matches."""


class Router(ABC):
    @abstractmethod
    async def route(self, origin: Location, destination: Location) -> RouterReply:
        """Request alternative routes from origin to destination."""


class HttpAdapter:
    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client = client
        retries = settings.HTTP_RETRIES if retries is None else retries
        # First attempt plus `retries` more on transport errors
        self._get = retry(tries=max(0, retries) + 1, delay=0.5, backoff=2, exceptions=RETRYABLE_ERRORS)(self._send)

    async def _send(self, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.get(url, timeout=self.timeout, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, **kwargs)
