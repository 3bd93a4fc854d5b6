import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import httpx

from filmfetch.core.errors import TransportError, redact_url
from filmfetch.core.rate_limit import TokenBucketLimiter
from filmfetch.core.settings import Settings

logger = logging.getLogger(__name__)


class FetchClient(Protocol):
    async def fetch(self, url: str) -> str:
        ...


class HttpFetchClient:
    """Single GET per call, one fixed-backoff retry on any transport or status failure.

    Application errors embedded in a 2xx body are returned as-is; the caller decides
    what they mean.
    """

    def __init__(
        self,
        settings: Settings,
        limiter: TokenBucketLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self._client = httpx.AsyncClient(
            timeout=settings.tmdb_timeout_seconds,
            transport=transport,
            headers={"accept": "application/json"},
        )
        self._limiter = limiter
        self._sleep = sleep
        self._retry_backoff_seconds = settings.http_retry_backoff_seconds

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_once(self, url: str) -> str:
        if self._limiter is not None:
            await self._limiter.acquire()
        try:
            response = await self._client.get(url)
        except httpx.RequestError as exc:
            # covers connection and timeout failures as well as undecodable bodies
            raise TransportError(url, exc) from exc

        if not response.is_success:
            raise TransportError(url, f"HTTP {response.status_code}", status_code=response.status_code)
        return response.text

    async def fetch(self, url: str) -> str:
        try:
            return await self._get_once(url)
        except TransportError as exc:
            logger.warning(
                "Upstream request failed, retrying once",
                extra={
                    "url": redact_url(url),
                    "cause": exc.details.get("cause"),
                    "backoff_seconds": self._retry_backoff_seconds,
                },
            )

        await self._sleep(self._retry_backoff_seconds)
        return await self._get_once(url)
