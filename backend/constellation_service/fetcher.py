"""Bounded HTTP fetcher — GET with a hard per-attempt timeout and retry/backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from constellation_service.config import USER_AGENT

logger = logging.getLogger(__name__)


class CatalogueError(Exception):
    """Base class for harvest failures."""


class UpstreamUnavailable(CatalogueError):
    """Every attempt to fetch ``url`` failed."""

    def __init__(self, url: str, attempts: int, reason: str = ""):
        self.url = url
        self.attempts = attempts
        self.reason = reason
        message = f"{url} unavailable after {attempts} attempt(s)"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BoundedFetcher:
    """Async page fetcher shared by every harvest.

    Non-2xx responses, timeouts and transport errors all count as a failed
    attempt. Attempt ``n`` (1-based) is followed by a ``backoff_s * n`` pause.
    """

    def __init__(
        self,
        timeout_s: float = 15.0,
        retries: int = 3,
        backoff_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.timeout_s = timeout_s
        self.retries = max(1, retries)
        self.backoff_s = max(0.0, backoff_s)
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_s,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        """Return the body of ``url`` or raise UpstreamUnavailable."""
        client = self._get_client()
        last_error = ""
        for attempt in range(1, self.retries + 1):
            try:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.text
            except (httpx.InvalidURL, UnicodeError) as exc:
                # malformed URL, retrying cannot help
                logger.warning("Rejected URL %r (%s)", url, exc)
                raise UpstreamUnavailable(url, attempt, f"invalid URL: {exc}") from exc
            except httpx.HTTPStatusError as exc:
                last_error = f"HTTP {exc.response.status_code}"
            except httpx.TimeoutException:
                last_error = f"timed out after {self.timeout_s:g}s"
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"

            logger.warning("Attempt %d/%d failed for %s (%s)", attempt, self.retries, url, last_error)
            if attempt < self.retries and self.backoff_s:
                await self._sleep(self.backoff_s * attempt)

        raise UpstreamUnavailable(url, self.retries, last_error)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
