"""
Rate-limited HTTP client for ČSFD.

All page fetches go through a single RateLimiter so requests are spaced at
least ``1 / requests_per_second`` apart, and transient failures (timeouts,
connection errors, HTTP 429 and 5xx) are retried with exponential backoff.
HTTP 404 and other client errors fail immediately.
"""

import asyncio
import logging
import random
import time
from typing import Callable
from typing import Optional
from urllib.parse import urljoin

import aiohttp

from csfd_scraper.errors import HttpError
from csfd_scraper.errors import NetworkError
from csfd_scraper.errors import NotFoundError
from csfd_scraper.errors import RateLimitedError
from csfd_scraper.settings import Settings
from csfd_scraper.settings import get_settings

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


class RateLimiter:
    """
    Spaces out requests to at most ``requests_per_second``.

    ``acquire`` holds a lock while waiting, so only one caller is released
    at a time and two releases are never closer than ``min_interval``.
    """

    def __init__(
        self,
        requests_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], "asyncio.Future"] = asyncio.sleep,
    ) -> None:
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be positive, got {requests_per_second}")
        self.min_interval = 1.0 / requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request may be issued."""
        async with self._lock:
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                if elapsed < self.min_interval:
                    wait_time = self.min_interval - elapsed
                    logger.debug(f"[RATE] waiting {wait_time:.3f}s")
                    await self._sleep(wait_time)
            self._last_request = self._clock()


def backoff_delay(
    attempt: int,
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: float = 0.0,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Delay before retry number ``attempt + 1``.

    Exponential: base, 2*base, 4*base, ... plus up to ``jitter`` of the
    exponential term, capped at ``maximum``. With ``jitter < 1`` the delays
    never decrease from one attempt to the next.
    """
    exponential = base * (2 ** attempt)
    if jitter:
        exponential += (rng or random).uniform(0.0, jitter * exponential)
    return min(exponential, maximum)


class HttpClient:
    """
    aiohttp-based fetcher with rate limiting and retries.

    The client owns its ClientSession unless one is passed in. Use it as an
    async context manager or call ``close()`` when done.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], "asyncio.Future"] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or RateLimiter(self.settings.requests_per_second)
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    def _build_session(self) -> aiohttp.ClientSession:
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept-Language": self.settings.accept_language,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
        return aiohttp.ClientSession(headers=headers, timeout=timeout)

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = self._build_session()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def build_url(self, path: str) -> str:
        """Resolve a site-relative path against the base URL."""
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def backoff_delay(self, attempt: int) -> float:
        return backoff_delay(
            attempt,
            base=self.settings.backoff_base,
            maximum=self.settings.backoff_max,
            jitter=self.settings.backoff_jitter,
        )

    async def fetch(self, path: str) -> str:
        """
        Fetch HTML for a ČSFD path.

        Args:
            path: Site-relative path, e.g. "/hledat/?q=test"

        Returns:
            Response body as text

        Raises:
            NotFoundError: server answered 404
            RateLimitedError: server kept answering 429
            NetworkError: timeouts or connection errors on every attempt
            HttpError: 5xx on every attempt, or any other non-success status
        """
        url = self.build_url(path)
        max_attempts = self.settings.max_retries + 1
        last_error: Optional[HttpError] = None

        for attempt in range(max_attempts):
            await self.rate_limiter.acquire()
            try:
                async with self.session.get(url, proxy=self.settings.proxy_url) as resp:
                    status = resp.status
                    if 200 <= status < 300:
                        text = await resp.text()
                        logger.info(f"[FETCH] try={attempt + 1} status={status} url={url}")
                        return text

                    logger.warning(f"[FETCH] try={attempt + 1} status={status} url={url}")
                    if status == 404:
                        raise NotFoundError(url)
                    if status != TOO_MANY_REQUESTS and not 500 <= status < 600:
                        raise HttpError(url, status=status, reason=resp.reason)

                    if status == TOO_MANY_REQUESTS:
                        last_error = RateLimitedError(url)
                    else:
                        last_error = HttpError(url, status=status, reason=resp.reason)
            except (asyncio.TimeoutError, aiohttp.ClientConnectionError, aiohttp.ClientPayloadError) as e:
                logger.warning(f"[FETCH] try={attempt + 1} error={type(e).__name__} url={url} msg={e}")
                last_error = NetworkError(url, reason=f"{type(e).__name__}: {e}" if str(e) else type(e).__name__)

            if attempt + 1 < max_attempts:
                delay = self.backoff_delay(attempt)
                logger.info(f"[RETRY] attempt={attempt + 2}/{max_attempts} in {delay:.2f}s url={url}")
                await self._sleep(delay)

        logger.error(f"[FETCH] giving up after {max_attempts} attempts url={url}")
        raise last_error
