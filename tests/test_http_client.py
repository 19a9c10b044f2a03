import asyncio
import random
import time

import pytest

from csfd_scraper.errors import HttpError
from csfd_scraper.errors import NetworkError
from csfd_scraper.errors import NotFoundError
from csfd_scraper.errors import RateLimitedError
from csfd_scraper.scraper import HttpClient
from csfd_scraper.scraper import RateLimiter
from csfd_scraper.scraper import backoff_delay


class FakeClock:
    """Monotonic clock advanced only by the limiter's own sleeps."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


# --- RateLimiter ---

def test_rate_limiter_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(0)
    with pytest.raises(ValueError):
        RateLimiter(-1.0)


@pytest.mark.asyncio
async def test_rate_limiter_first_acquire_does_not_wait():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    await limiter.acquire()
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_rate_limiter_spaces_consecutive_acquires():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    released = []
    for _ in range(4):
        await limiter.acquire()
        released.append(clock.now)

    gaps = [b - a for a, b in zip(released, released[1:])]
    assert all(gap >= limiter.min_interval for gap in gaps)
    assert clock.sleeps == pytest.approx([0.5, 0.5, 0.5])


@pytest.mark.asyncio
async def test_rate_limiter_does_not_wait_after_idle_period():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    await limiter.acquire()
    clock.now += 10.0
    await limiter.acquire()
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_rate_limiter_waits_only_the_remainder():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    await limiter.acquire()
    clock.now += 0.2
    await limiter.acquire()
    assert clock.sleeps == pytest.approx([0.3])


@pytest.mark.asyncio
async def test_rate_limiter_serializes_concurrent_callers():
    limiter = RateLimiter(20.0)
    released = []

    async def worker():
        await limiter.acquire()
        released.append(time.monotonic())

    await asyncio.gather(*(worker() for _ in range(4)))

    released.sort()
    gaps = [b - a for a, b in zip(released, released[1:])]
    assert all(gap >= limiter.min_interval - 0.005 for gap in gaps)


# --- backoff ---

def test_backoff_doubles_from_base():
    assert backoff_delay(0, base=1.0) == 1.0
    assert backoff_delay(1, base=1.0) == 2.0
    assert backoff_delay(2, base=1.0) == 4.0
    assert backoff_delay(3, base=0.5) == 4.0


def test_backoff_is_capped():
    assert backoff_delay(10, base=1.0, maximum=60.0) == 60.0
    assert backoff_delay(10, base=1.0, maximum=60.0, jitter=0.5) == 60.0


def test_backoff_with_jitter_never_decreases():
    rng = random.Random(1234)
    delays = [backoff_delay(n, base=1.0, maximum=1000.0, jitter=0.9, rng=rng) for n in range(10)]

    assert delays == sorted(delays)
    for attempt, delay in enumerate(delays):
        exponential = 2 ** attempt
        assert exponential <= delay <= exponential * 1.9


def test_client_backoff_uses_settings(make_settings):
    client = HttpClient(settings=make_settings("http://localhost", backoff_base=0.25, backoff_max=0.6))
    assert [client.backoff_delay(n) for n in range(4)] == [0.25, 0.5, 0.6, 0.6]


# --- URL building ---

def test_build_url_joins_relative_paths(make_settings):
    client = HttpClient(settings=make_settings("https://www.csfd.cz/"))

    assert client.base_url == "https://www.csfd.cz"
    assert client.build_url("/film/234260/prehled/") == "https://www.csfd.cz/film/234260/prehled/"
    assert client.build_url("hledat/?q=dr%20house") == "https://www.csfd.cz/hledat/?q=dr%20house"


# --- fetch ---

@pytest.mark.asyncio
async def test_fetch_returns_body_and_sends_headers(csfd, client, retry_sleep):
    csfd.script("/film/1/prehled/", (200, "<h1>Ahoj</h1>"))

    html = await client.fetch("/film/1/prehled/")

    assert html == "<h1>Ahoj</h1>"
    headers = csfd.requests[0]["headers"]
    assert headers["User-Agent"] == client.settings.user_agent
    assert headers["Accept-Language"].startswith("cs-CZ")
    assert retry_sleep.delays == []


@pytest.mark.asyncio
async def test_fetch_recovers_after_server_errors(csfd, client, retry_sleep):
    csfd.script("/film/1/prehled/", (503, "down"), (500, "down"), (200, "ok"))

    assert await client.fetch("/film/1/prehled/") == "ok"
    assert csfd.hits("/film/1/prehled/") == 3
    assert retry_sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_fetch_gives_up_after_max_retries(csfd, client, retry_sleep):
    csfd.script("/film/1/prehled/", (500, "down"))

    with pytest.raises(HttpError) as exc_info:
        await client.fetch("/film/1/prehled/")

    assert exc_info.value.status == 500
    assert exc_info.value.is_server_error
    assert csfd.hits("/film/1/prehled/") == client.settings.max_retries + 1
    # no sleep after the final attempt
    assert len(retry_sleep.delays) == client.settings.max_retries
    assert retry_sleep.delays == sorted(retry_sleep.delays)


@pytest.mark.asyncio
async def test_fetch_rate_limited_is_retried_then_reported(csfd, client):
    csfd.script("/hledat/", (429, "slow down"))

    with pytest.raises(RateLimitedError) as exc_info:
        await client.fetch("/hledat/?q=test")

    assert str(exc_info.value) == "Rate limited - too many requests"
    assert exc_info.value.status == 429
    assert csfd.hits("/hledat/") == 3


@pytest.mark.asyncio
async def test_fetch_not_found_is_not_retried(csfd, client, retry_sleep):
    with pytest.raises(NotFoundError):
        await client.fetch("/film/999999/prehled/")

    assert csfd.hits("/film/999999/prehled/") == 1
    assert retry_sleep.delays == []


@pytest.mark.asyncio
async def test_fetch_client_error_is_fatal(csfd, client, retry_sleep):
    csfd.script("/film/1/prehled/", (403, "forbidden"))

    with pytest.raises(HttpError) as exc_info:
        await client.fetch("/film/1/prehled/")

    assert exc_info.value.status == 403
    assert not exc_info.value.is_server_error
    assert csfd.hits("/film/1/prehled/") == 1
    assert retry_sleep.delays == []


@pytest.mark.asyncio
async def test_fetch_timeout_becomes_network_error(csfd, make_settings, retry_sleep):
    csfd.script("/film/1/prehled/", (200, "hang"))

    async with HttpClient(settings=make_settings(csfd.base_url, max_retries=1), sleep=retry_sleep) as client:
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch("/film/1/prehled/")

    assert exc_info.value.kind == "network"
    assert csfd.hits("/film/1/prehled/") == 2
    assert retry_sleep.delays == [0.5]


@pytest.mark.asyncio
async def test_fetch_connection_refused_becomes_network_error(make_settings, retry_sleep):
    # A port nothing listens on
    async with HttpClient(settings=make_settings("http://127.0.0.1:1", max_retries=1), sleep=retry_sleep) as client:
        with pytest.raises(NetworkError):
            await client.fetch("/film/1/prehled/")

    assert retry_sleep.delays == [0.5]


@pytest.mark.asyncio
async def test_fetch_respects_rate_limit_between_requests(csfd, client):
    csfd.script("/film/1/prehled/", (200, "ok"))

    for _ in range(3):
        await client.fetch("/film/1/prehled/")

    stamps = [r["at"] for r in csfd.requests]
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(gap >= client.rate_limiter.min_interval - 0.01 for gap in gaps)


@pytest.mark.asyncio
async def test_close_leaves_borrowed_session_open(csfd, make_settings):
    import aiohttp

    async with aiohttp.ClientSession() as session:
        client = HttpClient(settings=make_settings(csfd.base_url), session=session)
        await client.close()
        assert not session.closed
