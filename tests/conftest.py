import asyncio
import time
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from csfd_scraper.scraper import CsfdScraper
from csfd_scraper.scraper import HttpClient
from csfd_scraper.settings import Settings

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeCsfd:
    """
    Scriptable stand-in for www.csfd.cz.

    Each path answers with its queued responses in order; the last one
    repeats. Unscripted paths answer 404. ``"hang"`` as a body makes the
    handler sleep past any client timeout.
    """

    def __init__(self) -> None:
        self.routes = {}
        self.requests = []
        self.base_url = ""

    def script(self, path: str, *responses) -> None:
        self.routes[path] = list(responses)

    def hits(self, path: str) -> int:
        return sum(1 for r in self.requests if r["path"] == path)

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "path": request.path,
            "query": dict(request.query),
            "headers": request.headers.copy(),
            "at": time.monotonic(),
        })
        queue = self.routes.get(request.path)
        if not queue:
            return web.Response(status=404, text="Stránka nenalezena")
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if body == "hang":
            await asyncio.sleep(1)
        return web.Response(status=status, text=body, content_type="text/html")


class RecordingSleep:
    """Replaces asyncio.sleep for retry delays; records instead of waiting."""

    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest_asyncio.fixture
async def csfd():
    """Provides a running fake ČSFD server for each test."""
    fake = FakeCsfd()
    app = web.Application()
    app.router.add_route("GET", "/{tail:.*}", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url("/"))
    yield fake
    await server.close()


@pytest.fixture
def retry_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_settings():
    """Settings pointed at the fake server with fast, deterministic retries."""
    def _make(base_url: str, **overrides) -> Settings:
        values = dict(
            base_url=base_url,
            requests_per_second=20.0,
            request_timeout=0.3,
            max_retries=2,
            backoff_base=0.5,
            backoff_max=60.0,
            backoff_jitter=0.0,
        )
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest_asyncio.fixture
async def client(csfd: FakeCsfd, make_settings, retry_sleep: RecordingSleep):
    http_client = HttpClient(settings=make_settings(csfd.base_url), sleep=retry_sleep)
    yield http_client
    await http_client.close()


@pytest_asyncio.fixture
async def scraper(client: HttpClient):
    csfd_scraper = CsfdScraper(client=client)
    yield csfd_scraper
    await csfd_scraper.close()


@pytest.fixture
def html():
    """Loader for the saved ČSFD pages under tests/fixtures."""
    return load_fixture
