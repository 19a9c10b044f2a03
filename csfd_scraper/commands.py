"""
Desktop host command bindings.

The host application (a desktop shell running the UI) invokes named commands
with JSON arguments and receives JSON-ready results. This module keeps one
scraper per host behind a lock, maps command names to scraper calls and
turns every failure into a CommandError carrying a plain message.

The same commands are served over stdio by ``serve_stdio`` so the scraper can
run as a sidecar process: one JSON request per line in, one response per
line out.

    {"id": 1, "cmd": "search_series", "args": {"query": "Dr. House"}}
    {"id": 1, "ok": true, "data": {"items": [...], "current_page": 1, ...}}
"""

import asyncio
import inspect
import json
import logging
import re
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Dict
from typing import Optional

from csfd_scraper.errors import CsfdError
from csfd_scraper.scraper import CsfdScraper
from csfd_scraper.settings import Settings

logger = logging.getLogger(__name__)

CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class CommandError(Exception):
    """Failure reported back to the host as a string."""

    def __init__(self, message: str, kind: str = "error") -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind

    @classmethod
    def from_error(cls, error: CsfdError) -> "CommandError":
        return cls(str(error), kind=error.kind)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ScraperState:
    """
    Scraper shared by all host commands.

    Commands take the lock for the whole call, so the host never has more
    than one request outstanding against the site.
    """

    def __init__(self, scraper: Optional[CsfdScraper] = None, settings: Optional[Settings] = None) -> None:
        self.scraper = scraper or CsfdScraper(settings=settings)
        self.lock = asyncio.Lock()

    async def aclose(self) -> None:
        await self.scraper.close()

    async def __aenter__(self) -> "ScraperState":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


async def _run(state: ScraperState, call: Callable[[CsfdScraper], Awaitable[Any]]) -> Any:
    async with state.lock:
        try:
            return await call(state.scraper)
        except CsfdError as e:
            logger.warning(f"[COMMAND] failed: {e}")
            raise CommandError.from_error(e) from e


async def search_series(state: ScraperState, query: str) -> Dict[str, Any]:
    """Search for series by name, first page."""
    result = await _run(state, lambda s: s.search(query))
    return result.to_json_dict()


async def search_series_page(state: ScraperState, query: str, page: int) -> Dict[str, Any]:
    """Search for series by name, given page."""
    result = await _run(state, lambda s: s.search_page(query, page))
    return result.to_json_dict()


async def get_series_detail(state: ScraperState, csfd_id: int) -> Dict[str, Any]:
    detail = await _run(state, lambda s: s.get_series(csfd_id))
    return detail.to_json_dict()


async def get_episodes(state: ScraperState, csfd_id: int) -> list:
    episodes = await _run(state, lambda s: s.get_episodes(csfd_id))
    return [episode.to_json_dict() for episode in episodes]


async def get_season_episodes(state: ScraperState, series_id: int, season_id: int) -> list:
    episodes = await _run(state, lambda s: s.get_season_episodes(series_id, season_id))
    return [episode.to_json_dict() for episode in episodes]


COMMANDS: Dict[str, Callable[..., Awaitable[Any]]] = {
    "search_series": search_series,
    "search_series_page": search_series_page,
    "get_series_detail": get_series_detail,
    "get_episodes": get_episodes,
    "get_season_episodes": get_season_episodes,
}


def _normalize_args(args: Dict[str, Any]) -> Dict[str, Any]:
    # Hosts written in JavaScript send camelCase argument names
    return {CAMEL_RE.sub("_", key).lower(): value for key, value in args.items()}


async def invoke(state: ScraperState, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
    """
    Run a command by name.

    Raises:
        CommandError: unknown command, bad arguments, or a scraper failure
    """
    command = COMMANDS.get(name)
    if command is None:
        raise CommandError(f"Unknown command: {name}", kind="unknown_command")
    if args is None:
        args = {}
    if not isinstance(args, dict):
        raise CommandError(f"Arguments for {name} must be an object", kind="bad_arguments")

    kwargs = _normalize_args(args)
    try:
        inspect.signature(command).bind(state, **kwargs)
    except TypeError as e:
        raise CommandError(f"Bad arguments for {name}: {e}", kind="bad_arguments") from e

    logger.debug(f"[COMMAND] {name} {kwargs}")
    return await command(state, **kwargs)


async def handle_request(state: ScraperState, line: str) -> Dict[str, Any]:
    """Answer one JSON request line."""
    request_id = None
    try:
        request = json.loads(line)
        if not isinstance(request, dict):
            raise CommandError("Request must be a JSON object", kind="bad_request")
        request_id = request.get("id")
        cmd = request.get("cmd")
        if not isinstance(cmd, str):
            raise CommandError("Request has no command", kind="bad_request")
        data = await invoke(state, cmd, request.get("args"))
    except json.JSONDecodeError as e:
        return {"id": None, "ok": False, "error": {"kind": "bad_request", "message": f"Invalid JSON: {e.msg}"}}
    except CommandError as e:
        return {"id": request_id, "ok": False, "error": e.to_dict()}
    except Exception as e:
        logger.exception(f"[COMMAND] unexpected failure for request {request_id!r}")
        return {"id": request_id, "ok": False, "error": {"kind": "internal", "message": f"{type(e).__name__}: {e}"}}
    return {"id": request_id, "ok": True, "data": data}


async def serve_stdio(state: ScraperState, reader: asyncio.StreamReader, writer: Any) -> int:
    """
    Serve line-delimited JSON requests until EOF.

    ``writer`` needs ``write(bytes)`` and an awaitable ``drain()``, as
    asyncio.StreamWriter has. Returns the number of requests answered.
    """
    handled = 0
    while True:
        raw = await reader.readline()
        if not raw:
            break
        # Undecodable bytes fall through to the invalid JSON answer
        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            continue

        response = await handle_request(state, line)
        writer.write((json.dumps(response, ensure_ascii=False) + "\n").encode("utf-8"))
        await writer.drain()
        handled += 1

    logger.info(f"[HOST] stdin closed after {handled} requests")
    return handled
