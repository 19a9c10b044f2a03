"""
Command line entry point.

Usage:
    python -m csfd_scraper.main --mode search --query "Teorie velkého třesku"
    python -m csfd_scraper.main --mode series --id 234260
    python -m csfd_scraper.main --mode episodes --id 234260 --season-id 234261
    python -m csfd_scraper.main --mode host
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any
from typing import List
from typing import Optional

from pydantic import ValidationError

from csfd_scraper.commands import ScraperState
from csfd_scraper.commands import serve_stdio
from csfd_scraper.errors import CsfdError
from csfd_scraper.scraper import CsfdScraper
from csfd_scraper.settings import Settings
from csfd_scraper.settings import get_settings

logger = logging.getLogger("csfd_scraper.main")

MODES = ("search", "series", "episodes", "host")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csfd-scraper",
        description="Scrape TV series metadata from ČSFD.cz",
    )
    parser.add_argument("--mode", choices=MODES, required=True, help="What to do")
    parser.add_argument("--query", help="Search text (search mode)")
    parser.add_argument("--page", type=int, default=1, help="Search results page")
    parser.add_argument("--id", dest="csfd_id", type=int, help="ČSFD id of the series")
    parser.add_argument("--season-id", type=int, help="ČSFD id of a season (episodes mode)")
    parser.add_argument("--log-level", help="Override CSFD_SCRAPER_LOG_LEVEL")
    return parser


def _dump(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def run_once(args: argparse.Namespace, settings: Settings) -> None:
    async with CsfdScraper(settings=settings) as scraper:
        if args.mode == "search":
            result = await scraper.search_page(args.query or "", args.page)
            _dump(result.to_json_dict())
        elif args.mode == "series":
            detail = await scraper.get_series(args.csfd_id)
            _dump(detail.to_json_dict())
        elif args.mode == "episodes":
            if args.season_id:
                episodes = await scraper.get_season_episodes(args.csfd_id, args.season_id)
            else:
                episodes = await scraper.get_episodes(args.csfd_id)
            _dump([episode.to_json_dict() for episode in episodes])


async def run_host(settings: Settings) -> None:
    """Serve host commands over stdin/stdout."""
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)

    async with ScraperState(settings=settings) as state:
        await serve_stdio(state, reader, writer)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.mode in ("series", "episodes") and args.csfd_id is None:
        parser.error(f"--id is required in {args.mode} mode")

    settings = get_settings()
    if args.log_level:
        try:
            settings = Settings(log_level=args.log_level)
        except ValidationError:
            parser.error(f"invalid --log-level: {args.log_level}")
    settings.setup_logging()

    try:
        if args.mode == "host":
            asyncio.run(run_host(settings))
        else:
            asyncio.run(run_once(args, settings))
    except CsfdError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
