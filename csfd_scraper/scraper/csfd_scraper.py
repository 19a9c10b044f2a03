"""
High-level ČSFD scraper API.

Combines the rate-limited HttpClient with the page parsers:

    async with CsfdScraper() as scraper:
        results = await scraper.search("Breaking Bad")
        detail = await scraper.get_series(results.items[0].csfd_id)
        episodes = await scraper.get_episodes(detail.csfd_id)
"""

import logging
from typing import List
from typing import Optional
from urllib.parse import quote

from csfd_scraper.errors import InvalidIdError
from csfd_scraper.errors import InvalidUrlError
from csfd_scraper.models import Episode
from csfd_scraper.models import PaginatedResult
from csfd_scraper.models import SearchResult
from csfd_scraper.models import SeriesDetail
from csfd_scraper.parsers import parse_episodes
from csfd_scraper.parsers import parse_search_results
from csfd_scraper.parsers import parse_series_detail
from csfd_scraper.scraper.http_client import HttpClient
from csfd_scraper.settings import Settings

logger = logging.getLogger(__name__)


def _validate_id(csfd_id: int) -> int:
    if isinstance(csfd_id, bool) or not isinstance(csfd_id, int) or csfd_id <= 0:
        raise InvalidIdError(csfd_id)
    return csfd_id


class CsfdScraper:
    """
    Search series, read series details and episode lists from ČSFD.

    All operations are coroutines; each one issues a single page fetch
    through the shared client.
    """

    def __init__(self, client: Optional[HttpClient] = None, settings: Optional[Settings] = None) -> None:
        self.client = client or HttpClient(settings=settings)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "CsfdScraper":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def search(self, query: str) -> PaginatedResult[SearchResult]:
        """Search for series by name, first page of results."""
        return await self.search_page(query, 1)

    async def search_page(self, query: str, page: int) -> PaginatedResult[SearchResult]:
        """
        Search for series by name with pagination.

        Args:
            query: Search text, surrounding whitespace ignored
            page: 1-based page number

        Returns:
            PaginatedResult whose current_page is the requested page

        Raises:
            InvalidUrlError: query is empty or not text, or page is not positive
        """
        if query is not None and not isinstance(query, str):
            raise InvalidUrlError(f"Search query must be text, got {type(query).__name__}")
        trimmed = (query or "").strip()
        if not trimmed:
            raise InvalidUrlError("Search query cannot be empty")
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise InvalidUrlError(f"Page must be a positive integer, got {page!r}")

        path = f"/hledat/?q={quote(trimmed, safe='')}"
        if page > 1:
            path += f"&page={page}"

        html = await self.client.fetch(path)
        result = parse_search_results(html).with_page(page)
        logger.info(f"Search {trimmed!r} page={page}: {len(result.items)} results")
        return result

    async def get_series(self, csfd_id: int) -> SeriesDetail:
        """
        Series detail with seasons.

        Raises:
            InvalidIdError: csfd_id is not a positive integer
            NotFoundError: the series page does not exist
            ElementNotFoundError: the page has no series name
        """
        _validate_id(csfd_id)
        html = await self.client.fetch(f"/film/{csfd_id}/prehled/")
        return parse_series_detail(html, csfd_id)

    async def get_episodes(self, csfd_id: int) -> List[Episode]:
        """All episodes listed for a series."""
        _validate_id(csfd_id)
        html = await self.client.fetch(f"/film/{csfd_id}/epizody/")
        episodes = parse_episodes(html)
        logger.info(f"Series {csfd_id}: {len(episodes)} episodes")
        return episodes

    async def get_season_episodes(self, series_id: int, season_id: int) -> List[Episode]:
        """Episodes of one season of a series."""
        _validate_id(series_id)
        _validate_id(season_id)
        html = await self.client.fetch(f"/film/{series_id}/{season_id}/epizody/")
        episodes = parse_episodes(html)
        logger.info(f"Series {series_id} season {season_id}: {len(episodes)} episodes")
        return episodes
