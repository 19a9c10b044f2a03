"""
ČSFD TV Series Scraper.

Scrapes TV series metadata (search results, series details with seasons,
episode lists with ratings) from ČSFD.cz, the Czech/Slovak movie database.

Main Components:
- HttpClient: aiohttp fetcher with rate limiting and retry/backoff
- Parsers: BeautifulSoup extractors for search, series and episode pages
- CsfdScraper: async library API combining the two
- Commands: bindings for a desktop host application, also served over stdio

Usage:
    # Search from the command line
    python -m csfd_scraper.main --mode search --query "Breaking Bad"

    # Run as a desktop host sidecar
    python -m csfd_scraper.main --mode host

    # Use the library
    from csfd_scraper import CsfdScraper

    async with CsfdScraper() as scraper:
        results = await scraper.search("Breaking Bad")
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Public API for external usage
from csfd_scraper.errors import CsfdError
from csfd_scraper.errors import ElementNotFoundError
from csfd_scraper.errors import HttpError
from csfd_scraper.errors import InvalidIdError
from csfd_scraper.errors import InvalidUrlError
from csfd_scraper.errors import NetworkError
from csfd_scraper.errors import NotFoundError
from csfd_scraper.errors import ParseError
from csfd_scraper.errors import RateLimitedError
from csfd_scraper.models import Episode
from csfd_scraper.models import PaginatedResult
from csfd_scraper.models import SearchResult
from csfd_scraper.models import Season
from csfd_scraper.models import SeriesDetail
from csfd_scraper.models import SeriesType
from csfd_scraper.scraper import CsfdScraper
from csfd_scraper.scraper import HttpClient
from csfd_scraper.scraper import RateLimiter
from csfd_scraper.settings import Settings
from csfd_scraper.settings import get_settings

__all__ = [
    "CsfdError",
    "CsfdScraper",
    "ElementNotFoundError",
    "Episode",
    "HttpClient",
    "HttpError",
    "InvalidIdError",
    "InvalidUrlError",
    "NetworkError",
    "NotFoundError",
    "PaginatedResult",
    "ParseError",
    "RateLimitedError",
    "RateLimiter",
    "SearchResult",
    "Season",
    "SeriesDetail",
    "SeriesType",
    "Settings",
    "get_settings",
]
