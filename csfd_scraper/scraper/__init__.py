"""
Web scraping components for the ČSFD scraper.

This package contains the fetching side of the library:
- HTTP client management with rate limiting and retry/backoff
- The CsfdScraper facade combining the client with the page parsers
"""

from csfd_scraper.scraper.csfd_scraper import CsfdScraper
from csfd_scraper.scraper.http_client import HttpClient
from csfd_scraper.scraper.http_client import RateLimiter
from csfd_scraper.scraper.http_client import backoff_delay

__all__ = ["CsfdScraper", "HttpClient", "RateLimiter", "backoff_delay"]
