"""
HTML field extractors for ČSFD pages.

Site-specific selectors live here, one module per page type:
- search: /hledat/ result lists and pagination
- series: series overview with seasons
- episodes: episode lists with codes and ratings
"""

from csfd_scraper.parsers.common import extract_csfd_id
from csfd_scraper.parsers.common import extract_sub_id
from csfd_scraper.parsers.common import extract_year_from_text
from csfd_scraper.parsers.episodes import parse_episode_code
from csfd_scraper.parsers.episodes import parse_episodes
from csfd_scraper.parsers.episodes import parse_rating
from csfd_scraper.parsers.search import parse_search_results
from csfd_scraper.parsers.series import extract_year_range
from csfd_scraper.parsers.series import parse_seasons
from csfd_scraper.parsers.series import parse_series_detail

__all__ = [
    "extract_csfd_id",
    "extract_sub_id",
    "extract_year_from_text",
    "extract_year_range",
    "parse_episode_code",
    "parse_episodes",
    "parse_rating",
    "parse_search_results",
    "parse_seasons",
    "parse_series_detail",
]
