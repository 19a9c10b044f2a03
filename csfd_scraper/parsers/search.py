"""
Search results parser for ČSFD.

Reads the /hledat/ page: result articles, pagination state.
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup
from bs4 import Tag

from csfd_scraper.models import PaginatedResult
from csfd_scraper.models import SearchResult
from csfd_scraper.models import SeriesType
from csfd_scraper.parsers.common import extract_csfd_id
from csfd_scraper.parsers.common import extract_year_from_text
from csfd_scraper.parsers.common import make_soup
from csfd_scraper.parsers.common import raw_text_of
from csfd_scraper.parsers.common import text_of
from csfd_scraper.parsers.common import try_build

logger = logging.getLogger(__name__)

RESULT_SELECTOR = "article.article-poster-50, .ui-film-list .film-item"
LINK_SELECTOR = "a.film-title-name, a.name, h3 a, .article-header a"

# The info spans next to the title hold year and type, never the original name
ORIGINAL_NAME_SELECTORS = (
    ".search-name",
    ".origin-name",
    ".original-name",
)

YEAR_SELECTORS = (
    ".film-title-info .info",
    ".year",
    ".info-year",
    "span.year",
)

NEXT_PAGE_SELECTORS = (
    ".pagination .next:not(.disabled)",
    ".paging a.next",
    "a[rel='next']",
    ".pagination-next:not(.disabled)",
)

CURRENT_PAGE_SELECTORS = (
    ".pagination .active",
    ".paging .current",
    ".pagination-current",
)


def parse_search_results(html: str) -> PaginatedResult[SearchResult]:
    """
    Parse search results from a ČSFD search page.

    Args:
        html: Raw HTML of the search results page

    Returns:
        PaginatedResult with the parsed items. A page without results is an
        empty first page, not an error.
    """
    soup = make_soup(html)

    items = []
    for element in soup.select(RESULT_SELECTOR):
        result = parse_search_item(element)
        if result is not None:
            items.append(result)

    has_next_page = detect_pagination(soup)
    current_page = extract_current_page(soup) or 1

    logger.debug(f"[SEARCH] items={len(items)} page={current_page} next={has_next_page}")
    return PaginatedResult[SearchResult](
        items=items,
        current_page=current_page,
        has_next_page=has_next_page,
    )


def parse_search_item(element: Tag) -> Optional[SearchResult]:
    """Parse one result article; None when it has no usable title link."""
    link = element.select_one(LINK_SELECTOR)
    if link is None:
        return None

    url = link.get("href")
    if not url:
        return None

    csfd_id = extract_csfd_id(url)
    if csfd_id is None:
        return None

    name = text_of(link)
    if not name:
        return None

    return try_build(
        SearchResult,
        name=name,
        original_name=extract_original_name(element),
        year=extract_year(element),
        series_type=extract_series_type(element),
        url=url,
        csfd_id=csfd_id,
    )


def extract_original_name(element: Tag) -> Optional[str]:
    for selector in ORIGINAL_NAME_SELECTORS:
        text = text_of(element.select_one(selector))
        # Rendered as "(The Big Bang Theory)"
        if text.startswith("(") and text.endswith(")"):
            text = text[1:-1].strip()
        if text and text != "-":
            return text
    return None


def extract_year(element: Tag) -> Optional[str]:
    for selector in YEAR_SELECTORS:
        el = element.select_one(selector)
        if el is not None:
            year = extract_year_from_text(raw_text_of(el))
            if year:
                return year

    # Fall back to anything that looks like a year in the whole item
    return extract_year_from_text(raw_text_of(element))


def extract_series_type(element: Tag) -> SeriesType:
    text = raw_text_of(element).lower()

    if "minisérie" in text or "miniserie" in text:
        return SeriesType.MINI_SERIES
    if "série" in text and "seriál" not in text:
        return SeriesType.SEASON
    return SeriesType.SERIES


def detect_pagination(soup: BeautifulSoup) -> bool:
    """True when the page links to a next page of results."""
    return any(soup.select_one(selector) is not None for selector in NEXT_PAGE_SELECTORS)


def extract_current_page(soup: BeautifulSoup) -> Optional[int]:
    for selector in CURRENT_PAGE_SELECTORS:
        text = text_of(soup.select_one(selector))
        if text.isdigit() and int(text) > 0:
            return int(text)
    return None
