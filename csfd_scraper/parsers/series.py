"""
Series detail parser for ČSFD.

Reads the /film/{id}/prehled/ page: name, original name, year range, genres,
countries and the season list. Only the name is required; everything else
degrades to empty values when the markup is missing.
"""

import logging
import re
from typing import List
from typing import Optional

from bs4 import BeautifulSoup
from bs4 import Tag

from csfd_scraper.errors import ElementNotFoundError
from csfd_scraper.models import Season
from csfd_scraper.models import SeriesDetail
from csfd_scraper.parsers.common import build_record
from csfd_scraper.parsers.common import extract_csfd_id
from csfd_scraper.parsers.common import extract_sub_id
from csfd_scraper.parsers.common import first_text
from csfd_scraper.parsers.common import make_soup
from csfd_scraper.parsers.common import raw_text_of
from csfd_scraper.parsers.common import text_of
from csfd_scraper.parsers.common import try_build

logger = logging.getLogger(__name__)

NAME_SELECTORS = (
    "h1.film-header-name",
    ".film-header h1",
    "h1[itemprop='name']",
    ".movie-title h1",
    "h1",
)

ORIGINAL_NAME_SELECTORS = (
    ".film-header-name .film-header-origin-name",
    ".origin-name",
    "[itemprop='alternateName']",
)

YEAR_RANGE_SELECTORS = (
    ".film-header-origin .origin span",
    ".origin .year",
    "[itemprop='datePublished']",
    ".film-info .origin",
)

GENRE_SELECTORS = (
    ".film-header-origin .genre a",
    ".genres a",
    "[itemprop='genre']",
    ".film-info .genre a",
)

COUNTRY_SELECTORS = (
    ".film-header-origin .origin a",
    ".origin .country a",
    "[itemprop='countryOfOrigin']",
    ".film-info .origin a",
)

SEASON_CONTAINER_SELECTORS = (
    ".film-episodes-list",
    ".seasons-list",
    ".series-seasons",
    ".box-content ul",
)

SEASON_ITEM_SELECTORS = (
    "li a",
    ".season-item a",
    "a.season-link",
)

YEAR_RANGE_RE = re.compile(r"\b(\d{4})\b(?:\s*([-–])\s*(\d{4})?)?")
SEASON_YEAR_RE = re.compile(r"\((\d{4})\)")
INFO_EPISODE_COUNT_RE = re.compile(r"(\d+)\s*epizod")
NAME_EPISODE_COUNT_RE = re.compile(r"\((\d+)(?:\s*epizod[ay]?)?\)")
PARENS_RE = re.compile(r"\s*\([^)]*\)\s*")
MORE_MARKER = "(více)"


def parse_series_detail(html: str, csfd_id: int) -> SeriesDetail:
    """
    Parse series detail from a ČSFD series page.

    Args:
        html: Raw HTML of the series overview page
        csfd_id: ČSFD id of the series, stored on the result

    Returns:
        SeriesDetail with seasons in page order

    Raises:
        ElementNotFoundError: the page has no series name
        ParseError: the extracted fields do not form a valid record
    """
    soup = make_soup(html)

    name = first_text(soup, NAME_SELECTORS)
    if not name:
        raise ElementNotFoundError("series name")

    seasons = parse_seasons(soup)
    logger.debug(f"[SERIES] id={csfd_id} name={name!r} seasons={len(seasons)}")

    return build_record(
        SeriesDetail,
        csfd_id=csfd_id,
        name=name,
        original_name=extract_original_name(soup),
        year_range=extract_year_range_from_page(soup),
        genres=extract_genres(soup),
        countries=extract_countries(soup),
        seasons=seasons,
    )


def extract_original_name(soup: BeautifulSoup) -> Optional[str]:
    # Current layout: first entry of the alternative names list
    li = soup.select_one("ul.film-names li:first-child")
    if li is not None:
        lines = [
            line.strip()
            for line in raw_text_of(li).splitlines()
            if line.strip() and MORE_MARKER not in line
        ]
        cleaned = " ".join(lines).strip()
        if cleaned:
            return cleaned

    return first_text(soup, ORIGINAL_NAME_SELECTORS)


def extract_year_range(text: str) -> Optional[str]:
    """
    Year or year range from text, normalized to ``YYYY``, ``YYYY-YYYY`` or
    an open ``YYYY-``. En dashes and spaces around the dash are removed.
    """
    match = YEAR_RANGE_RE.search(text)
    if not match:
        return None
    start, dash, end = match.groups()
    if end:
        return f"{start}-{end}"
    if dash:
        return f"{start}-"
    return start


def extract_year_range_from_page(soup: BeautifulSoup) -> Optional[str]:
    for selector in YEAR_RANGE_SELECTORS:
        for el in soup.select(selector):
            year = extract_year_range(raw_text_of(el))
            if year:
                return year
    return None


def _collect_unique(soup: BeautifulSoup, selector: str) -> List[str]:
    values: List[str] = []
    for el in soup.select(selector):
        text = text_of(el)
        if text and text not in values:
            values.append(text)
    return values


def extract_genres(soup: BeautifulSoup) -> List[str]:
    for selector in GENRE_SELECTORS:
        genres = _collect_unique(soup, selector)
        if genres:
            return genres
    return []


def extract_countries(soup: BeautifulSoup) -> List[str]:
    for selector in COUNTRY_SELECTORS:
        countries = _collect_unique(soup, selector)
        if countries:
            return countries

    # Plain text origin line: "USA, 2007-2019, 279 epizod"
    origin = soup.select_one("div.origin")
    if origin is not None:
        country = raw_text_of(origin).split(",", 1)[0].strip()
        if country and not country.isdigit():
            return [country]
    return []


def parse_seasons(soup: BeautifulSoup) -> List[Season]:
    """
    Seasons listed on a series page, de-duplicated by id.

    The current layout uses ``h3.film-title`` entries; older layouts are
    tried in turn until one of them yields seasons.
    """
    seasons: List[Season] = []

    def add(season: Optional[Season]) -> None:
        if season is not None and all(s.csfd_id != season.csfd_id for s in seasons):
            seasons.append(season)

    for h3 in soup.select("h3.film-title"):
        add(parse_season_from_h3(h3))
    if seasons:
        return seasons

    for container_selector in SEASON_CONTAINER_SELECTORS:
        for container in soup.select(container_selector):
            for item_selector in SEASON_ITEM_SELECTORS:
                for item in container.select(item_selector):
                    add(parse_season_item(item))
                if seasons:
                    logger.debug(f"[SERIES] seasons via fallback {container_selector} {item_selector}")
                    return seasons

    for link in soup.select("a[href*='/film/'][href*='serie']"):
        add(parse_season_item(link))
    return seasons


def parse_season_from_h3(h3: Tag) -> Optional[Season]:
    link = h3.select_one("a.film-title-name")
    if link is None or not link.get("href"):
        return None

    url = link["href"]
    csfd_id = extract_sub_id(url)
    name = text_of(link)
    if csfd_id is None or not name:
        return None

    # Info span reads like "(2007) - 17 epizod"
    info = raw_text_of(h3.select_one(".film-title-info"))

    return try_build(
        Season,
        csfd_id=csfd_id,
        name=name,
        year=extract_season_year(info),
        episode_count=extract_episode_count_from_info(info) or 0,
        url=url,
    )


def parse_season_item(link: Tag) -> Optional[Season]:
    url = link.get("href")
    if not url:
        return None

    csfd_id = extract_sub_id(url) or extract_csfd_id(url)
    name = text_of(link)
    if csfd_id is None or not name:
        return None

    return try_build(
        Season,
        csfd_id=csfd_id,
        name=clean_season_name(name),
        year=extract_season_year(name),
        episode_count=extract_episode_count(name) or 0,
        url=url,
    )


def extract_season_year(text: str) -> Optional[str]:
    match = SEASON_YEAR_RE.search(text)
    return match.group(1) if match else None


def extract_episode_count_from_info(text: str) -> Optional[int]:
    match = INFO_EPISODE_COUNT_RE.search(text)
    return int(match.group(1)) if match else None


def extract_episode_count(name: str) -> Optional[int]:
    """Count from "(10 epizod)" or "(8)"; a four digit year is not a count."""
    for match in NAME_EPISODE_COUNT_RE.finditer(name):
        value = match.group(1)
        if len(value) == 4 and "epizod" not in match.group(0):
            continue
        return int(value)
    return None


def clean_season_name(name: str) -> str:
    """Drop parenthesized year and episode count from a season name."""
    return PARENS_RE.sub(" ", name).strip()
