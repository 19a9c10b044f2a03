"""
Episode list parser for ČSFD.

Reads /film/{id}/epizody/ and /film/{id}/{season}/epizody/ pages. Three
layouts are understood, newest first:

- ``h3.film-title`` entries with the code in ``.film-title-info`` ("(S01E01)")
- episode tables with season header rows
- loose episode links

Items that cannot be read are skipped; an empty list means the page had no
recognizable episodes.
"""

import logging
import re
from typing import List
from typing import Optional
from typing import Tuple

from bs4 import Tag

from csfd_scraper.models import Episode
from csfd_scraper.parsers.common import extract_csfd_id
from csfd_scraper.parsers.common import extract_nested_id
from csfd_scraper.parsers.common import make_soup
from csfd_scraper.parsers.common import raw_text_of
from csfd_scraper.parsers.common import text_of
from csfd_scraper.parsers.common import try_build

logger = logging.getLogger(__name__)

TABLE_CONTAINER_SELECTORS = (
    ".film-episodes table tbody",
    ".episodes-list",
    "table.episodes tbody",
    ".box-content table tbody",
)

ROW_RATING_SELECTORS = (".rating", ".film-rating", "td:last-child", ".stars")
ELEMENT_RATING_SELECTORS = (".rating-average", ".rating", ".film-rating", ".stars")
ITEM_WRAPPERS = ["article", "li"]

EPISODE_CODE_RE = re.compile(r"S(\d{1,2})E(\d{1,2})", re.IGNORECASE)
ALT_EPISODE_CODE_RE = re.compile(r"\b(\d{1,2})x(\d{1,2})\b")
SEASON_NUMBER_RE = re.compile(r"(?:série|season|řada|\bs)\s*(\d+)", re.IGNORECASE)
LEADING_NUMBER_RE = re.compile(r"^(\d{1,2})\.\s")
EPISODE_WORD_RE = re.compile(r"(?:episode|epizoda|díl)\s*(\d{1,2})", re.IGNORECASE)
RATING_RE = re.compile(r"(\d{1,3}(?:[.,]\d+)?)\s*%")
CODE_PREFIX_RE = re.compile(r"^(?:S\d{1,2}E\d{1,2}\s*[-:]\s*|\d{1,2}\.\s*)", re.IGNORECASE)


def parse_episodes(html: str) -> List[Episode]:
    """
    Parse the episode list of a series or a season.

    Args:
        html: Raw HTML of the episodes page

    Returns:
        Episodes in page order
    """
    soup = make_soup(html)

    episodes: List[Episode] = []
    for h3 in soup.select("h3.film-title"):
        episode = parse_episode_from_h3(h3, len(episodes) + 1)
        if episode is not None:
            episodes.append(episode)
    if episodes:
        return episodes

    for container_selector in TABLE_CONTAINER_SELECTORS:
        for container in soup.select(container_selector):
            current_season = 1
            last_number = 0
            for row in container.select("tr"):
                season_number = extract_season_header(row)
                if season_number is not None:
                    current_season = season_number
                    last_number = 0
                    continue
                episode = parse_episode_row(row, current_season, last_number + 1)
                if episode is not None:
                    episodes.append(episode)
                    last_number = episode.episode_number
            if episodes:
                logger.debug(f"[EPISODES] table layout {container_selector} count={len(episodes)}")
                return episodes

    current_season = 1
    for el in soup.select(".episode-item, .film-episodes a[href*='/film/']"):
        episode = parse_episode_element(el, current_season)
        if episode is not None:
            current_season = episode.season_number
            episodes.append(episode)

    if not episodes:
        logger.debug("[EPISODES] no episodes recognized on page")
    return episodes


def format_episode_code(season_number: int, episode_number: int) -> str:
    return f"S{season_number:02d}E{episode_number:02d}"


def parse_episode_from_h3(h3: Tag, position: int) -> Optional[Episode]:
    """Current layout: link in ``a.film-title-name``, code in the info span."""
    link = h3.select_one("a.film-title-name")
    if link is None or not link.get("href"):
        return None

    url = link["href"]
    csfd_id = extract_nested_id(url)
    name = text_of(link)
    if csfd_id is None or not name:
        return None

    info = raw_text_of(h3.select_one(".film-title-info"))
    code = parse_episode_code(info)
    if code is None:
        # Episodes without a code keep their place in the list
        code = (1, extract_episode_number_from_name(name) or position)
    season_number, episode_number = code

    # Rating only from this entry's own wrapper, never the list container
    wrapper = h3.find_parent(ITEM_WRAPPERS)
    rating = extract_rating_from_element(wrapper, ELEMENT_RATING_SELECTORS, whole_text=False)

    return try_build(
        Episode,
        csfd_id=csfd_id,
        name=name,
        episode_code=format_episode_code(season_number, episode_number),
        season_number=season_number,
        episode_number=episode_number,
        rating=rating,
        url=url,
    )


def extract_season_header(row: Tag) -> Optional[int]:
    """Season number if the table row is a season header, else None."""
    if row.select_one("th[colspan], td.season-header, .season-title") is not None:
        return extract_season_number_from_text(raw_text_of(row))

    # A row that carries an episode link is never a header
    if row.select_one("a[href*='/film/']") is not None:
        return None

    text = raw_text_of(row).lower()
    if "série" in text or "season" in text or "řada" in text:
        return extract_season_number_from_text(text)
    return None


def extract_season_number_from_text(text: str) -> Optional[int]:
    """Season number from "Série 1", "Season 2" or "S3" style text."""
    match = SEASON_NUMBER_RE.search(text)
    if match:
        return int(match.group(1))
    return None


def parse_episode_row(row: Tag, default_season: int, default_number: int = 1) -> Optional[Episode]:
    link = row.select_one("a[href*='/film/']")
    if link is None or not link.get("href"):
        return None

    url = link["href"]
    csfd_id = extract_nested_id(url) or extract_csfd_id(url)
    name = text_of(link)
    if csfd_id is None or not name:
        return None

    code = parse_episode_code(raw_text_of(row)) or parse_episode_code(name)
    if code is not None:
        season_number, episode_number = code
    else:
        season_number = default_season
        episode_number = extract_episode_number_from_name(name) or default_number

    return try_build(
        Episode,
        csfd_id=csfd_id,
        name=clean_episode_name(name),
        episode_code=format_episode_code(season_number, episode_number),
        season_number=season_number,
        episode_number=episode_number,
        rating=extract_rating_from_element(row, ROW_RATING_SELECTORS),
        url=url,
    )


def parse_episode_element(element: Tag, default_season: int) -> Optional[Episode]:
    url = element.get("href")
    if not url:
        link = element.select_one("a[href*='/film/']")
        url = link.get("href") if link is not None else None
    if not url:
        return None

    csfd_id = extract_nested_id(url) or extract_csfd_id(url)
    name = text_of(element)
    if csfd_id is None or not name:
        return None

    code = parse_episode_code(name)
    if code is not None:
        season_number, episode_number = code
    else:
        season_number = default_season
        episode_number = extract_episode_number_from_name(name) or 1

    return try_build(
        Episode,
        csfd_id=csfd_id,
        name=clean_episode_name(name),
        episode_code=format_episode_code(season_number, episode_number),
        season_number=season_number,
        episode_number=episode_number,
        rating=extract_rating_from_element(element, ELEMENT_RATING_SELECTORS),
        url=url,
    )


def parse_episode_code(text: str) -> Optional[Tuple[int, int]]:
    """
    Season and episode numbers from an episode code.

    Understands ``S01E05`` (any case, one or two digits) and ``1x05``:

        >>> parse_episode_code("Episode S02E10 - Title")
        (2, 10)
        >>> parse_episode_code("1x05")
        (1, 5)
        >>> parse_episode_code("Episode 5") is None
        True
    """
    match = EPISODE_CODE_RE.search(text) or ALT_EPISODE_CODE_RE.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))
    return None


def extract_episode_number_from_name(name: str) -> Optional[int]:
    """Number from "1. Title" or "Episode 5" / "Epizoda 5" / "Díl 5"."""
    match = LEADING_NUMBER_RE.search(name) or EPISODE_WORD_RE.search(name)
    if match:
        return int(match.group(1))
    return None


def parse_rating(text: str) -> Optional[float]:
    """
    Rating percentage from text such as "85%", "72.5 %" or "72,5%".

    Values outside 0-100 are rejected.
    """
    match = RATING_RE.search(text)
    if not match:
        return None
    rating = float(match.group(1).replace(",", "."))
    if 0.0 <= rating <= 100.0:
        return rating
    return None


def extract_rating_from_element(
    element: Optional[Tag],
    selectors: Tuple[str, ...],
    whole_text: bool = True,
) -> Optional[float]:
    if element is None:
        return None
    for selector in selectors:
        el = element.select_one(selector)
        if el is not None:
            rating = parse_rating(raw_text_of(el))
            if rating is not None:
                return rating
    if whole_text:
        return parse_rating(raw_text_of(element))
    return None


def clean_episode_name(name: str) -> str:
    """Drop a leading "S01E01 - " or "1. " prefix."""
    return CODE_PREFIX_RE.sub("", name).strip()
