"""
Shared helpers for the ČSFD page parsers.
"""

import logging
import re
from typing import Iterable
from typing import Optional
from typing import Type
from typing import TypeVar
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4 import Tag
from pydantic import ValidationError

from csfd_scraper.errors import ParseError
from csfd_scraper.models import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

YEAR_IN_PARENS_RE = re.compile(r"\((\d{4}(?:-\d{4})?)\)")
BARE_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")


def make_soup(html: str) -> BeautifulSoup:
    """Parse a page; refuses input that is not text."""
    if not isinstance(html, str):
        raise ParseError(f"expected HTML text, got {type(html).__name__}")
    return BeautifulSoup(html, "html.parser")


def text_of(el: Optional[Tag]) -> str:
    """Concatenated text of an element, stripped."""
    if el is None:
        return ""
    return el.get_text().strip()


def raw_text_of(el: Optional[Tag]) -> str:
    """Text of an element with its pieces separated by spaces."""
    if el is None:
        return ""
    return el.get_text(" ")


def first_text(root: Tag, selectors: Iterable[str]) -> Optional[str]:
    """Text of the first selector match that is not empty."""
    for selector in selectors:
        el = root.select_one(selector)
        text = text_of(el)
        if text:
            return text
    return None


def _film_segments(url: str) -> list:
    path = urlparse(url).path if "://" in url else url
    parts = path.strip("/").split("/")
    try:
        idx = parts.index("film")
    except ValueError:
        return []
    return parts[idx + 1:]


def _leading_id(segment: str) -> Optional[int]:
    id_str = segment.split("-", 1)[0]
    if not id_str.isdigit():
        return None
    value = int(id_str)
    return value if value > 0 else None


def extract_csfd_id(url: str) -> Optional[int]:
    """
    Extract the ČSFD id from a URL path.

    The id is the numeric prefix of the first segment after ``/film/``:

        /film/12345-breaking-bad/            -> 12345
        /film/12345-breaking-bad/prehled/    -> 12345
        https://www.csfd.cz/film/999-test/   -> 999
        /film/0-test/, /film/abc/, ""        -> None
    """
    if not url or "/film/" not in url:
        return None
    segments = _film_segments(url)
    if not segments:
        return None
    return _leading_id(segments[0])


def extract_sub_id(url: str) -> Optional[int]:
    """
    Extract the id of a season nested under a series URL.

        /film/12345-breaking-bad/456-season-1/          -> 456
        /film/12345-test/789-serie-2/prehled/           -> 789
        /film/12345-test/                                -> None
    """
    segments = _film_segments(url)
    if len(segments) < 2:
        return None
    return _leading_id(segments[1])


def extract_nested_id(url: str) -> Optional[int]:
    """
    Id of the innermost item in a nested film URL, used for episodes.

        /film/1-show/2-serie-1/3-pilot/prehled/   -> 3
        /film/1-show/3-pilot/                     -> 3
        /film/1-show/                             -> None
    """
    ids = [i for i in (_leading_id(s) for s in _film_segments(url)) if i is not None]
    if len(ids) < 2:
        return None
    return ids[-1]


def extract_year_from_text(text: str) -> Optional[str]:
    """
    Year or year range from free text.

    Parenthesized forms win: "(2020)" or "(2020-2023)". Otherwise the first
    standalone year between 1900 and 2099.
    """
    match = YEAR_IN_PARENS_RE.search(text)
    if match:
        return match.group(1)
    match = BARE_YEAR_RE.search(text)
    if match:
        return match.group(1)
    return None


def build_record(model: Type[R], **fields) -> R:
    """Construct a record, reporting validation problems as ParseError."""
    try:
        return model(**fields)
    except ValidationError as e:
        errors = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ParseError(f"invalid {model.__name__} ({errors})") from e


def try_build(model: Type[R], **fields) -> Optional[R]:
    """Construct a record or skip it, logging why."""
    try:
        return build_record(model, **fields)
    except ParseError as e:
        logger.debug(f"[PARSE] skipping item: {e}")
        return None
