"""
Data models for the ČSFD scraper.

Defines Pydantic models for search results, series details, seasons and
episodes. Records are frozen once built from parsed HTML and serialize to
plain JSON dictionaries for the desktop host.
"""

from enum import Enum
from typing import Generic
from typing import List
from typing import Optional
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


EPISODE_CODE_PATTERN = r"^S\d{2,}E\d{2,}$"


class SeriesType(str, Enum):
    """Kind of a show as listed on ČSFD."""

    SERIES = "Series"          # seriál
    SEASON = "Season"          # série
    MINI_SERIES = "MiniSeries"  # minisérie


class Record(BaseModel):
    """Base for all scraped records: immutable after construction."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Export as a JSON-ready dictionary."""
        return self.model_dump(mode="json")


class SearchResult(Record):
    """
    Single hit from the ČSFD search page.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Display name of the series"
    )

    original_name: Optional[str] = Field(
        default=None,
        description="Original name if different from the Czech one"
    )

    year: Optional[str] = Field(
        default=None,
        description="Year or year range, e.g. '2020' or '2020-2023'"
    )

    series_type: SeriesType = Field(
        default=SeriesType.SERIES,
        description="Series, single season or mini-series"
    )

    url: str = Field(
        ...,
        min_length=1,
        description="Relative URL on ČSFD"
    )

    csfd_id: int = Field(
        ...,
        gt=0,
        description="Unique ČSFD identifier"
    )


class Season(Record):
    """Season entry listed on a series page."""

    csfd_id: int = Field(..., gt=0, description="ČSFD identifier of the season")
    name: str = Field(..., min_length=1, description="Display name of the season")
    year: Optional[str] = Field(default=None, description="Year the season aired")
    episode_count: int = Field(default=0, ge=0, description="Number of episodes")
    url: str = Field(..., min_length=1, description="Relative URL on ČSFD")


class SeriesDetail(Record):
    """
    Aggregated metadata for one TV series.

    Built from the series overview page; seasons are de-duplicated by
    identifier and kept in page order.
    """

    csfd_id: int = Field(
        ...,
        gt=0,
        description="Unique ČSFD identifier"
    )

    name: str = Field(
        ...,
        min_length=1,
        description="Display name of the series"
    )

    original_name: Optional[str] = Field(
        default=None,
        description="Original name if different from the Czech one"
    )

    year_range: Optional[str] = Field(
        default=None,
        description="Year range, e.g. '2008-2013', '2019-' or '2020'"
    )

    genres: List[str] = Field(
        default_factory=list,
        description="Genres in page order"
    )

    countries: List[str] = Field(
        default_factory=list,
        description="Countries of origin"
    )

    seasons: List[Season] = Field(
        default_factory=list,
        description="Seasons in page order"
    )

    @property
    def episode_total(self) -> int:
        """Sum of the episode counts listed for each season."""
        return sum(season.episode_count for season in self.seasons)


class Episode(Record):
    """
    Per-episode code, title and rating.
    """

    csfd_id: int = Field(
        ...,
        gt=0,
        description="Unique ČSFD identifier of the episode"
    )

    name: str = Field(
        ...,
        min_length=1,
        description="Display name of the episode"
    )

    episode_code: str = Field(
        ...,
        pattern=EPISODE_CODE_PATTERN,
        description="Episode code in SxxExx format"
    )

    season_number: int = Field(..., ge=0, description="Season number")
    episode_number: int = Field(..., ge=0, description="Episode number within the season")

    rating: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Rating as a percentage, None if not rated"
    )

    url: str = Field(
        ...,
        min_length=1,
        description="Relative URL on ČSFD"
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("episode name must not be blank")
        return stripped

    @property
    def display_rating(self) -> str:
        """Rating formatted for display, an em dash when unrated."""
        if self.rating is None:
            return "—"
        return f"{self.rating:.0f}%"


T = TypeVar("T")


class PaginatedResult(Record, Generic[T]):
    """One page of results."""

    items: List[T] = Field(default_factory=list)
    current_page: int = Field(default=1, ge=1, description="1-based page number")
    has_next_page: bool = Field(default=False)

    @classmethod
    def empty(cls) -> "PaginatedResult[T]":
        """Empty first page."""
        return cls(items=[], current_page=1, has_next_page=False)

    def with_page(self, page: int) -> "PaginatedResult[T]":
        """Copy of this result reporting the given page number."""
        return self.model_copy(update={"current_page": page})
