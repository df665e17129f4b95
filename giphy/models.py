"""Data models for the Giphy API.

Covers both sides of the wire: the caller-facing ``Request`` with the
query parameters derived from it, and the decoded response items.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from giphy.exceptions import GiphyError

# =============================================================================
# Constants
# =============================================================================

# Sentinel for Request.throttle_duration_ms: fetch pages back to back
NO_THROTTLE = -1

DEFAULT_THROTTLE_MS = 150

GIPHY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Giphy sends this instead of null for dates it does not know
BLANK_GIPHY_TIME = "0000-00-00 00:00:00"


# =============================================================================
# Enums
# =============================================================================


class Rating(str, Enum):
    """Content rating filter."""

    GENERAL = "g"
    YOUTH = "y"
    PG = "pg"
    PG13 = "pg-13"
    R = "r"


class Format(str, Enum):
    """Response format hint (``fmt`` parameter)."""

    JSON = "json"
    HTML = "html"


class SortOrder(str, Enum):
    """Sort order for search results."""

    RECENT = "recent"
    RELEVANT = "relevant"


class Language(str, Enum):
    """Languages supported by the search endpoints (``lang`` parameter)."""

    SPANISH = "es"
    PORTUGUESE = "pt"
    INDONESIAN = "id"
    FRENCH = "fr"
    ARABIC = "ar"
    TURKISH = "tr"
    THAI = "th"
    VIETNAMESE = "vi"
    GERMAN = "de"
    ITALIAN = "it"
    JAPANESE = "ja"
    CHINESE_SIMPLIFIED = "zh-CN"
    CHINESE_TRADITIONAL = "zh-TW"
    RUSSIAN = "ru"
    KOREAN = "ko"
    POLISH = "pl"
    DUTCH = "nl"
    ROMANIAN = "ro"
    HUNGARIAN = "hu"
    SWEDISH = "sv"
    CZECH = "cs"
    HINDI = "hi"
    BENGALI = "bn"
    DANISH = "da"
    FARSI = "fa"
    FILIPINO = "tl"
    FINNISH = "fi"
    HEBREW = "iw"
    MALAY = "ms"
    NORWEGIAN = "no"
    UKRAINIAN = "uk"


# =============================================================================
# Request Models
# =============================================================================


class WireParams(BaseModel):
    """Query-string parameters of a single API call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_key: str | None = None
    query: str | None = Field(default=None, alias="q")
    limit: int | None = None
    offset: int | None = None
    rating: Rating | None = None
    format: Format | None = Field(default=None, alias="fmt")
    language: Language | None = Field(default=None, alias="lang")
    sort_by: SortOrder | None = Field(default=None, alias="sort")
    tag: str | None = None

    def with_api_key(self, api_key: str) -> "WireParams":
        """Return a copy carrying the given API key."""
        return self.model_copy(update={"api_key": api_key})

    def to_query(self) -> dict[str, str]:
        """Serialize to wire names, dropping unset and blank values."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return {key: str(value) for key, value in data.items() if value != ""}


class Request(BaseModel):
    """A logical search/trending query, possibly spanning many pages.

    ``throttle_duration_ms`` is three-valued: ``None`` (or 0) uses the
    default delay, a positive value is used as is, and ``NO_THROTTLE``
    disables the delay between pages.
    """

    model_config = ConfigDict(frozen=True)

    query: str = ""
    tag: str = ""
    rating: Rating | None = None
    format: Format | None = None
    language: Language | None = None
    sort_by: SortOrder | None = None

    max_page_number: int = Field(default=0, ge=0, description="0 means unbounded")
    limit_per_page: int = Field(default=0, ge=0, description="0 means server default")

    throttle_duration_ms: int | None = None

    def resolve_throttle(self, default_ms: int = DEFAULT_THROTTLE_MS) -> float:
        """Get the delay between two page fetches, in seconds."""
        if self.throttle_duration_ms == NO_THROTTLE:
            return 0.0
        if self.throttle_duration_ms is not None and self.throttle_duration_ms > 0:
            return self.throttle_duration_ms / 1000
        return default_ms / 1000

    def page_limit_reached(self, pages_emitted: int) -> bool:
        """Check whether the configured maximum page count is reached."""
        if self.max_page_number <= 0:
            return False
        return pages_emitted >= self.max_page_number

    def wire_params(self, offset: int) -> WireParams:
        """Build the parameters of the page starting at ``offset``."""
        return WireParams(
            query=self.query or None,
            limit=self.limit_per_page or None,
            offset=offset,
            rating=self.rating,
            format=self.format,
            language=self.language,
            sort_by=self.sort_by,
            tag=self.tag or None,
        )

    def single_params(self) -> WireParams:
        """Build the parameters of a random-item call."""
        return WireParams(
            rating=self.rating,
            format=self.format,
            tag=self.tag or None,
        )


# =============================================================================
# Response Models
# =============================================================================


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Rendition(BaseModel):
    """One size variant of a GIF, e.g. ``fixed_height`` or ``original``.

    Giphy sends the numbers as strings; they are coerced to ints.
    """

    url: str | None = None
    width: int | None = None
    height: int | None = None
    size: int | None = None
    frames: int | None = None
    mp4: str | None = None
    mp4_size: int | None = None
    webp: str | None = None
    webp_size: int | None = None

    @field_validator(
        "width", "height", "size", "frames", "mp4_size", "webp_size", mode="before"
    )
    @classmethod
    def blank_number_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)


class Giph(BaseModel):
    """A GIF or sticker returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    id: str = ""
    slug: str = ""
    url: str = ""
    bitly_url: str = ""
    bitly_gif_url: str = ""
    embed_url: str = ""
    owner: str = Field(default="", alias="username")
    source: str = ""
    rating: str = ""
    caption: str = ""
    title: str = ""
    content_url: str = ""
    source_tld: str = ""
    source_post_url: str = ""

    import_datetime: datetime | None = None
    trending_datetime: datetime | None = None

    images: dict[str, Rendition] = Field(default_factory=dict)

    # Flat fields sent by the random endpoints
    image_original_url: str = ""
    image_url: str = ""
    image_frames: int | None = None
    image_width: int | None = None
    image_height: int | None = None

    fixed_height_downsampled_url: str = ""
    fixed_height_downsampled_width: int | None = None
    fixed_height_downsampled_height: int | None = None

    fixed_height_small_url: str = ""
    fixed_height_small_width: int | None = None
    fixed_height_small_height: int | None = None

    fixed_height_small_still_url: str = ""
    fixed_height_small_still_width: int | None = None
    fixed_height_small_still_height: int | None = None

    fixed_width_downsampled_url: str = ""
    fixed_width_downsampled_width: int | None = None
    fixed_width_downsampled_height: int | None = None

    fixed_width_small_url: str = ""
    fixed_width_small_width: int | None = None
    fixed_width_small_height: int | None = None

    fixed_width_small_still_url: str = ""
    fixed_width_small_still_width: int | None = None
    fixed_width_small_still_height: int | None = None

    @field_validator("import_datetime", "trending_datetime", mode="before")
    @classmethod
    def parse_giphy_time(cls, v: Any) -> Any:
        """Parse Giphy's ``YYYY-MM-DD HH:MM:SS`` timestamps.

        Empty strings and the all-zero sentinel mean "no date".
        """
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip()
            if not v or v == BLANK_GIPHY_TIME:
                return None
            return datetime.strptime(v, GIPHY_TIME_FORMAT)
        return v

    @field_validator(
        "image_frames",
        "image_width",
        "image_height",
        "fixed_height_downsampled_width",
        "fixed_height_downsampled_height",
        "fixed_height_small_width",
        "fixed_height_small_height",
        "fixed_height_small_still_width",
        "fixed_height_small_still_height",
        "fixed_width_downsampled_width",
        "fixed_width_downsampled_height",
        "fixed_width_small_width",
        "fixed_width_small_height",
        "fixed_width_small_still_width",
        "fixed_width_small_still_height",
        mode="before",
    )
    @classmethod
    def blank_number_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def is_blank(self) -> bool:
        """Check whether the payload actually described an item.

        Every real GIF or sticker has an id; a response whose ``data``
        decodes to an item without one carried nothing.
        """
        return not self.id

    def get_image_url(self, size: str = "original") -> str | None:
        """Get the URL of a rendition.

        Args:
            size: Rendition name (original, fixed_height, fixed_width, ...)

        Returns:
            URL or None if the rendition is missing
        """
        rendition = self.images.get(size)
        if rendition is None:
            return None
        return rendition.url

    def get_sizes(self) -> list[str]:
        """Get the names of the available renditions."""
        return sorted(self.images)


class Pagination(BaseModel):
    """Pagination metadata of a paged response."""

    total_count: int = 0
    offset: int = 0
    count: int = 0


class PageResponse(BaseModel):
    """Body of a paged endpoint (search, trending)."""

    data: list[Giph] = Field(default_factory=list)
    pagination: Pagination | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


@dataclass
class Page:
    """One unit of a page stream.

    A page with an ``error`` is the last page of its stream.
    """

    page_number: int
    giphs: list[Giph] = field(default_factory=list)
    error: GiphyError | None = None
    pagination: Pagination | None = None

    @property
    def ok(self) -> bool:
        """Check if the page was fetched successfully."""
        return self.error is None
