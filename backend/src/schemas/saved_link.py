"""Pydantic schemas for saved-link endpoints."""
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, HttpUrl, field_validator

from models.enums import Platform

MAX_LINK_TAG_LENGTH = 30


def validate_and_normalize_link_tags(tags: list[str]) -> list[str]:
    """
    Normalize saved-link tags: trim, drop empties and duplicates.

    Case is preserved (links are private to one owner, who chose the
    spelling). Each tag is capped at 30 characters.
    """
    normalized: list[str] = []
    for tag in tags:
        normalized_tag = tag.strip()
        if not normalized_tag or normalized_tag in normalized:
            continue
        if len(normalized_tag) > MAX_LINK_TAG_LENGTH:
            raise ValueError(
                f"Invalid tag '{normalized_tag}': tags are limited to "
                f"{MAX_LINK_TAG_LENGTH} characters.",
            )
        normalized.append(normalized_tag)
    return normalized


class LinkMetadata(BaseModel):
    """Free-text details scraped or typed in for a link."""

    model_config = ConfigDict(str_strip_whitespace=True)

    author: str | None = None
    duration: str | None = None
    difficulty: str | None = None
    servings: str | None = None


class SavedLinkCreate(BaseModel):
    """
    Schema for saving a new link.

    Owner, visit count and timestamps are not part of the schema; any such
    keys in the payload are dropped.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    # HttpUrl normalizes root domains with trailing slash (example.com -> example.com/)
    # but preserves paths as-is (example.com/page stays example.com/page)
    url: HttpUrl
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    thumbnail: str | None = None
    # None or OTHER means "detect from the url host"
    platform: Platform | None = None
    tags: list[str] = []
    user_notes: str = Field(default="", max_length=500)
    is_public: bool = False
    metadata: LinkMetadata | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize and validate tags."""
        if v is None:
            return []
        return validate_and_normalize_link_tags(v)


class SavedLinkUpdate(BaseModel):
    """Partial update. Identity, owner, visit count and timestamps are immutable."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    url: HttpUrl | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    thumbnail: str | None = None
    platform: Platform | None = None
    tags: list[str] | None = None
    user_notes: str | None = Field(default=None, max_length=500)
    is_public: bool | None = None
    metadata: LinkMetadata | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        """Normalize and validate tags if provided."""
        if v is None:
            return None
        return validate_and_normalize_link_tags(v)


class SavedLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_subject: str
    url: str
    title: str
    description: str
    thumbnail: str | None
    platform: Platform
    tags: list[str]
    user_notes: str
    visit_count: int
    is_public: bool
    metadata: LinkMetadata | None = Field(
        default=None,
        validation_alias=AliasChoices("link_metadata", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class SavedLinkListResponse(BaseModel):
    """Schema for paginated saved-link list responses."""

    items: list[SavedLinkResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class BulkDeleteRequest(BaseModel):
    ids: list[int]


class BulkDeleteResponse(BaseModel):
    deleted_count: int


class SavedLinkStats(BaseModel):
    """Aggregates over one owner's links."""

    total_links: int
    links_by_platform: dict[str, int]
    links_by_tag: dict[str, int]  # Top tags only, most used first
    total_visits: int


class LinkPreviewRequest(BaseModel):
    url: HttpUrl


class LinkPreviewResponse(BaseModel):
    """Best-effort preview of a link before it is saved."""

    url: str
    final_url: str
    platform: Platform
    title: str
    description: str
    thumbnail: str | None = None
    metadata: LinkMetadata = Field(default_factory=LinkMetadata)
    error: str | None = None  # Error message if fetch failed
