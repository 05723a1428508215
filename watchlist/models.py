"""Pydantic models describing the remote store payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .utils import clamp_priority, normalize_genres, parse_genres, strip_or_none

ContentType = Literal["MOVIE", "SERIES"]
WatchStatus = Literal["WATCHED", "UNWATCHED"]


class Season(BaseModel):
    """Per-season watch state owned by a series."""

    model_config = ConfigDict(populate_by_name=True)

    season_number: int = Field(alias="seasonNumber", ge=1)
    watch_status: WatchStatus = Field(default="UNWATCHED", alias="watchStatus")


class CatalogItem(BaseModel):
    """Cached copy of a movie or series record owned by the remote store."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    content_type: ContentType | None = Field(default=None, alias="contentType")
    title: str = ""
    cover_image: str | None = Field(default=None, alias="coverImage")
    link: str | None = None
    comment: str | None = None
    added_by: str | None = Field(default=None, alias="addedBy")
    genres: list[str] = Field(default_factory=list)
    priority: int = 0
    watch_status: WatchStatus = Field(default="UNWATCHED", alias="watchStatus")
    date_added: datetime | None = Field(default=None, alias="dateAdded")
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    length: int | None = None

    seasons: list[Season] = Field(default_factory=list)
    has_new_seasons: bool = Field(default=False, alias="hasNewSeasons")
    series_status: str | None = Field(default=None, alias="seriesStatus")
    total_available_seasons: int | None = Field(
        default=None, alias="totalAvailableSeasons"
    )

    @field_validator("genres", mode="before")
    @classmethod
    def _clean_genres(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return parse_genres(value)
        return normalize_genres(value)  # type: ignore[arg-type]

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: object) -> int:
        return clamp_priority(value)  # type: ignore[arg-type]

    @field_validator("seasons", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("has_new_seasons", mode="before")
    @classmethod
    def _none_is_false(cls, value: object) -> object:
        return False if value is None else value

    @field_validator("seasons")
    @classmethod
    def _order_seasons(cls, value: list[Season]) -> list[Season]:
        return sorted(value, key=lambda season: season.season_number)

    @property
    def is_series(self) -> bool:
        return self.content_type == "SERIES"


class Notification(BaseModel):
    """New-season notice created by the remote refresh job."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    series_id: str | None = Field(default=None, alias="seriesId")
    series_title: str = Field(default="", alias="seriesTitle")
    message: str = ""
    new_seasons_count: int = Field(default=1, alias="newSeasonsCount", ge=1)
    created_at: datetime | None = Field(default=None, alias="createdAt")


class RecommendationCandidate(BaseModel):
    """Read-only projection returned by the recommendation endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = ""
    content_type: ContentType | None = Field(default=None, alias="contentType")
    cover_image: str | None = Field(default=None, alias="coverImage")
    link: str | None = None
    comment: str | None = None
    priority: int = 0
    added_by: str | None = Field(default=None, alias="addedBy")
    has_new_seasons: bool = Field(default=False, alias="hasNewSeasons")

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: object) -> int:
        return clamp_priority(value)  # type: ignore[arg-type]

    @field_validator("has_new_seasons", mode="before")
    @classmethod
    def _none_is_false(cls, value: object) -> object:
        return False if value is None else value


class BulkRefreshResult(BaseModel):
    """Tallies reported by the bulk new-season scan."""

    model_config = ConfigDict(populate_by_name=True)

    total_processed: int = Field(default=0, alias="totalProcessed")
    updated_count: int = Field(default=0, alias="updatedCount")
    failure_count: int = Field(default=0, alias="failureCount")
    success_count: int | None = Field(default=None, alias="successCount")

    @field_validator("total_processed", "updated_count", "failure_count", mode="before")
    @classmethod
    def _none_is_zero(cls, value: object) -> object:
        return 0 if value is None else value


class MetadataCandidate(BaseModel):
    """A single external metadata search hit."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str | None = None
    name: str | None = None
    overview: str | None = None
    poster_path: str | None = Field(
        default=None, validation_alias=AliasChoices("poster_path", "posterPath")
    )
    release_date: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "release_date", "releaseDate", "first_air_date", "firstAirDate"
        ),
    )

    @property
    def display_title(self) -> str:
        return self.title or self.name or ""

    @property
    def year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None


class EnrichmentResult(BaseModel):
    """Metadata returned when enriching a chosen search candidate."""

    model_config = ConfigDict(populate_by_name=True)

    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    title: str = ""
    genres: list[str] = Field(default_factory=list)
    total_seasons: int | None = Field(default=None, alias="totalSeasons")
    saved_image_id: str | None = Field(default=None, alias="savedImageId")
    poster_url: str | None = Field(default=None, alias="posterUrl")
    status: str | None = None
    overview: str | None = None
    length: int | None = None

    @field_validator("genres", mode="before")
    @classmethod
    def _clean_genres(cls, value: object) -> list[str]:
        return normalize_genres(value)  # type: ignore[arg-type]


class StoredImage(BaseModel):
    id: str


class ErrorBody(BaseModel):
    """Standard error body produced by the remote store."""

    model_config = ConfigDict(populate_by_name=True)

    status: int | None = None
    error: str | None = None
    message: str | None = None
    path: str | None = None
    validation_errors: list[dict[str, Any]] = Field(
        default_factory=list, alias="validationErrors"
    )

    @field_validator("validation_errors", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class ItemDraft(BaseModel):
    """Form data for creating or editing a catalog item."""

    content_type: ContentType = "MOVIE"
    title: str
    cover_image: str | None = None
    link: str | None = None
    comment: str | None = None
    added_by: str | None = None
    genres: list[str] = Field(default_factory=list)
    priority: int = 0
    season_count: int | None = Field(default=None, ge=1)

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Title is required")
        return stripped

    @field_validator("cover_image", "link", "comment", "added_by")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return strip_or_none(value)

    @field_validator("genres", mode="before")
    @classmethod
    def _parse_genres(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return parse_genres(value)
        return normalize_genres(value)  # type: ignore[arg-type]

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: object) -> int:
        return clamp_priority(value)  # type: ignore[arg-type]

    @model_validator(mode="after")
    def _series_needs_seasons(self) -> "ItemDraft":
        if self.content_type == "SERIES" and self.season_count is None:
            raise ValueError("Number of seasons must be at least 1")
        return self

    @classmethod
    def from_item(cls, item: CatalogItem) -> "ItemDraft":
        """Seed an edit form from the cached record."""

        return cls(
            content_type=item.content_type or "MOVIE",
            title=item.title or "Untitled",
            cover_image=item.cover_image,
            link=item.link,
            comment=item.comment,
            added_by=item.added_by,
            genres=list(item.genres),
            priority=item.priority,
            season_count=(len(item.seasons) or 1) if item.is_series else None,
        )

    def to_create_payload(self) -> dict[str, Any]:
        """Return the request body for ``POST /movies`` or ``POST /series``."""

        payload: dict[str, Any] = {
            "title": self.title,
            "coverImage": self.cover_image,
            "link": self.link,
            "comment": self.comment,
            "addedBy": self.added_by,
            "genres": self.genres or None,
            "priority": self.priority,
        }
        if self.content_type == "SERIES":
            payload["seasons"] = [
                {"seasonNumber": number, "watchStatus": "UNWATCHED"}
                for number in range(1, (self.season_count or 1) + 1)
            ]
            payload["seriesStatus"] = "ONGOING"
        return payload

    def to_update_payload(self, existing: CatalogItem) -> dict[str, Any]:
        """Return the ``PUT`` body, keeping the series' seasons and link intact."""

        payload: dict[str, Any] = {
            "title": self.title,
            "coverImage": self.cover_image or existing.cover_image,
            "comment": self.comment,
            "addedBy": self.added_by,
            "genres": self.genres or None,
            "priority": self.priority,
        }
        if existing.is_series:
            payload["seasons"] = [
                season.model_dump(by_alias=True) for season in existing.seasons
            ]
            payload["link"] = existing.link
        else:
            payload["link"] = self.link
        return payload
