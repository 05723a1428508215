"""Derived view state computed from cached catalog records.

Everything here is a pure function of its arguments: no I/O, no mutation of
the inputs, and the same input always yields an equal output. Series-level
watch status is always the server's field; it is never recomputed from the
season list because the store's roll-up rule may differ from "all seasons
watched".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import CatalogItem, ContentType, Season, WatchStatus
from .utils import is_absolute_url

STAR = "⭐"


@dataclass(frozen=True, slots=True)
class SeasonRollup:
    watched_count: int
    total: int
    progress_ratio: float

    @property
    def all_watched(self) -> bool:
        return self.total > 0 and self.watched_count == self.total

    @property
    def none_watched(self) -> bool:
        return self.watched_count == 0


@dataclass(frozen=True, slots=True)
class ItemView:
    """Render-ready projection of a single catalog row."""

    id: str
    title: str
    content_type: ContentType | None
    watch_status: WatchStatus
    priority: int
    priority_stars: str
    cover_image_url: str | None
    genres: tuple[str, ...]
    added_by: str | None
    rollup: SeasonRollup | None
    show_new_season_badge: bool
    deleted: bool
    busy: bool
    actions_enabled: bool
    can_remove_season: bool


@dataclass(frozen=True, slots=True)
class CatalogView:
    items: tuple[ItemView, ...]
    contributors: tuple[str, ...]

    @property
    def total(self) -> int:
        return len(self.items)


def season_rollup(seasons: Sequence[Season]) -> SeasonRollup:
    total = len(seasons)
    watched = sum(1 for season in seasons if season.watch_status == "WATCHED")
    ratio = watched / total if total else 0.0
    return SeasonRollup(watched_count=watched, total=total, progress_ratio=ratio)


def display_watch_status(item: CatalogItem) -> WatchStatus:
    return item.watch_status


def contributors(items: Iterable[CatalogItem]) -> tuple[str, ...]:
    """Distinct non-empty ``added_by`` values, sorted case-sensitively."""

    names = {item.added_by for item in items if item.added_by and item.added_by.strip()}
    return tuple(sorted(names))


def show_new_season_badge(item: CatalogItem) -> bool:
    # A watched series does not surface a stale badge.
    return bool(item.has_new_seasons) and display_watch_status(item) == "UNWATCHED"


def priority_stars(priority: int, *, cap: int | None = None) -> str:
    count = max(0, priority)
    if cap is not None:
        count = min(count, cap)
    return STAR * count


def resolve_cover_image(reference: str | None, api_base: str) -> str | None:
    """Map a stored cover reference to something a renderer can load."""

    if not reference or not reference.strip():
        return None
    if is_absolute_url(reference):
        return reference.strip()
    return f"{api_base.rstrip('/')}/images/{reference.strip()}"


def can_remove_season(item: CatalogItem) -> bool:
    # UX hint only; the store is the one that rejects the last removal.
    return item.is_series and len(item.seasons) > 1


def item_view(
    item: CatalogItem,
    *,
    api_base: str,
    deleted: bool = False,
    busy: bool = False,
) -> ItemView:
    rollup = season_rollup(item.seasons) if item.is_series else None
    actions_enabled = not (deleted or busy)
    return ItemView(
        id=item.id,
        title=item.title,
        content_type=item.content_type,
        watch_status=display_watch_status(item),
        priority=item.priority,
        priority_stars=priority_stars(item.priority),
        cover_image_url=resolve_cover_image(item.cover_image, api_base),
        genres=tuple(item.genres),
        added_by=item.added_by,
        rollup=rollup,
        show_new_season_badge=item.is_series and show_new_season_badge(item),
        deleted=deleted,
        busy=busy,
        actions_enabled=actions_enabled,
        can_remove_season=actions_enabled and can_remove_season(item),
    )


def build_catalog_view(
    items: Sequence[CatalogItem],
    *,
    api_base: str,
    deleted_ids: Iterable[str] = (),
    busy_ids: Iterable[str] = (),
    known_contributors: Sequence[str] | None = None,
) -> CatalogView:
    deleted = frozenset(deleted_ids)
    busy = frozenset(busy_ids)
    views = tuple(
        item_view(
            item,
            api_base=api_base,
            deleted=item.id in deleted,
            busy=item.id in busy,
        )
        for item in items
    )
    tabs = tuple(known_contributors) if known_contributors is not None else contributors(items)
    return CatalogView(items=views, contributors=tabs)
