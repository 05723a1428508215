"""Explicit application state shared by the controllers.

Every controller receives the same :class:`AppState` instance and is the only
writer of its own slice. All writes happen on the event loop thread, so the
struct carries no locks.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Literal

from .models import (
    CatalogItem,
    ContentType,
    MetadataCandidate,
    Notification,
    RecommendationCandidate,
    WatchStatus,
)

NoticeLevel = Literal["success", "info", "error"]

_notice_ids = itertools.count(1)


@dataclass(slots=True)
class Notice:
    """A transient, dismissible message shown to the user."""

    level: NoticeLevel
    message: str
    id: int = field(default_factory=lambda: next(_notice_ids))


@dataclass(slots=True)
class CatalogFilters:
    watch_status: WatchStatus | None = None
    added_by: str | None = None

    def is_empty(self) -> bool:
        return self.watch_status is None and not self.added_by


@dataclass(slots=True)
class SearchState:
    """Search-as-you-type slice of the add/edit form."""

    kind: ContentType = "MOVIE"
    query: str = ""
    results: list[MetadataCandidate] = field(default_factory=list)
    popup_open: bool = False
    loading: bool = False


@dataclass(slots=True)
class RecommendationState:
    added_by: str | None = None
    items: list[RecommendationCandidate] = field(default_factory=list)
    loading: bool = False
    error: str | None = None


@dataclass
class AppState:
    """Client-side cache of the remote catalog plus UI-facing bookkeeping."""

    items: list[CatalogItem] = field(default_factory=list)
    filters: CatalogFilters = field(default_factory=CatalogFilters)
    contributors: tuple[str, ...] | None = None
    catalog_query: str = ""
    loading: bool = False
    load_error: str | None = None

    deleted_ids: set[str] = field(default_factory=set)
    busy_ids: set[str] = field(default_factory=set)
    # Local priority values not yet confirmed by the store, keyed by item id.
    pending_priority: dict[str, int] = field(default_factory=dict)

    search: SearchState = field(default_factory=SearchState)
    recommendations: RecommendationState = field(default_factory=RecommendationState)

    notifications: list[Notification] = field(default_factory=list)
    dismissing_ids: set[str] = field(default_factory=set)

    notices: list[Notice] = field(default_factory=list)
    bulk_refresh_running: bool = False
    reload_count: int = 0

    def find(self, item_id: str) -> CatalogItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def replace_item(self, item: CatalogItem) -> bool:
        """Swap the cached record with the same id; return whether it existed."""

        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return True
        return False

    def replace_catalog(self, items: list[CatalogItem]) -> None:
        """Adopt a full catalog listing, dropping soft-deleted rows."""

        self.items = [self.with_pending_priority(item) for item in items]
        present = {item.id for item in self.items}
        self.deleted_ids.clear()
        self.busy_ids.intersection_update(present)
        self.reload_count += 1

    def with_pending_priority(self, item: CatalogItem) -> CatalogItem:
        """Return ``item`` showing the priority still being pushed, if any."""

        target = self.pending_priority.get(item.id)
        if target is None or target == item.priority:
            return item
        return item.model_copy(update={"priority": target})

    def is_inert(self, item_id: str) -> bool:
        return item_id in self.deleted_ids or item_id in self.busy_ids

    def push_notice(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.notices.append(notice)
        return notice

    def dismiss_notice(self, notice_id: int) -> None:
        self.notices = [notice for notice in self.notices if notice.id != notice_id]

    def errors(self) -> list[str]:
        return [notice.message for notice in self.notices if notice.level == "error"]
