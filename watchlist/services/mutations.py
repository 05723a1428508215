"""Local-first and confirm-first catalog mutations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..config import Settings
from ..models import CatalogItem, ItemDraft, WatchStatus
from ..state import AppState
from ..utils import clamp_priority
from .catalog import CatalogSync
from .gateway import RemoteError, RemoteGateway

logger = logging.getLogger(__name__)

RemoteCall = Callable[[CatalogItem], Awaitable[CatalogItem]]


def _flip(status: WatchStatus) -> WatchStatus:
    return "UNWATCHED" if status == "WATCHED" else "WATCHED"


class OptimisticMutationController:
    """Applies user intents to the cached catalog.

    Priority nudges are applied locally first and pushed in the background.
    Everything else waits for the store and adopts the record it returns;
    the row is marked busy for the duration so its controls are disabled.
    A failed confirm-first mutation raises an error notice and forces a full
    reload so no unconfirmed value stays on screen.
    """

    def __init__(
        self,
        settings: Settings,
        state: AppState,
        gateway: RemoteGateway,
        catalog: CatalogSync,
    ):
        self._state = state
        self._gateway = gateway
        self._catalog = catalog
        self._rollback_priority = settings.priority_rollback_on_failure
        self._confirmed_priority: dict[str, int] = {}
        self._priority_jobs: dict[str, asyncio.Task[None]] = {}
        self._creating = False

    # Priority ------------------------------------------------------------

    def increment_priority(self, item_id: str) -> int | None:
        return self.nudge_priority(item_id, 1)

    def decrement_priority(self, item_id: str) -> int | None:
        return self.nudge_priority(item_id, -1)

    def nudge_priority(self, item_id: str, delta: int) -> int | None:
        """Move priority by one star immediately; the store catches up later."""

        if delta not in (1, -1):
            raise ValueError("Priority moves by exactly one step")
        item = self._state.find(item_id)
        if item is None or item_id in self._state.deleted_ids:
            return None

        value = clamp_priority(item.priority + delta)
        if value == item.priority:
            return value

        self._confirmed_priority.setdefault(item_id, item.priority)
        self._state.replace_item(item.model_copy(update={"priority": value}))
        self._state.pending_priority[item_id] = value
        self._schedule_priority_push(item)
        return value

    async def drain(self) -> None:
        """Wait for all background priority pushes to finish."""

        while self._priority_jobs:
            await asyncio.gather(*self._priority_jobs.values(), return_exceptions=True)

    def _schedule_priority_push(self, item: CatalogItem) -> None:
        existing = self._priority_jobs.get(item.id)
        if existing and not existing.done():
            return

        async def _runner() -> None:
            try:
                await self._push_priority(item)
            except Exception as exc:  # pragma: no cover - background safety net
                logger.exception("Priority push for %s failed: %s", item.id, exc)
            finally:
                self._priority_jobs.pop(item.id, None)

        self._priority_jobs[item.id] = asyncio.create_task(_runner())

    async def _push_priority(self, item: CatalogItem) -> None:
        # One worker per item always sends the newest local value, so rapid
        # nudges can never land on the store out of order.
        while True:
            target = self._state.pending_priority.get(item.id)
            if target is None:
                return
            try:
                await self._gateway.set_priority(
                    item.id, item.content_type or "MOVIE", target
                )
            except RemoteError as exc:
                logger.warning(
                    "Priority update for %s to %s failed: %s", item.id, target, exc.message
                )
                self._priority_failed(item.id, target)
                continue

            if self._state.pending_priority.get(item.id) == target:
                self._state.pending_priority.pop(item.id, None)
                self._confirmed_priority.pop(item.id, None)
                return
            self._confirmed_priority[item.id] = target

    def _priority_failed(self, item_id: str, failed: int) -> None:
        confirmed = self._confirmed_priority.get(item_id, failed)
        if not self._rollback_priority:
            # The next full reload brings the store's value back.
            if self._state.pending_priority.get(item_id) == failed:
                self._state.pending_priority.pop(item_id, None)
                self._confirmed_priority.pop(item_id, None)
            return

        restored = confirmed
        current = self._state.find(item_id)
        if current is not None and item_id not in self._state.deleted_ids:
            restored = clamp_priority(current.priority - (failed - confirmed))
            self._state.replace_item(current.model_copy(update={"priority": restored}))

        if restored == confirmed:
            self._state.pending_priority.pop(item_id, None)
            self._confirmed_priority.pop(item_id, None)
        else:
            self._state.pending_priority[item_id] = restored

    # Watch status --------------------------------------------------------

    async def toggle_watch_status(self, item_id: str) -> CatalogItem | None:
        item = self._state.find(item_id)
        if item is None:
            return None
        return await self.set_watch_status(item_id, _flip(item.watch_status))

    async def set_watch_status(
        self, item_id: str, status: WatchStatus
    ) -> CatalogItem | None:
        """Set a movie's status, or every season of a series at once."""

        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.set_watch_status(
                item.id, item.content_type or "MOVIE", status
            )

        return await self.apply_remote(item_id, "update watch status", _call)

    async def toggle_season(
        self, series_id: str, season_number: int
    ) -> CatalogItem | None:
        series = self._state.find(series_id)
        if series is None:
            return None
        season = next(
            (entry for entry in series.seasons if entry.season_number == season_number),
            None,
        )
        if season is None:
            logger.debug("Series %s has no season %s", series_id, season_number)
            return None
        return await self.set_season_status(
            series_id, season_number, _flip(season.watch_status)
        )

    async def set_season_status(
        self, series_id: str, season_number: int, status: WatchStatus
    ) -> CatalogItem | None:
        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.set_season_watch_status(
                item.id, season_number, status
            )

        return await self.apply_remote(series_id, "update season status", _call)

    # Create / update / delete -------------------------------------------

    async def create_item(self, draft: ItemDraft) -> CatalogItem | None:
        """Create a movie or series, then reload so the store decides placement."""

        if self._creating:
            return None
        self._creating = True
        try:
            record = await self._gateway.create_item(
                draft.content_type, draft.to_create_payload()
            )
        except RemoteError as exc:
            logger.warning("Creating %r failed: %s", draft.title, exc.message)
            self._state.push_notice(
                "error",
                f"Failed to save {draft.content_type.lower()}. {exc.message}",
            )
            await self._catalog.reload()
            return None
        finally:
            self._creating = False

        logger.info("Created %s %s (%s)", draft.content_type.lower(), record.id, record.title)
        await self._catalog.reload(refresh_contributors=True)
        if record.content_type is None:
            record = record.model_copy(update={"content_type": draft.content_type})
        return record

    async def update_item(self, item_id: str, draft: ItemDraft) -> CatalogItem | None:
        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.update_item(
                item.id, item.content_type or "MOVIE", draft.to_update_payload(item)
            )

        return await self.apply_remote(item_id, "update item", _call)

    async def delete_item(self, item_id: str) -> bool:
        """Delete remotely, then keep the row visible but inert until reload."""

        async def _call(item: CatalogItem) -> CatalogItem:
            await self._gateway.delete_item(item.id, item.content_type or "MOVIE")
            return item

        confirmed = await self.apply_remote(item_id, "delete item", _call, adopt=False)
        if confirmed is None:
            return False
        self._state.deleted_ids.add(item_id)
        self._state.pending_priority.pop(item_id, None)
        logger.info("Deleted %s; row kept inert until the next reload", item_id)
        return True

    # Shared confirm-first path -------------------------------------------

    async def apply_remote(
        self,
        item_id: str,
        action: str,
        call: RemoteCall,
        *,
        adopt: bool = True,
    ) -> CatalogItem | None:
        """Run ``call`` for an item and adopt the store's canonical record.

        Returns ``None`` when the intent is ignored (unknown, busy or deleted
        row) or when the store rejects it. With ``adopt=False`` the cached
        record is returned untouched on success.
        """

        item = self._state.find(item_id)
        if item is None:
            logger.debug("Ignoring %s for unknown item %s", action, item_id)
            return None
        if self._state.is_inert(item_id):
            logger.debug("Ignoring %s for inert item %s", action, item_id)
            return None

        self._state.busy_ids.add(item_id)
        try:
            record = await call(item)
        except RemoteError as exc:
            logger.warning("Failed to %s for %s: %s", action, item_id, exc.message)
            self._state.push_notice("error", f"Failed to {action}. {exc.message}")
            await self._catalog.reload()
            return None
        finally:
            self._state.busy_ids.discard(item_id)

        if not adopt:
            return item
        return self._adopt(item, record)

    def _adopt(self, previous: CatalogItem, record: CatalogItem) -> CatalogItem:
        if record.content_type is None:
            record = record.model_copy(update={"content_type": previous.content_type})
        record = self._state.with_pending_priority(record)
        if not self._state.replace_item(record):
            logger.debug("Item %s left the view before its update landed", record.id)
        return record
