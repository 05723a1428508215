"""New-season checks for tracked series."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from ..models import BulkRefreshResult, CatalogItem
from ..state import AppState
from .catalog import CatalogSync
from .gateway import RemoteError, RemoteGateway
from .mutations import OptimisticMutationController
from .notifications import NotificationLifecycle

logger = logging.getLogger(__name__)


def summarize_refresh(result: BulkRefreshResult) -> str:
    if result.updated_count > 0:
        return (
            f"Checked {result.total_processed} series: "
            f"{result.updated_count} updated, {result.failure_count} failed."
        )
    return f"Checked {result.total_processed} series. No new seasons found."


class RefreshOrchestrator:
    """Runs the bulk season scan and the per-series season adjustments."""

    def __init__(
        self,
        state: AppState,
        gateway: RemoteGateway,
        catalog: CatalogSync,
        mutations: OptimisticMutationController,
        notifications: NotificationLifecycle,
    ):
        self._state = state
        self._gateway = gateway
        self._catalog = catalog
        self._mutations = mutations
        self._notifications = notifications
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._state.bulk_refresh_running

    async def refresh_all(self) -> BulkRefreshResult | None:
        """Scan every series for new seasons; a second call while busy is a no-op."""

        if self._state.bulk_refresh_running:
            logger.debug("Bulk refresh already running; ignoring request")
            return None

        self._state.bulk_refresh_running = True
        try:
            return await self._run_bulk_refresh()
        finally:
            self._state.bulk_refresh_running = False

    async def _run_bulk_refresh(self) -> BulkRefreshResult | None:
        try:
            result = await self._gateway.refresh_all_series()
        except RemoteError as exc:
            logger.warning("Bulk season refresh failed: %s", exc.message)
            self._state.push_notice(
                "error", f"Failed to check series for new seasons. {exc.message}"
            )
            return None

        logger.info(
            "Bulk refresh finished. Total: %s, Updated: %s, Failed: %s",
            result.total_processed,
            result.updated_count,
            result.failure_count,
        )
        if result.updated_count > 0:
            # Partial failures are part of the summary, not an error.
            await self._catalog.reload()
            await self._notifications.load()
            self._state.push_notice("success", summarize_refresh(result))
        else:
            self._state.push_notice("info", summarize_refresh(result))
        return result

    async def refresh_series(self, series_id: str) -> CatalogItem | None:
        """Sync a single series' season count with the metadata provider."""

        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.refresh_series(item.id)

        return await self._mutations.apply_remote(series_id, "refresh seasons", _call)

    async def add_season(self, series_id: str) -> CatalogItem | None:
        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.add_season(item.id)

        return await self._mutations.apply_remote(series_id, "add season", _call)

    async def remove_season(self, series_id: str) -> CatalogItem | None:
        """Drop the last season; the store refuses when only one remains."""

        async def _call(item: CatalogItem) -> CatalogItem:
            return await self._gateway.remove_season(item.id)

        return await self._mutations.apply_remote(series_id, "remove season", _call)

    def start(self, interval_seconds: float) -> None:
        """Run :meth:`refresh_all` every ``interval_seconds`` in the background."""

        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._refresh_loop(interval_seconds))

    async def stop(self) -> None:
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._loop_task
        self._loop_task = None

    async def _refresh_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.refresh_all()
            except Exception as exc:  # pragma: no cover - background safety net
                logger.exception("Scheduled series refresh failed: %s", exc)
