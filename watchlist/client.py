"""Wiring of the synchronization engine around a single HTTP client."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

import httpx

from .aggregates import CatalogView, build_catalog_view
from .config import Settings, get_settings
from .services.catalog import CatalogSync
from .services.gateway import RemoteGateway
from .services.images import CoverImages
from .services.mutations import OptimisticMutationController
from .services.notifications import NotificationLifecycle
from .services.refresh import RefreshOrchestrator
from .services.search import SearchCoordinator
from .state import AppState

logger = logging.getLogger(__name__)


class WatchlistClient:
    """All controllers sharing one :class:`AppState` and one gateway."""

    def __init__(
        self,
        settings: Settings,
        gateway: RemoteGateway,
        state: AppState | None = None,
    ):
        self.settings = settings
        self.state = state if state is not None else AppState()
        self.gateway = gateway
        self.catalog = CatalogSync(settings, self.state, gateway)
        self.search = SearchCoordinator(settings, self.state, gateway)
        self.mutations = OptimisticMutationController(
            settings, self.state, gateway, self.catalog
        )
        self.notifications = NotificationLifecycle(self.state, gateway)
        self.refresh = RefreshOrchestrator(
            self.state, gateway, self.catalog, self.mutations, self.notifications
        )
        self.images = CoverImages(gateway, settings.api_base)

    def view(self) -> CatalogView:
        """Recompute the render-ready catalog from the current state."""

        return build_catalog_view(
            self.state.items,
            api_base=self.settings.api_base,
            deleted_ids=self.state.deleted_ids,
            busy_ids=self.state.busy_ids,
            known_contributors=self.state.contributors,
        )

    async def start(self, *, load: bool = True) -> None:
        if load:
            await self.catalog.load()
            await self.notifications.load()
            await self.catalog.load_recommendations()
        interval = self.settings.auto_refresh_interval_seconds
        if interval:
            logger.info("Scheduling series refresh every %ss", interval)
            self.refresh.start(interval)

    async def stop(self) -> None:
        await self.refresh.stop()
        self.search.reset()
        await self.mutations.drain()

    async def select_contributor(self, added_by: str | None) -> None:
        """Switch the contributor tab: filter the catalog and its recommendations."""

        await self.catalog.set_filters(
            watch_status=self.state.filters.watch_status, added_by=added_by
        )
        await self.catalog.load_recommendations(added_by)

    async def dismiss_notification(self, notification_id: str) -> bool:
        dismissed = await self.notifications.dismiss(notification_id)
        if dismissed:
            await self.notifications.load()
        return dismissed


@asynccontextmanager
async def create_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    load: bool = True,
) -> AsyncIterator[WatchlistClient]:
    """Open an HTTP session, start the engine and close both on exit."""

    resolved = settings or get_settings()
    async with AsyncExitStack() as exit_stack:
        http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=resolved.api_base,
                timeout=httpx.Timeout(resolved.request_timeout_seconds, connect=5.0),
                transport=transport,
            )
        )
        client = WatchlistClient(resolved, RemoteGateway(resolved, http_client))
        await client.start(load=load)
        try:
            yield client
        finally:
            await client.stop()
