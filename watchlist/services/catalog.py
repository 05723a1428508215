"""Full catalog loads, catalog search and the recommendations strip."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..aggregates import contributors
from ..config import Settings
from ..models import CatalogItem, RecommendationCandidate, WatchStatus
from ..state import AppState, CatalogFilters
from .gateway import RemoteError, RemoteGateway

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load catalog. Make sure the catalog service is running."
SEARCH_ERROR_MESSAGE = "Failed to search catalog."
RECOMMENDATION_ERROR_MESSAGE = "Failed to load recommendations"


class CatalogSync:
    """Replaces the cached catalog with authoritative listings.

    Loads may overlap (a filter click during a reload, a reload forced by a
    failed mutation); only the most recently issued one is applied.
    """

    def __init__(self, settings: Settings, state: AppState, gateway: RemoteGateway):
        self._state = state
        self._gateway = gateway
        self._recommendation_count = settings.recommendation_count
        self._generation = 0
        self._recommendation_generation = 0

    async def load(
        self,
        filters: CatalogFilters | None = None,
        *,
        refresh_contributors: bool = False,
    ) -> bool:
        """Fetch the catalog for ``filters`` (or the current ones)."""

        if filters is not None:
            self._state.filters = filters
        self._state.catalog_query = ""
        active = self._state.filters

        async def _fetch() -> list[CatalogItem]:
            return await self._gateway.list_catalog(
                watch_status=active.watch_status, added_by=active.added_by
            )

        return await self._apply_listing(
            _fetch,
            unfiltered=active.is_empty(),
            refresh_contributors=refresh_contributors,
            error_message=LOAD_ERROR_MESSAGE,
        )

    async def set_filters(
        self, *, watch_status: WatchStatus | None = None, added_by: str | None = None
    ) -> bool:
        return await self.load(
            CatalogFilters(watch_status=watch_status, added_by=added_by or None)
        )

    async def search(self, query: str) -> bool:
        """Free-text search over the catalog; an empty query reloads everything."""

        term = query.strip()
        if not term:
            return await self.load()
        self._state.catalog_query = term

        async def _fetch() -> list[CatalogItem]:
            return await self._gateway.search_catalog(term)

        return await self._apply_listing(
            _fetch,
            unfiltered=False,
            refresh_contributors=False,
            error_message=SEARCH_ERROR_MESSAGE,
        )

    async def reset(self) -> bool:
        """Drop the search query and filters, then reload."""

        return await self.load(CatalogFilters())

    async def reload(self, *, refresh_contributors: bool = True) -> bool:
        """Re-run the current listing so the view matches the store again."""

        if self._state.catalog_query:
            return await self.search(self._state.catalog_query)
        return await self.load(refresh_contributors=refresh_contributors)

    async def load_recommendations(
        self, added_by: str | None = None
    ) -> list[RecommendationCandidate]:
        self._recommendation_generation += 1
        generation = self._recommendation_generation
        slice_ = self._state.recommendations
        slice_.added_by = added_by
        slice_.loading = True
        slice_.error = None
        try:
            items = await self._gateway.list_recommendations(
                count=self._recommendation_count, added_by=added_by
            )
        except RemoteError as exc:
            if generation == self._recommendation_generation:
                logger.warning("Fetching recommendations failed: %s", exc.message)
                slice_.error = RECOMMENDATION_ERROR_MESSAGE
                slice_.loading = False
            return []
        if generation != self._recommendation_generation:
            return []
        slice_.items = list(items)
        slice_.loading = False
        return slice_.items

    async def _apply_listing(
        self,
        fetch: Callable[[], Awaitable[list[CatalogItem]]],
        *,
        unfiltered: bool,
        refresh_contributors: bool,
        error_message: str,
    ) -> bool:
        self._generation += 1
        generation = self._generation
        state = self._state
        state.loading = True
        state.load_error = None

        try:
            items = await fetch()
            everything: list[CatalogItem] | None = items if unfiltered else None
            if everything is None and (refresh_contributors or state.contributors is None):
                # Contributor tabs always come from the unfiltered catalog.
                everything = await self._gateway.list_catalog()
        except RemoteError as exc:
            if generation == self._generation:
                logger.warning("Catalog listing failed: %s", exc.message)
                state.load_error = error_message
                state.loading = False
            return False

        if generation != self._generation:
            logger.debug("Discarding superseded catalog listing #%s", generation)
            return False

        state.replace_catalog(items)
        if everything is not None:
            state.contributors = contributors(everything)
        state.loading = False
        logger.debug("Catalog listing #%s applied with %s items", generation, len(items))
        return True
