"""Search-as-you-type against the external metadata provider."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from ..config import Settings
from ..models import ContentType, EnrichmentResult, MetadataCandidate
from ..state import AppState
from .gateway import RemoteError, RemoteGateway

logger = logging.getLogger(__name__)

SearchOrigin = Literal["auto", "manual"]
AUTO: SearchOrigin = "auto"
MANUAL: SearchOrigin = "manual"


class SearchCoordinator:
    """Debounces title lookups and keeps only the latest request alive.

    Each issued request is stamped with a generation number. A response is
    applied only while its generation is still the newest and the form is
    still editing the same content type; anything else is dropped, even when
    the transport delivers it after the task was cancelled.
    """

    def __init__(self, settings: Settings, state: AppState, gateway: RemoteGateway):
        self._state = state
        self._gateway = gateway
        self._delay = settings.search_debounce_seconds
        self._min_chars = settings.search_min_chars
        self._max_results = settings.search_max_results
        self._generation = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None

    @property
    def has_pending_work(self) -> bool:
        return any(
            task is not None and not task.done()
            for task in (self._debounce_task, self._inflight)
        )

    def query(self, text: str, origin: SearchOrigin = AUTO) -> None:
        """Handle a keystroke (``auto``) or an explicit search button press."""

        search = self._state.search
        search.query = text
        term = text.strip()
        if not term:
            self.reset()
            return

        if origin == MANUAL:
            self._cancel_debounce()
            self._start_request(term)
            return

        if len(term) < self._min_chars:
            # Only pending keystroke work is dropped; a manual lookup keeps running.
            self._cancel_debounce()
            search.results = []
            search.popup_open = False
            return

        self._cancel_debounce()
        self._debounce_task = asyncio.create_task(self._fire_after_delay(term))

    def set_kind(self, kind: ContentType) -> None:
        """Switch between movie and series lookups, dropping all search state."""

        if kind == self._state.search.kind:
            return
        self.reset()
        self._state.search.kind = kind

    def reset(self) -> None:
        """Cancel pending and in-flight lookups and clear the result popup."""

        self._cancel_debounce()
        self._cancel_inflight()
        self._generation += 1
        search = self._state.search
        search.results = []
        search.popup_open = False
        search.loading = False

    async def choose(
        self, candidate: MetadataCandidate, *, download_image: bool = True
    ) -> EnrichmentResult | None:
        """Close the popup and fetch full metadata for the picked candidate."""

        kind = self._state.search.kind
        self.reset()
        self._state.search.query = candidate.display_title
        try:
            result = await self._gateway.enrich_external_metadata(
                kind, candidate.id, download_image=download_image
            )
        except RemoteError as exc:
            logger.warning(
                "Enrichment failed for %s %s: %s", kind, candidate.id, exc.message
            )
            self._state.push_notice(
                "error",
                f"Could not load details for {candidate.display_title or candidate.id}.",
            )
            return None
        if self._state.search.kind != kind:
            logger.debug("Dropping enrichment for %s after content type switch", candidate.id)
            return None
        return result

    async def settle(self) -> None:
        """Wait until no debounce timer or lookup is outstanding."""

        while True:
            pending = [
                task
                for task in (self._debounce_task, self._inflight)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def _fire_after_delay(self, term: str) -> None:
        await asyncio.sleep(self._delay)
        self._debounce_task = None
        self._start_request(term)

    def _start_request(self, term: str) -> None:
        self._cancel_inflight()
        self._generation += 1
        self._state.search.loading = True
        self._inflight = asyncio.create_task(
            self._run(term, self._state.search.kind, self._generation)
        )

    async def _run(self, term: str, kind: ContentType, generation: int) -> None:
        try:
            results = await self._gateway.search_external_metadata(kind, term)
        except RemoteError as exc:
            if not self._is_current(generation, kind):
                return
            logger.warning("Metadata search for %r failed: %s", term, exc.message)
            self._apply([])
            return

        if not self._is_current(generation, kind):
            logger.debug("Discarding stale search results for %r", term)
            return
        self._apply(results)

    def _apply(self, results: list[MetadataCandidate]) -> None:
        search = self._state.search
        search.results = list(results[: self._max_results])
        search.popup_open = bool(search.results)
        search.loading = False

    def _is_current(self, generation: int, kind: ContentType) -> bool:
        return generation == self._generation and kind == self._state.search.kind

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def _cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
