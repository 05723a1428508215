"""Pytest configuration and test helpers."""

from __future__ import annotations

import inspect
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, cast

import pytest

# Ensure the package and the sibling test helpers are importable when running
# tests without an editable install.
ROOT = Path(__file__).resolve().parents[1]
TESTS = Path(__file__).resolve().parent
for path in (ROOT, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from watchlist.config import Settings  # noqa: E402
from watchlist.models import CatalogItem  # noqa: E402
from watchlist.services.catalog import CatalogSync  # noqa: E402
from watchlist.services.gateway import RemoteGateway  # noqa: E402
from watchlist.services.mutations import OptimisticMutationController  # noqa: E402
from watchlist.services.notifications import NotificationLifecycle  # noqa: E402
from watchlist.services.refresh import RefreshOrchestrator  # noqa: E402
from watchlist.state import AppState  # noqa: E402

API_BASE = "http://store.test/api"


class StubGateway:
    """Stand-in for :class:`RemoteGateway` that records calls.

    Every public coroutine method is answered from a per-method queue filled
    with :meth:`script`; an entry may be a value, an exception to raise, or a
    callable (sync or async) invoked with the call arguments. When the queue
    is empty the value registered with :meth:`default` is returned.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self._queues: dict[str, list[Any]] = defaultdict(list)
        self._defaults: dict[str, Any] = {
            "list_catalog": [],
            "list_notifications": [],
            "list_recommendations": [],
        }

    def script(self, method: str, *results: Any) -> None:
        self._queues[method].extend(results)

    def default(self, method: str, value: Any) -> None:
        self._defaults[method] = value

    def calls_to(self, method: str) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == method]

    def image_url(self, image_id: str) -> str:
        return f"{API_BASE}/images/{image_id}"

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        async def _method(*args: Any, **kwargs: Any) -> Any:
            self.calls.append((name, args, kwargs))
            queue = self._queues.get(name)
            if queue:
                result = queue.pop(0)
            elif name in self._defaults:
                result = self._defaults[name]
            else:
                raise AssertionError(f"Unexpected gateway call: {name}")
            if isinstance(result, BaseException):
                raise result
            if callable(result):
                result = result(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            return result

        return _method


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base: dict[str, Any] = {
        "API_BASE_URL": API_BASE,
        "SEARCH_DEBOUNCE_SECONDS": 0.05,
        "SEARCH_MIN_CHARS": 3,
        "SEARCH_MAX_RESULTS": 5,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def make_item(item_id: str = "m1", **fields: Any) -> CatalogItem:
    data: dict[str, Any] = {"id": item_id, "title": f"Title {item_id}", "contentType": "MOVIE"}
    data.update(fields)
    return CatalogItem.model_validate(data)


def make_series(item_id: str = "s1", seasons: int = 3, **fields: Any) -> CatalogItem:
    data: dict[str, Any] = {
        "contentType": "SERIES",
        "seasons": [
            {"seasonNumber": number, "watchStatus": "UNWATCHED"}
            for number in range(1, seasons + 1)
        ],
    }
    data.update(fields)
    return make_item(item_id, **data)


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def state() -> AppState:
    return AppState()


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


class Engine:
    """Controllers wired over a shared state and stub gateway."""

    def __init__(self, settings: Settings, state: AppState, gateway: StubGateway):
        remote = cast(RemoteGateway, gateway)
        self.state = state
        self.gateway = gateway
        self.catalog = CatalogSync(settings, state, remote)
        self.mutations = OptimisticMutationController(settings, state, remote, self.catalog)
        self.notifications = NotificationLifecycle(state, remote)
        self.refresh = RefreshOrchestrator(
            state, remote, self.catalog, self.mutations, self.notifications
        )


@pytest.fixture
def engine(settings: Settings, state: AppState, gateway: StubGateway) -> Engine:
    return Engine(settings, state, gateway)
