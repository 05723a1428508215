"""Client-side synchronization engine for the watchlist tracker."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["WatchlistClient", "create_client"]


def __getattr__(name: str) -> Any:
    if name in __all__:
        module = import_module("watchlist.client")
        return getattr(module, name)
    raise AttributeError(f"module 'watchlist' has no attribute {name}")
