"""Utility helpers for the watchlist client."""

from __future__ import annotations

import re
from typing import Iterable


ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(value: str | None) -> bool:
    """Return whether ``value`` is an external http(s) reference."""

    if not value:
        return False
    return bool(ABSOLUTE_URL_RE.match(value.strip()))


def clamp_priority(value: int | None) -> int:
    """Return a priority that is never negative."""

    if value is None:
        return 0
    return max(0, int(value))


def normalize_genres(values: Iterable[object] | None) -> list[str]:
    """Strip, drop blanks and deduplicate genres while keeping first-seen order."""

    if not values:
        return []
    cleaned: list[str] = []
    for value in values:
        if value is None:
            continue
        genre = str(value).strip()
        if genre and genre not in cleaned:
            cleaned.append(genre)
    return cleaned


def parse_genres(text: str | None) -> list[str]:
    """Parse the comma separated genre field of the add/edit forms."""

    if not text:
        return []
    return normalize_genres(text.split(","))


def strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
