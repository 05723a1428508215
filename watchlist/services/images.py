"""Cover image download and resolution helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from ..aggregates import resolve_cover_image
from ..utils import is_absolute_url
from .gateway import RemoteError, RemoteGateway

logger = logging.getLogger(__name__)


class InvalidImageUrl(ValueError):
    """Raised when a cover image URL cannot possibly be downloaded."""


@dataclass(slots=True)
class CoverUpload:
    """Outcome of a cover download: either a stored image id or a field error."""

    image_id: str | None = None
    preview_url: str | None = None
    field_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.image_id is not None


def validate_image_url(url: str) -> str:
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidImageUrl(f"Not a valid image URL: {candidate!r}")
    return candidate


class CoverImages:
    """Stores remote cover images through the catalog service."""

    def __init__(self, gateway: RemoteGateway, api_base: str):
        self._gateway = gateway
        self._api_base = api_base

    def resolve(self, reference: str | None) -> str | None:
        return resolve_cover_image(reference, self._api_base)

    async def download_cover(self, url: str) -> CoverUpload:
        """Ask the store to download ``url`` and return the stored image id."""

        try:
            candidate = validate_image_url(url)
        except InvalidImageUrl:
            logger.debug("Skipping download of malformed cover URL %r", url)
            return CoverUpload(field_error="Please enter a valid image URL.")

        try:
            stored = await self._gateway.download_image(candidate)
        except RemoteError as exc:
            logger.info("Cover download failed for %s: %s", candidate, exc)
            return CoverUpload(
                field_error="Failed to download image. Please check the URL."
            )
        return CoverUpload(
            image_id=stored.id, preview_url=self._gateway.image_url(stored.id)
        )

    async def fetch(self, reference: str) -> bytes | None:
        """Return the image bytes for a stored reference, ``None`` for URLs."""

        if not reference or not reference.strip() or is_absolute_url(reference):
            return None
        return await self._gateway.get_image(reference.strip())
