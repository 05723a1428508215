"""Typed request/response boundary to the remote catalog store."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import Settings
from ..models import (
    BulkRefreshResult,
    CatalogItem,
    ContentType,
    EnrichmentResult,
    ErrorBody,
    MetadataCandidate,
    Notification,
    RecommendationCandidate,
    StoredImage,
    WatchStatus,
)

logger = logging.getLogger(__name__)

_ITEM = TypeAdapter(CatalogItem)
_ITEMS = TypeAdapter(list[CatalogItem])
_BULK_RESULT = TypeAdapter(BulkRefreshResult)
_ENRICHMENT = TypeAdapter(EnrichmentResult)
_STORED_IMAGE = TypeAdapter(StoredImage)
_CANDIDATES = TypeAdapter(list[MetadataCandidate])
_RECOMMENDATIONS = TypeAdapter(list[RecommendationCandidate])
_NOTIFICATIONS = TypeAdapter(list[Notification])


class RemoteError(Exception):
    """Raised when the remote store rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int = 0):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_transport(self) -> bool:
        return self.status_code == 0


def _collection(content_type: ContentType | None) -> str:
    return "series" if content_type == "SERIES" else "movies"


class RemoteGateway:
    """Thin wrapper around the catalog store's HTTP API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def image_url(self, image_id: str) -> str:
        return f"{self._settings.api_base}/images/{image_id}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise RemoteError(
                "Could not reach the catalog service. Please try again."
            ) from exc

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(
                "%s %s returned %s: %s", method, path, response.status_code, message
            )
            raise RemoteError(message, response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        fallback = f"Request failed with status {response.status_code}"
        try:
            body = ErrorBody.model_validate(response.json())
        except (ValueError, ValidationError):
            return fallback
        return body.message or body.error or fallback

    @staticmethod
    def _parse(adapter: TypeAdapter[Any], response: httpx.Response) -> Any:
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("Unexpected payload from %s: %s", response.request.url, exc)
            raise RemoteError("The catalog service returned an unexpected response.") from exc

    def _item(self, response: httpx.Response) -> CatalogItem:
        return self._parse(_ITEM, response)

    # Catalog ------------------------------------------------------------

    async def list_catalog(
        self,
        *,
        watch_status: WatchStatus | None = None,
        added_by: str | None = None,
    ) -> list[CatalogItem]:
        params: dict[str, str] = {}
        if watch_status:
            params["watchStatus"] = watch_status
        if added_by:
            params["addedBy"] = added_by
        response = await self._request("GET", "/catalog", params=params)
        return self._parse(_ITEMS, response)

    async def search_catalog(self, query: str) -> list[CatalogItem]:
        response = await self._request(
            "GET", "/catalog/search", params={"query": query}
        )
        return self._parse(_ITEMS, response)

    async def create_item(
        self, content_type: ContentType, payload: dict[str, Any]
    ) -> CatalogItem:
        response = await self._request(
            "POST", f"/{_collection(content_type)}", json=payload
        )
        return self._item(response)

    async def update_item(
        self, item_id: str, content_type: ContentType, payload: dict[str, Any]
    ) -> CatalogItem:
        response = await self._request(
            "PUT", f"/{_collection(content_type)}/{item_id}", json=payload
        )
        return self._item(response)

    async def delete_item(self, item_id: str, content_type: ContentType) -> None:
        await self._request("DELETE", f"/{_collection(content_type)}/{item_id}")

    async def create_movie(self, payload: dict[str, Any]) -> CatalogItem:
        return await self.create_item("MOVIE", payload)

    async def create_series(self, payload: dict[str, Any]) -> CatalogItem:
        return await self.create_item("SERIES", payload)

    async def update_movie(self, item_id: str, payload: dict[str, Any]) -> CatalogItem:
        return await self.update_item(item_id, "MOVIE", payload)

    async def update_series(self, item_id: str, payload: dict[str, Any]) -> CatalogItem:
        return await self.update_item(item_id, "SERIES", payload)

    async def delete_movie(self, item_id: str) -> None:
        await self.delete_item(item_id, "MOVIE")

    async def delete_series(self, item_id: str) -> None:
        await self.delete_item(item_id, "SERIES")

    async def set_watch_status(
        self, item_id: str, content_type: ContentType, status: WatchStatus
    ) -> CatalogItem:
        response = await self._request(
            "PATCH",
            f"/{_collection(content_type)}/{item_id}/watch-status",
            json={"watchStatus": status},
        )
        return self._item(response)

    async def set_priority(
        self, item_id: str, content_type: ContentType, value: int
    ) -> None:
        await self._request(
            "PATCH",
            f"/{_collection(content_type)}/{item_id}/priority",
            json={"priority": value},
        )

    # Seasons ------------------------------------------------------------

    async def set_season_watch_status(
        self, series_id: str, season_number: int, status: WatchStatus
    ) -> CatalogItem:
        response = await self._request(
            "PATCH",
            f"/series/{series_id}/seasons/{season_number}/watch-status",
            json={"watchStatus": status},
        )
        return self._item(response)

    async def add_season(self, series_id: str) -> CatalogItem:
        response = await self._request("POST", f"/series/{series_id}/seasons")
        return self._item(response)

    async def remove_season(self, series_id: str) -> CatalogItem:
        response = await self._request("DELETE", f"/series/{series_id}/seasons/last")
        return self._item(response)

    async def refresh_series(self, series_id: str) -> CatalogItem:
        response = await self._request("POST", f"/series/{series_id}/refresh")
        return self._item(response)

    async def refresh_all_series(self) -> BulkRefreshResult:
        response = await self._request("POST", "/series/refresh-all")
        return self._parse(_BULK_RESULT, response)

    # External metadata --------------------------------------------------

    async def search_external_metadata(
        self, kind: ContentType, title: str
    ) -> list[MetadataCandidate]:
        """Search the metadata provider; cancel the awaiting task to abort."""

        response = await self._request(
            "GET", f"/tmdb/search/{_collection(kind)}", params={"title": title}
        )
        return self._parse(_CANDIDATES, response)

    async def enrich_external_metadata(
        self, kind: ContentType, external_id: int, *, download_image: bool = True
    ) -> EnrichmentResult:
        endpoint = "series" if kind == "SERIES" else "movie"
        response = await self._request(
            "POST",
            f"/tmdb/enrich/{endpoint}",
            json={"tmdbId": external_id, "downloadImage": download_image},
        )
        return self._parse(_ENRICHMENT, response)

    # Images -------------------------------------------------------------

    async def download_image(self, url: str) -> StoredImage:
        response = await self._request(
            "POST", "/images/download", json={"imageUrl": url}
        )
        return self._parse(_STORED_IMAGE, response)

    async def get_image(self, image_id: str) -> bytes:
        response = await self._request("GET", f"/images/{image_id}")
        return response.content

    # Recommendations & notifications ------------------------------------

    async def list_recommendations(
        self, *, count: int, added_by: str | None = None
    ) -> list[RecommendationCandidate]:
        params: dict[str, Any] = {"count": count}
        if added_by:
            params["addedBy"] = added_by
        response = await self._request("GET", "/recommendations", params=params)
        return self._parse(_RECOMMENDATIONS, response)

    async def list_notifications(self) -> list[Notification]:
        response = await self._request("GET", "/notifications")
        return self._parse(_NOTIFICATIONS, response)

    async def dismiss_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"/notifications/{notification_id}")
