"""Active new-season notifications and their dismissal."""

from __future__ import annotations

import logging

from ..models import Notification
from ..state import AppState
from .gateway import RemoteError, RemoteGateway

logger = logging.getLogger(__name__)


class NotificationLifecycle:
    """Tracks notifications independently of the series they mention.

    Dismissal never checks whether the referenced series still exists, and a
    notification the store no longer knows (404) counts as dismissed.
    """

    def __init__(self, state: AppState, gateway: RemoteGateway):
        self._state = state
        self._gateway = gateway

    @property
    def active(self) -> list[Notification]:
        return self._state.notifications

    async def load(self) -> list[Notification]:
        try:
            notifications = await self._gateway.list_notifications()
        except RemoteError as exc:
            logger.warning("Fetching notifications failed: %s", exc.message)
            return self._state.notifications
        self._state.notifications = list(notifications)
        return self._state.notifications

    async def dismiss(self, notification_id: str) -> bool:
        """Dismiss once; returns ``True`` when the caller should reload the list."""

        state = self._state
        if notification_id in state.dismissing_ids:
            return False

        state.dismissing_ids.add(notification_id)
        try:
            await self._gateway.dismiss_notification(notification_id)
        except RemoteError as exc:
            if exc.status_code != 404:
                logger.warning(
                    "Dismissing notification %s failed: %s", notification_id, exc.message
                )
                state.push_notice(
                    "error", "Failed to dismiss notification. Please try again."
                )
                return False
            logger.debug("Notification %s was already gone", notification_id)
        finally:
            state.dismissing_ids.discard(notification_id)

        state.notifications = [
            notification
            for notification in state.notifications
            if notification.id != notification_id
        ]
        return True
