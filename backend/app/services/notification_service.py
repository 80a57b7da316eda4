# backend/app/services/notification_service.py
"""
Notification senders for booking lifecycle events.

The booking engine only decides which event fired; formatting and
delivery belong to the sender. ``get_notification_sender`` picks the
implementation from ``settings.notification_provider``.
"""

import logging
from typing import Any, Mapping, Protocol, runtime_checkable

from ..core.config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSender(Protocol):
    """Accepts (event_kind, booking snapshot) and owns delivery."""

    def send(self, event_kind: str, payload: Mapping[str, Any]) -> None:
        ...


class ConsoleNotificationSender:
    """Writes notifications to the application log (local and test environments)."""

    def send(self, event_kind: str, payload: Mapping[str, Any]) -> None:
        logger.info(
            f"[NOTIFY] {event_kind} booking={payload.get('booking_id')} "
            f"recipients={payload.get('recipients')}",
            extra={"event_kind": event_kind},
        )


class DisabledNotificationSender:
    """Drops every notification."""

    def send(self, event_kind: str, payload: Mapping[str, Any]) -> None:
        logger.debug(f"Notifications disabled; dropping {event_kind}")


def get_notification_sender() -> NotificationSender:
    if settings.notification_provider == "disabled":
        return DisabledNotificationSender()
    return ConsoleNotificationSender()
