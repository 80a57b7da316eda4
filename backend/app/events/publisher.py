"""Event publisher - hands committed booking events to the notification sender."""
from datetime import date, datetime
import logging
import time
from typing import Any, Dict, Mapping, Optional, Protocol

from app.monitoring.prometheus_metrics import prometheus_metrics
from app.services.notification_service import NotificationSender

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    event_kind: str

    def to_dict(self) -> Dict[str, Any]:
        ...


def _serialize(payload: Mapping[str, Any]) -> Dict[str, Any]:
    # Convert datetime/date objects to ISO strings for JSON serialization
    out: Dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, (datetime, date)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


class EventPublisher:
    """
    Publishes booking events to the notification sender.

    Only call after the state change is committed. Delivery is best effort:
    a sender failure is logged and counted, never raised.
    """

    def __init__(self, sender: NotificationSender):
        self.sender = sender

    def publish(self, event: Event, booking_snapshot: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Dispatch ``event`` with the booking snapshot attached.

        Returns:
            True if the sender accepted the event, False otherwise
        """
        event_kind = event.event_kind
        payload = _serialize(event.to_dict())
        payload["booking"] = _serialize(booking_snapshot or {})

        started = time.monotonic()
        try:
            self.sender.send(event_kind, payload)
        except Exception as exc:
            prometheus_metrics.record_notification_outcome(event_kind, "failed")
            logger.error(
                f"Failed to send {event_kind} notification for booking {payload.get('booking_id')}: {exc}",
                extra={"event_kind": event_kind, "error_type": type(exc).__name__},
            )
            return False
        finally:
            prometheus_metrics.observe_notification_dispatch(event_kind, time.monotonic() - started)

        prometheus_metrics.record_notification_outcome(event_kind, "sent")
        return True
