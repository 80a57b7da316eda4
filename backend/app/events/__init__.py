"""Booking lifecycle events and their publisher."""

from app.events.booking_events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingNoShow,
    BookingRescheduled,
)
from app.events.publisher import EventPublisher

__all__ = [
    "BookingCreated",
    "BookingConfirmed",
    "BookingCancelled",
    "BookingCompleted",
    "BookingNoShow",
    "BookingRescheduled",
    "EventPublisher",
]
