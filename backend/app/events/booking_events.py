"""Booking domain events."""
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Dict, List, Optional


@dataclass
class BookingCreated:
    """Fired after a booking request is persisted (owner and mechanic are told)."""

    event_kind: ClassVar[str] = "booking.created"

    booking_id: str
    owner_id: str
    mechanic_id: str
    booking_date: date
    booking_time: str
    created_at: datetime
    recipients: List[str] = field(default_factory=lambda: ["owner", "mechanic"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after a booking is confirmed."""

    event_kind: ClassVar[str] = "booking.confirmed"

    booking_id: str
    confirmed_at: datetime
    recipients: List[str] = field(default_factory=lambda: ["owner"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    event_kind: ClassVar[str] = "booking.cancelled"

    booking_id: str
    cancelled_by: str  # 'customer', 'mechanic' or 'admin'
    cancelled_at: datetime
    reason: Optional[str] = None
    recipients: List[str] = field(default_factory=lambda: ["owner", "mechanic"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCompleted:
    """Fired after a booking is marked complete; the owner is prompted to review."""

    event_kind: ClassVar[str] = "booking.completed"

    booking_id: str
    completed_at: datetime
    review_prompt: bool = True
    recipients: List[str] = field(default_factory=lambda: ["owner"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingNoShow:
    """Fired after a booking is marked as a no-show."""

    event_kind: ClassVar[str] = "booking.no_show"

    booking_id: str
    marked_at: datetime
    recipients: List[str] = field(default_factory=lambda: ["owner"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingRescheduled:
    """Fired after a booking moves to a new slot."""

    event_kind: ClassVar[str] = "booking.rescheduled"

    booking_id: str
    previous_date: date
    previous_time: str
    new_date: date
    new_time: str
    rescheduled_by: str
    recipients: List[str] = field(default_factory=lambda: ["owner", "mechanic"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
