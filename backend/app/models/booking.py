# backend/app/models/booking.py
"""
Booking model for GarageBook platform.

A booking reserves a mechanic for a service on one of an owner's
vehicles. The slot is stored as (booking_date, booking_time "HH:MM",
estimated_duration); the occupied interval is derived through the
time-window resolver and never stored.

Bookings are never deleted. Cancellation is a status, and reschedules
are recorded in the append-only ``booking_reschedule_history`` table.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

if TYPE_CHECKING:
    from ..domain.time_window import TimeWindow

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Initial - requested by the owner
    CONFIRMED = "confirmed"  # Accepted - occupies the mechanic's slot
    IN_PROGRESS = "in_progress"  # Work started - occupies the slot
    COMPLETED = "completed"  # Terminal
    CANCELLED = "cancelled"  # Terminal
    NO_SHOW = "no_show"  # Terminal - owner didn't bring the vehicle
    RESCHEDULED = "rescheduled"  # Moved to a new slot, awaiting confirmation


# Statuses that occupy a slot on the mechanic's calendar
ACTIVE_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS})
TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


class ServiceLocation(str, Enum):
    """Where the work is carried out."""

    AT_GARAGE = "at_garage"
    MOBILE = "mobile"
    PICKUP_DELIVERY = "pickup_delivery"
    ROADSIDE = "roadside"


class BookingPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


NOTE_FIELD_BY_ROLE = {
    RoleName.OWNER: "customer_note",
    RoleName.MECHANIC: "mechanic_note",
    RoleName.ADMIN: "admin_note",
}


def _sql_in(values: Any) -> str:
    return ", ".join(f"'{member.value}'" for member in values)


class Booking(Base):
    """
    Appointment between a vehicle owner and a mechanic.

    Design: service cost and duration are snapshotted at creation so later
    catalog changes never touch existing bookings.
    """

    __tablename__ = "bookings"

    # Primary key
    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Core relationships (set once at creation)
    owner_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    mechanic_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(String(26), ForeignKey("vehicles.id"), nullable=False)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)

    # Slot
    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(String(5), nullable=False)
    estimated_duration = Column(Integer, nullable=False)

    # Booking details
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    service_location = Column(String(30), nullable=False, default=ServiceLocation.AT_GARAGE.value)
    priority = Column(String(10), nullable=False, default=BookingPriority.NORMAL.value)
    special_instructions = Column(Text, nullable=True)

    # Cost snapshot
    estimated_cost = Column(Numeric(10, 2), nullable=False)
    actual_cost = Column(Numeric(10, 2), nullable=True)

    # Per-role notes
    customer_note = Column(Text, nullable=True)
    mechanic_note = Column(Text, nullable=True)
    admin_note = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation tracking
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(String(200), nullable=True)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    mechanic = relationship("User", foreign_keys=[mechanic_id])
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])
    vehicle = relationship("Vehicle")
    service = relationship("Service")
    reschedule_history = relationship(
        "BookingRescheduleEntry",
        back_populates="booking",
        order_by="BookingRescheduleEntry.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Data integrity constraints
    __table_args__ = (
        CheckConstraint(f"status IN ({_sql_in(BookingStatus)})", name="ck_bookings_status"),
        CheckConstraint(
            f"service_location IN ({_sql_in(ServiceLocation)})",
            name="ck_bookings_service_location",
        ),
        CheckConstraint(f"priority IN ({_sql_in(BookingPriority)})", name="ck_bookings_priority"),
        CheckConstraint("estimated_duration >= 15", name="check_duration_minimum"),
        CheckConstraint("estimated_duration <= 480", name="check_duration_maximum"),
        CheckConstraint("estimated_cost >= 0", name="check_estimated_cost_non_negative"),
        CheckConstraint(
            "actual_cost IS NULL OR actual_cost >= 0", name="check_actual_cost_non_negative"
        ),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Booking {self.id}: owner={self.owner_id}, "
            f"mechanic={self.mechanic_id}, date={self.booking_date}, "
            f"time={self.booking_time}, duration={self.estimated_duration}, status={self.status}>"
        )

    # Derived slot

    @property
    def time_window(self) -> "TimeWindow":
        from ..domain.time_window import resolve

        return resolve(self.booking_date, self.booking_time, self.estimated_duration)

    @property
    def booking_datetime(self) -> datetime:
        return self.time_window.start

    @property
    def end_datetime(self) -> datetime:
        return self.time_window.end

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status_enum in ACTIVE_STATUSES

    # Lifecycle mutations (validation happens in the state machine)

    def confirm(self, at: Optional[datetime] = None) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = at or datetime.now(timezone.utc)

    def start(self, at: Optional[datetime] = None) -> None:
        self.status = BookingStatus.IN_PROGRESS.value
        self.started_at = at or datetime.now(timezone.utc)

    def complete(self, at: Optional[datetime] = None, actual_cost: Optional[Decimal] = None) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = at or datetime.now(timezone.utc)
        if actual_cost is not None:
            self.actual_cost = actual_cost
        logger.info(f"Booking {self.id} marked as completed")

    def cancel(self, cancelled_by_user_id: str, reason: str, at: Optional[datetime] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = at or datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by user {cancelled_by_user_id}")

    def mark_no_show(self) -> None:
        """Mark booking as no-show."""
        self.status = BookingStatus.NO_SHOW.value
        logger.info(f"Booking {self.id} marked as no-show")

    def append_note(self, role: RoleName, text: str) -> None:
        """Append a note to the field owned by ``role``; earlier notes are kept."""
        field = NOTE_FIELD_BY_ROLE[role]
        existing = cast(Optional[str], getattr(self, field))
        setattr(self, field, f"{existing}\n{text}" if existing else text)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot used for notifications and event payloads."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "mechanic_id": self.mechanic_id,
            "vehicle_id": self.vehicle_id,
            "service_id": self.service_id,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "booking_time": self.booking_time,
            "estimated_duration": self.estimated_duration,
            "status": self.status,
            "service_location": self.service_location,
            "priority": self.priority,
            "estimated_cost": float(self.estimated_cost) if self.estimated_cost is not None else None,
            "actual_cost": float(self.actual_cost) if self.actual_cost is not None else None,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_by_id": self.cancelled_by_id,
        }


Index(
    "ix_bookings_mechanic_status_date",
    Booking.mechanic_id,
    Booking.status,
    Booking.booking_date,
)
