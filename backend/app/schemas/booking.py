# backend/app/schemas/booking.py
"""
Booking schemas for GarageBook platform.

Request models accept ``booking_time`` as a plain string: the time-window
resolver owns the HH:MM format check so a malformed time surfaces as the
INVALID_TIME_FORMAT domain error rather than a generic validation error.
"""

from datetime import date, datetime
import re
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_RESCHEDULE_REASON_LENGTH, MAX_SPECIAL_INSTRUCTIONS_LENGTH
from ..models.booking import Booking, BookingPriority, BookingStatus, ServiceLocation
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class BookingCreate(StrictRequestModel):
    """
    Create a booking request.

    The mechanic is optional: without one the service's default mechanic
    is used. Cost and duration always come from the service.
    """

    vehicle_id: str = Field(..., description="Owner's vehicle to be serviced")
    service_id: str = Field(..., description="Service being booked")
    mechanic_id: Optional[str] = Field(None, description="Preferred mechanic")
    booking_date: date = Field(..., description="Date of the booking")
    booking_time: str = Field(..., description="Start time, HH:MM 24-hour")
    service_location: ServiceLocation = Field(ServiceLocation.AT_GARAGE)
    priority: BookingPriority = Field(BookingPriority.NORMAL)
    special_instructions: Optional[str] = Field(None, max_length=MAX_SPECIAL_INSTRUCTIONS_LENGTH)
    notes: Optional[str] = Field(None, max_length=1000, description="Note from the owner")

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("special_instructions", "notes")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)


class BookingStatusUpdate(StrictRequestModel):
    """Move a booking to a new status."""

    status: BookingStatus
    notes: Optional[str] = Field(None, max_length=1000)
    cancellation_reason: Optional[str] = Field(
        None, description="Required when cancelling (max 200 characters)"
    )
    actual_cost: Optional[Decimal] = Field(None, ge=0, description="Final cost, on completion")

    @field_validator("notes", "cancellation_reason")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)


class BookingRescheduleRequest(StrictRequestModel):
    """Move a booking to a new date/time."""

    booking_date: date
    booking_time: str
    reason: Optional[str] = Field(None, max_length=MAX_RESCHEDULE_REASON_LENGTH)

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return _ensure_date_only(v, "booking_date")

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)


class BookingNotes(StandardizedModel):
    customer: Optional[str] = None
    mechanic: Optional[str] = None
    admin: Optional[str] = None


class RescheduleEntryResponse(StandardizedModel):
    sequence: int
    original_date: date
    original_time: str
    new_date: date
    new_time: str
    reason: str
    changed_by_id: str
    changed_at: datetime


class BookingResponse(StandardizedModel):
    """Booking as returned by the API."""

    id: str
    owner_id: str
    mechanic_id: str
    vehicle_id: str
    service_id: str
    booking_date: date
    booking_time: str
    estimated_duration: int
    booking_datetime: datetime
    end_datetime: datetime
    status: BookingStatus
    service_location: ServiceLocation
    priority: BookingPriority
    special_instructions: Optional[str] = None
    estimated_cost: Money
    actual_cost: Optional[Money] = None
    notes: BookingNotes
    cancellation_reason: Optional[str] = None
    cancelled_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reschedule_history: List[RescheduleEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        """Build the response from an ORM booking."""
        return cls(
            id=booking.id,
            owner_id=booking.owner_id,
            mechanic_id=booking.mechanic_id,
            vehicle_id=booking.vehicle_id,
            service_id=booking.service_id,
            booking_date=booking.booking_date,
            booking_time=booking.booking_time,
            estimated_duration=booking.estimated_duration,
            booking_datetime=booking.booking_datetime,
            end_datetime=booking.end_datetime,
            status=booking.status,
            service_location=booking.service_location,
            priority=booking.priority,
            special_instructions=booking.special_instructions,
            estimated_cost=booking.estimated_cost,
            actual_cost=booking.actual_cost,
            notes=BookingNotes(
                customer=booking.customer_note,
                mechanic=booking.mechanic_note,
                admin=booking.admin_note,
            ),
            cancellation_reason=booking.cancellation_reason,
            cancelled_by_id=booking.cancelled_by_id,
            created_at=booking.created_at,
            confirmed_at=booking.confirmed_at,
            started_at=booking.started_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
            reschedule_history=[
                RescheduleEntryResponse.model_validate(entry)
                for entry in booking.reschedule_history
            ],
        )


class MechanicCalendarResponse(StandardizedModel):
    """Active bookings of one mechanic, optionally for a single month."""

    mechanic_id: str
    month: Optional[int] = None
    year: Optional[int] = None
    total: int
    bookings: List[BookingResponse]
    by_date: Dict[str, List[str]] = Field(
        default_factory=dict, description="Booking ids grouped by ISO date"
    )
