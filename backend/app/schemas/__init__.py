# backend/app/schemas/__init__.py
"""
Pydantic schemas for GarageBook platform.

Exports the request and response models used by the booking API.
"""

from .base import Money, StandardizedModel
from .base_responses import HealthResponse, PaginatedResponse
from .booking import (
    BookingCreate,
    BookingNotes,
    BookingRescheduleRequest,
    BookingResponse,
    BookingStatusUpdate,
    MechanicCalendarResponse,
    RescheduleEntryResponse,
)

__all__ = [
    # Base
    "Money",
    "StandardizedModel",
    "HealthResponse",
    "PaginatedResponse",
    # Bookings
    "BookingCreate",
    "BookingNotes",
    "BookingRescheduleRequest",
    "BookingResponse",
    "BookingStatusUpdate",
    "MechanicCalendarResponse",
    "RescheduleEntryResponse",
]
