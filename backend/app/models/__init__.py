"""
Database models for GarageBook platform.

Importing this package registers every table on ``Base.metadata``:
- Users, vehicles and services (directory read models)
- Bookings and their reschedule history
"""

from .booking import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingPriority,
    BookingStatus,
    ServiceLocation,
)
from .booking_reschedule import BookingRescheduleEntry
from .service import Service
from .user import User
from .vehicle import Vehicle

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "Booking",
    "BookingPriority",
    "BookingRescheduleEntry",
    "BookingStatus",
    "Service",
    "ServiceLocation",
    "User",
    "Vehicle",
]
