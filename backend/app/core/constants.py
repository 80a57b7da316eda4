"""Application-wide constants for GarageBook platform."""

from __future__ import annotations

import os

# Booking duration constraints
MIN_BOOKING_DURATION = 15  # minutes
MAX_BOOKING_DURATION = 480  # minutes (8 hours)

# Time-of-day format accepted for bookings (24-hour, optional leading zero on the hour)
TIME_OF_DAY_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"

# Calendar year range; December of the last year still has a following month
MIN_CALENDAR_YEAR = 1
MAX_CALENDAR_YEAR = 9998

# Text constraints
MAX_SPECIAL_INSTRUCTIONS_LENGTH = 500
MAX_CANCELLATION_REASON_LENGTH = 200
MAX_RESCHEDULE_REASON_LENGTH = 200
DEFAULT_RESCHEDULE_REASON = "Rescheduled by user"

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500

# Frontend URLs
DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _split_env(name: str) -> list[str]:
    value = os.getenv(name, "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


ALLOWED_ORIGINS = _split_env("ALLOWED_ORIGINS") or DEFAULT_DEV_ORIGINS

# Error messages
ERROR_BOOKING_NOT_FOUND = "Booking not found"
ERROR_BOOKING_ACCESS_DENIED = "You do not have access to this booking"
ERROR_SLOT_UNAVAILABLE = "The mechanic already has a booking during this time slot"
ERROR_CALENDAR_ACCESS_DENIED = "Only the mechanic or an administrator can view this calendar"

# Brand Configuration
BRAND_NAME = "GarageBook"

# API Documentation
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = f"Backend API for {BRAND_NAME} - vehicle service bookings with mechanics"
API_VERSION = "1.0.0"
