# backend/app/domain/time_window.py
"""
Time-window resolution for bookings.

A booking is stored as a calendar date, an "HH:MM" time of day and a
duration. Everything that compares bookings (creation, conflict checks,
calendar ordering) resolves those fields through ``resolve`` so both
sides of a comparison use the same semantics.

Datetimes produced here are naive wall-clock values in the business
timezone (``settings.business_timezone``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import math
import re
from typing import Callable, Optional, Tuple

import pytz

from ..core.config import settings
from ..core.constants import TIME_OF_DAY_PATTERN
from ..core.exceptions import InvalidTimeFormatException, PastDateTimeException, ValidationException

_TIME_OF_DAY_RE = re.compile(TIME_OF_DAY_PATTERN)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` occupied by a booking."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeWindow") -> bool:
        """Half-open overlap: touching endpoints do not overlap."""
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat(timespec='minutes')}/{self.end.isoformat(timespec='minutes')}"


def parse_time_of_day(value: object) -> Tuple[int, int]:
    """
    Parse an ``HH:MM`` 24-hour string into ``(hour, minute)``.

    A single-digit hour ("9:05") is accepted.

    Raises:
        InvalidTimeFormatException: If the value does not match the format
    """
    if not isinstance(value, str) or not _TIME_OF_DAY_RE.match(value):
        raise InvalidTimeFormatException(value)
    hour, minute = value.split(":")
    return int(hour), int(minute)


def normalize_time_of_day(value: object) -> str:
    """Return the zero-padded ``HH:MM`` form of a valid time of day."""
    hour, minute = parse_time_of_day(value)
    return f"{hour:02d}:{minute:02d}"


def resolve(booking_date: date, time_of_day: str, duration_minutes: int) -> TimeWindow:
    """
    Combine a date, an ``HH:MM`` time and a duration into a TimeWindow.

    Seconds and microseconds are always zero; ``end = start + duration``.
    The format check runs before anything else so callers never reach
    the conflict checker with a malformed time.

    Raises:
        InvalidTimeFormatException: Malformed time of day
        ValidationException: Duration outside the bookable range
    """
    hour, minute = parse_time_of_day(time_of_day)
    minimum = settings.min_booking_duration_minutes
    maximum = settings.max_booking_duration_minutes
    if duration_minutes is None or int(duration_minutes) < minimum:
        raise ValidationException(
            f"Duration must be at least {minimum} minutes",
            details={"duration_minutes": duration_minutes},
        )
    if int(duration_minutes) > maximum:
        raise ValidationException(
            f"Duration must be at most {maximum} minutes",
            details={"duration_minutes": duration_minutes},
        )
    start = datetime.combine(booking_date, time(hour=hour, minute=minute))
    return TimeWindow(start=start, end=start + timedelta(minutes=int(duration_minutes)))


def max_lookback_days() -> int:
    """Days before a window's start on which an overlapping booking may begin."""
    return max(1, math.ceil(settings.max_booking_duration_minutes / (24 * 60)))


def business_now() -> datetime:
    """Current wall-clock time in the business timezone (naive)."""
    tz = pytz.timezone(settings.business_timezone)
    return datetime.now(tz).replace(tzinfo=None, second=0, microsecond=0)


def ensure_not_in_past(window: TimeWindow, clock: Optional[Clock] = None) -> None:
    """
    Reject windows that start before "now".

    Raises:
        PastDateTimeException: If the window starts in the past
    """
    now = (clock or business_now)()
    if window.start < now:
        raise PastDateTimeException(
            requested_start=window.start.isoformat(timespec="minutes"),
            now=now.isoformat(timespec="minutes"),
        )


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """
    Return ``(first_of_month, first_of_next_month)``.

    Raises:
        ValidationException: If either bound is not a representable date
    """
    try:
        first = date(year, month, 1)
        if month == 12:
            return first, date(year + 1, 1, 1)
        return first, date(year, month + 1, 1)
    except ValueError as exc:
        raise ValidationException(
            f"Invalid calendar month: {exc}", details={"month": month, "year": year}
        ) from exc
