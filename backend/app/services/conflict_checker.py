# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for GarageBook Platform

Decides whether a candidate slot collides with a mechanic's existing
commitments. Only active bookings (confirmed, in_progress) hold a slot;
a pending request reserves nothing until it is accepted.

Two bookings conflict when they share the identical (date, time) pair or
when their resolved [start, end) windows overlap. Touching endpoints do
not conflict. Each mechanic is one unit of scheduling capacity.
"""

from datetime import timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import ERROR_SLOT_UNAVAILABLE
from ..core.exceptions import BookingConflictException, RepositoryException
from ..domain.time_window import TimeWindow, max_lookback_days, normalize_time_of_day
from ..models.booking import Booking
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def _same_slot(booking: Booking, candidate: TimeWindow) -> bool:
    return (
        booking.booking_date == candidate.start.date()
        and normalize_time_of_day(booking.booking_time) == candidate.start.strftime("%H:%M")
    )


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts.

    Both the candidate and every stored booking are resolved through the
    same time-window resolver, so comparisons never mix semantics.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        mechanic_id: str,
        candidate: TimeWindow,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List the mechanic's active bookings that collide with ``candidate``.

        Args:
            mechanic_id: The mechanic to check
            candidate: Resolved window of the requested slot
            exclude_booking_id: Booking to ignore (the one being rescheduled
                or confirmed)

        Returns:
            List of conflicts with booking details
        """
        try:
            bookings = self.repository.get_active_bookings_for_conflict_check(
                mechanic_id,
                candidate.start.date() - timedelta(days=max_lookback_days()),
                candidate.end.date(),
                exclude_booking_id,
            )
        except RepositoryException as exc:
            raise self.translate_persistence_error(exc) from exc

        conflicts = []
        for booking in bookings:
            existing = booking.time_window
            if _same_slot(booking, candidate) or candidate.overlaps(existing):
                conflicts.append(
                    {
                        "booking_id": booking.id,
                        "booking_date": booking.booking_date.isoformat(),
                        "booking_time": booking.booking_time,
                        "start": existing.start.isoformat(timespec="minutes"),
                        "end": existing.end.isoformat(timespec="minutes"),
                        "status": booking.status,
                    }
                )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for mechanic {mechanic_id} "
                f"in window {candidate}"
            )

        return conflicts

    def has_conflict(
        self,
        mechanic_id: str,
        candidate: TimeWindow,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """
        Check if a candidate window collides with any active booking.

        Simplified boolean check for quick validation.
        """
        return len(self.find_conflicts(mechanic_id, candidate, exclude_booking_id)) > 0

    def ensure_slot_available(
        self,
        mechanic_id: str,
        candidate: TimeWindow,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """
        Raise when the slot is taken.

        Raises:
            BookingConflictException: If any active booking collides
        """
        conflicts = self.find_conflicts(mechanic_id, candidate, exclude_booking_id)
        if conflicts:
            raise BookingConflictException(
                message=ERROR_SLOT_UNAVAILABLE,
                details={
                    "mechanic_id": mechanic_id,
                    "requested_start": candidate.start.isoformat(timespec="minutes"),
                    "requested_end": candidate.end.isoformat(timespec="minutes"),
                    "conflicts": conflicts,
                },
            )
