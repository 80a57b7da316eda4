# backend/app/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for GarageBook Platform

Loads the bookings that could collide with a candidate slot. Only
active bookings (confirmed, in_progress) are returned; pending,
rescheduled and terminal bookings never hold a slot.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        """Initialize with Booking model as primary."""
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_active_bookings_for_conflict_check(
        self,
        mechanic_id: str,
        start_date: date,
        end_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Get a mechanic's active bookings dated within ``[start_date, end_date]``.

        Callers widen the range by a day on the left so bookings that
        started the previous evening and run past midnight are included.

        Args:
            mechanic_id: The mechanic to check
            start_date: First booking_date to include
            end_date: Last booking_date to include
            exclude_booking_id: Optional booking ID to exclude from results

        Returns:
            Active bookings ordered by date and time
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.mechanic_id == mechanic_id,
                Booking.booking_date >= start_date,
                Booking.booking_date <= end_date,
                Booking.status.in_([status.value for status in ACTIVE_STATUSES]),
            )

            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)

            return cast(
                List[Booking],
                query.order_by(Booking.booking_date, Booking.booking_time).all(),
            )

        except Exception as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}") from e
