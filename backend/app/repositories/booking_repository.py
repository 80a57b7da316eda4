# backend/app/repositories/booking_repository.py
"""
Booking Repository for GarageBook Platform

Implements data access for booking management:
- Booking creation (integrity errors are surfaced for conflict handling)
- Role-scoped listing with status/date filters and pagination
- Mechanic calendar queries
- Reschedule history appends
"""

from datetime import date, datetime
import logging
from typing import Any, List, Optional, Tuple, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking
from ..models.booking_reschedule import BookingRescheduleEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        """Initialize with Booking model."""
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def list_bookings(
        self,
        *,
        owner_id: Optional[str] = None,
        mechanic_id: Optional[str] = None,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Booking], int]:
        """
        List bookings ordered by (booking_date, booking_time).

        ``owner_id``/``mechanic_id`` scope the result to one participant;
        leaving both unset lists every booking (administrator view).

        Returns:
            (page of bookings, total matching count)
        """
        try:
            query = self.db.query(Booking)
            if owner_id is not None:
                query = query.filter(Booking.owner_id == owner_id)
            if mechanic_id is not None:
                query = query.filter(Booking.mechanic_id == mechanic_id)
            if status is not None:
                query = query.filter(Booking.status == status)
            if on_date is not None:
                query = query.filter(Booking.booking_date == on_date)

            total = query.count()
            items = (
                query.order_by(Booking.booking_date, Booking.booking_time, Booking.id)
                .offset(offset)
                .limit(limit)
                .all()
            )
            return cast(List[Booking], items), total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}") from e

    def get_mechanic_calendar(
        self,
        mechanic_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Booking]:
        """
        Active bookings of a mechanic, optionally within ``[start_date, end_date)``.

        Ordered ascending by (booking_date, booking_time); times are stored
        zero-padded so string order matches clock order.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.mechanic_id == mechanic_id,
                Booking.status.in_([status.value for status in ACTIVE_STATUSES]),
            )
            if start_date is not None:
                query = query.filter(Booking.booking_date >= start_date)
            if end_date is not None:
                query = query.filter(Booking.booking_date < end_date)

            return cast(
                List[Booking],
                query.order_by(Booking.booking_date, Booking.booking_time, Booking.id).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting calendar for mechanic {mechanic_id}: {str(e)}")
            raise RepositoryException(f"Failed to get mechanic calendar: {str(e)}") from e

    def add_reschedule_entry(
        self,
        booking: Booking,
        *,
        original_date: date,
        original_time: str,
        new_date: date,
        new_time: str,
        reason: str,
        changed_by_id: str,
        changed_at: datetime,
    ) -> BookingRescheduleEntry:
        """Append the next history entry for ``booking`` (does not commit)."""
        entry = BookingRescheduleEntry(
            sequence=len(booking.reschedule_history) + 1,
            original_date=original_date,
            original_time=original_time,
            new_date=new_date,
            new_time=new_time,
            reason=reason,
            changed_by_id=changed_by_id,
            changed_at=changed_at,
        )
        booking.reschedule_history.append(entry)
        self.db.flush()
        return entry

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Booking.reschedule_history))
