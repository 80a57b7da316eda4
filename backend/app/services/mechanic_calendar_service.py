# backend/app/services/mechanic_calendar_service.py
"""
Mechanic Calendar Service for GarageBook Platform

Read-only view of the slots a mechanic has committed to. Uses the same
notion of "occupies a slot" as the conflict checker: only confirmed and
in-progress bookings are listed.
"""

from collections import OrderedDict
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.constants import ERROR_CALENDAR_ACCESS_DENIED, MAX_CALENDAR_YEAR, MIN_CALENDAR_YEAR
from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, RepositoryException, ValidationException
from ..domain.time_window import month_bounds
from ..models.booking import Booking
from ..principal import Actor
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class MechanicCalendarService(BaseService):
    """Aggregates a mechanic's active bookings for calendar display."""

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("get_calendar")
    def get_calendar(
        self,
        mechanic_id: str,
        actor: Actor,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[Booking]:
        """
        Active bookings of ``mechanic_id`` ordered by date and time.

        With ``month`` and ``year`` the result is limited to that month;
        without them every active booking is returned.

        Raises:
            ForbiddenException: Actor is neither admin nor that mechanic
            ValidationException: Only one of month/year given, or either out of range
        """
        if not (actor.role == RoleName.ADMIN or (
            actor.role == RoleName.MECHANIC and actor.id == mechanic_id
        )):
            raise ForbiddenException(ERROR_CALENDAR_ACCESS_DENIED)

        start_date = end_date = None
        if month is not None or year is not None:
            if month is None or year is None:
                raise ValidationException(
                    "month and year must be provided together",
                    details={"month": month, "year": year},
                )
            if not 1 <= month <= 12:
                raise ValidationException("month must be between 1 and 12", details={"month": month})
            if not MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR:
                raise ValidationException(
                    f"year must be between {MIN_CALENDAR_YEAR} and {MAX_CALENDAR_YEAR}",
                    details={"year": year},
                )
            start_date, end_date = month_bounds(month, year)

        try:
            bookings = self.repository.get_mechanic_calendar(mechanic_id, start_date, end_date)
        except RepositoryException as exc:
            raise self.translate_persistence_error(exc) from exc

        self.logger.debug(
            f"Calendar for mechanic {mechanic_id} ({month}/{year}): {len(bookings)} bookings"
        )
        return bookings

    @staticmethod
    def group_by_date(bookings: Sequence[Booking]) -> Dict[str, List[Booking]]:
        """Group bookings by ISO date, keeping the input order."""
        grouped: Dict[str, List[Booking]] = OrderedDict()
        for booking in bookings:
            grouped.setdefault(booking.booking_date.isoformat(), []).append(booking)
        return grouped
