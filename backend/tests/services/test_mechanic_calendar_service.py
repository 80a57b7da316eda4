"""Tests for MechanicCalendarService."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import ForbiddenException, RepositoryException, ServiceException, ValidationException
from app.models.booking import BookingStatus
from app.services.mechanic_calendar_service import MechanicCalendarService


@pytest.fixture
def calendar_service(db):
    return MechanicCalendarService(db)


@pytest.fixture
def march_bookings(booking_factory):
    return {
        "late": booking_factory("15:00", booking_date=date(2025, 3, 10), status=BookingStatus.CONFIRMED),
        "early": booking_factory("08:00", booking_date=date(2025, 3, 10), status=BookingStatus.IN_PROGRESS),
        "month_end": booking_factory("10:00", booking_date=date(2025, 3, 31), status=BookingStatus.CONFIRMED),
        "april": booking_factory("10:00", booking_date=date(2025, 4, 1), status=BookingStatus.CONFIRMED),
        "pending": booking_factory("12:00", booking_date=date(2025, 3, 12)),
        "cancelled": booking_factory(
            "13:00", booking_date=date(2025, 3, 12), status=BookingStatus.CANCELLED
        ),
    }


class TestGetCalendar:
    def test_only_active_bookings_in_order(
        self, calendar_service, march_bookings, mechanic, mechanic_actor
    ):
        bookings = calendar_service.get_calendar(mechanic.id, mechanic_actor)
        assert [b.id for b in bookings] == [
            march_bookings["early"].id,
            march_bookings["late"].id,
            march_bookings["month_end"].id,
            march_bookings["april"].id,
        ]

    def test_month_filter(self, calendar_service, march_bookings, mechanic, admin_actor):
        bookings = calendar_service.get_calendar(mechanic.id, admin_actor, month=3, year=2025)
        assert march_bookings["april"].id not in {b.id for b in bookings}
        assert march_bookings["month_end"].id in {b.id for b in bookings}
        assert len(bookings) == 3

    def test_empty_month(self, calendar_service, march_bookings, mechanic, admin_actor):
        assert calendar_service.get_calendar(mechanic.id, admin_actor, month=5, year=2025) == []

    def test_december_stops_at_new_year(self, calendar_service, booking_factory, mechanic, admin_actor):
        new_years_eve = booking_factory(
            "22:00", booking_date=date(2025, 12, 31), status=BookingStatus.CONFIRMED
        )
        booking_factory("09:00", booking_date=date(2026, 1, 1), status=BookingStatus.CONFIRMED)

        bookings = calendar_service.get_calendar(mechanic.id, admin_actor, month=12, year=2025)

        assert [b.id for b in bookings] == [new_years_eve.id]

    @pytest.mark.parametrize(
        "month,year", [(3, None), (None, 2025), (0, 2025), (13, 2025), (12, 9999), (6, 0)]
    )
    def test_invalid_month_arguments(self, calendar_service, mechanic, admin_actor, month, year):
        with pytest.raises(ValidationException):
            calendar_service.get_calendar(mechanic.id, admin_actor, month=month, year=year)

    def test_other_mechanic_forbidden(self, calendar_service, mechanic, other_mechanic_actor):
        with pytest.raises(ForbiddenException):
            calendar_service.get_calendar(mechanic.id, other_mechanic_actor)

    def test_owner_forbidden(self, calendar_service, mechanic, owner_actor):
        with pytest.raises(ForbiddenException):
            calendar_service.get_calendar(mechanic.id, owner_actor)

    def test_repository_failure(self, db, mechanic, admin_actor):
        repository = MagicMock()
        repository.get_mechanic_calendar.side_effect = RepositoryException("boom")
        service = MechanicCalendarService(db, repository=repository)
        with pytest.raises(ServiceException):
            service.get_calendar(mechanic.id, admin_actor)


def test_group_by_date(calendar_service, march_bookings, mechanic, admin_actor):
    bookings = calendar_service.get_calendar(mechanic.id, admin_actor, month=3, year=2025)

    grouped = calendar_service.group_by_date(bookings)

    assert list(grouped) == ["2025-03-10", "2025-03-31"]
    assert [b.id for b in grouped["2025-03-10"]] == [
        march_bookings["early"].id,
        march_bookings["late"].id,
    ]
