"""
Shared fixtures for the GarageBook backend tests.

Tests run against an in-memory SQLite database. The environment is set
before any ``app`` import so settings and the engine pick it up.
"""

from datetime import date, datetime
from decimal import Decimal
import os
from typing import Callable, Iterator, Optional
from unittest.mock import MagicMock

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SCHEDULING_LOCK_ENABLED"] = "false"
os.environ["NOTIFICATION_PROVIDER"] = "console"
os.environ["BUSINESS_TIMEZONE"] = "UTC"

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.api.dependencies import get_db  # noqa: E402
from app.core.enums import AccountStatus, RoleName  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.events import EventPublisher  # noqa: E402
from app.main import app  # noqa: E402
from app import models as _models  # noqa: E402,F401
from app.models.booking import Booking, BookingStatus  # noqa: E402
from app.models.service import Service  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.vehicle import Vehicle  # noqa: E402
from app.principal import Actor  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402

# Business "now" for service tests; booking dates in tests are after it
FIXED_NOW = datetime(2025, 3, 1, 8, 0)
BOOKING_DAY = date(2025, 3, 10)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def db() -> Iterator[Session]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _make_user(db: Session, name: str, role: RoleName, status: AccountStatus = AccountStatus.ACTIVE) -> User:
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        role=role.value,
        account_status=status.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def owner(db: Session) -> User:
    return _make_user(db, "Olivia Owner", RoleName.OWNER)


@pytest.fixture
def other_owner(db: Session) -> User:
    return _make_user(db, "Oscar Owner", RoleName.OWNER)


@pytest.fixture
def mechanic(db: Session) -> User:
    return _make_user(db, "Max Mechanic", RoleName.MECHANIC)


@pytest.fixture
def other_mechanic(db: Session) -> User:
    return _make_user(db, "Mia Mechanic", RoleName.MECHANIC)


@pytest.fixture
def inactive_mechanic(db: Session) -> User:
    return _make_user(db, "Ivan Inactive", RoleName.MECHANIC, AccountStatus.INACTIVE)


@pytest.fixture
def admin(db: Session) -> User:
    return _make_user(db, "Ada Admin", RoleName.ADMIN)


@pytest.fixture
def vehicle(db: Session, owner: User) -> Vehicle:
    car = Vehicle(owner_id=owner.id, make="Toyota", model="Corolla", year=2019)
    db.add(car)
    db.commit()
    return car


@pytest.fixture
def other_vehicle(db: Session, other_owner: User) -> Vehicle:
    car = Vehicle(owner_id=other_owner.id, make="Honda", model="Civic", year=2021)
    db.add(car)
    db.commit()
    return car


@pytest.fixture
def service(db: Session, mechanic: User) -> Service:
    oil_change = Service(
        service_name="Oil Change",
        base_cost=Decimal("80.00"),
        estimated_duration=60,
        mechanic_id=mechanic.id,
    )
    db.add(oil_change)
    db.commit()
    return oil_change


@pytest.fixture
def short_service(db: Session) -> Service:
    inspection = Service(
        service_name="Tyre Check",
        base_cost=Decimal("25.00"),
        estimated_duration=30,
    )
    db.add(inspection)
    db.commit()
    return inspection


@pytest.fixture
def booking_factory(db: Session, owner: User, mechanic: User, vehicle: Vehicle, service: Service) -> Callable[..., Booking]:
    """Insert bookings directly, bypassing the lifecycle service."""

    def _create(
        booking_time: str = "10:00",
        booking_date: date = BOOKING_DAY,
        status: BookingStatus = BookingStatus.PENDING,
        duration: int = 60,
        mechanic_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
    ) -> Booking:
        booking = Booking(
            owner_id=owner_id or owner.id,
            mechanic_id=mechanic_id or mechanic.id,
            vehicle_id=vehicle_id or vehicle.id,
            service_id=service.id,
            booking_date=booking_date,
            booking_time=booking_time,
            estimated_duration=duration,
            estimated_cost=Decimal("80.00"),
            status=status.value,
        )
        db.add(booking)
        db.commit()
        return booking

    return _create


@pytest.fixture
def sender() -> MagicMock:
    return MagicMock()


@pytest.fixture
def booking_service(db: Session, sender: MagicMock) -> BookingService:
    return BookingService(db, event_publisher=EventPublisher(sender), clock=fixed_clock)


@pytest.fixture
def owner_actor(owner: User) -> Actor:
    return Actor(user_id=owner.id, role=RoleName.OWNER)


@pytest.fixture
def other_owner_actor(other_owner: User) -> Actor:
    return Actor(user_id=other_owner.id, role=RoleName.OWNER)


@pytest.fixture
def mechanic_actor(mechanic: User) -> Actor:
    return Actor(user_id=mechanic.id, role=RoleName.MECHANIC)


@pytest.fixture
def other_mechanic_actor(other_mechanic: User) -> Actor:
    return Actor(user_id=other_mechanic.id, role=RoleName.MECHANIC)


@pytest.fixture
def admin_actor(admin: User) -> Actor:
    return Actor(user_id=admin.id, role=RoleName.ADMIN)
