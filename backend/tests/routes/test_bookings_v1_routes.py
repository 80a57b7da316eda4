"""
HTTP tests for /api/v1/bookings.

The routes use the real business clock, so request dates are far in the
future (or clearly in the past when that is the point).
"""

from unittest.mock import MagicMock

import pytest
import ulid

from app.api.dependencies import get_booking_service
from app.core.exceptions import DependencyException
from app.main import app

BASE = "/api/v1/bookings"
FUTURE_DAY = "2099-06-01"


def actor_headers(user) -> dict:
    return {"X-Actor-Id": user.id, "X-Actor-Role": user.role}


def _create(client, owner, vehicle, service, booking_time="10:00", **extra):
    body = {
        "vehicle_id": vehicle.id,
        "service_id": service.id,
        "booking_date": FUTURE_DAY,
        "booking_time": booking_time,
    }
    body.update(extra)
    return client.post(BASE, json=body, headers=actor_headers(owner))


@pytest.fixture
def pending_booking(client, owner, vehicle, service):
    response = _create(client, owner, vehicle, service)
    assert response.status_code == 201
    return response.json()


class TestIdentity:
    def test_missing_headers(self, client):
        response = client.get(BASE)
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_malformed_actor_id(self, client):
        response = client.get(BASE, headers={"X-Actor-Id": "not-a-ulid", "X-Actor-Role": "owner"})
        assert response.status_code == 401

    def test_unknown_role(self, client, owner):
        response = client.get(BASE, headers={"X-Actor-Id": owner.id, "X-Actor-Role": "superuser"})
        assert response.status_code == 401


class TestCreate:
    def test_create_returns_pending_booking(self, client, owner, mechanic, vehicle, service):
        response = _create(client, owner, vehicle, service, "9:30", notes="Squeaky brakes")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["booking_time"] == "09:30"
        assert data["mechanic_id"] == mechanic.id
        assert data["estimated_cost"] == 80.0
        assert data["estimated_duration"] == 60
        assert data["booking_datetime"] == "2099-06-01T09:30:00"
        assert data["end_datetime"] == "2099-06-01T10:30:00"
        assert data["notes"]["customer"] == "Squeaky brakes"
        assert data["reschedule_history"] == []

    def test_mechanic_cannot_create(self, client, mechanic, vehicle, service):
        response = _create(client, mechanic, vehicle, service)
        assert response.status_code == 403

    def test_unknown_field_rejected(self, client, owner, vehicle, service):
        response = _create(client, owner, vehicle, service, estimated_cost=1)
        assert response.status_code == 422

    def test_datetime_in_date_field_rejected(self, client, owner, vehicle, service):
        response = _create(client, owner, vehicle, service, booking_date="2099-06-01T10:00:00")
        assert response.status_code == 422

    def test_invalid_time_format(self, client, owner, vehicle, service):
        response = _create(client, owner, vehicle, service, "25:00")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TIME_FORMAT"

    def test_past_slot(self, client, owner, vehicle, service):
        response = _create(client, owner, vehicle, service, booking_date="2000-01-01")
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "PAST_DATETIME"

    def test_other_owners_vehicle(self, client, owner, other_vehicle, service):
        response = _create(client, owner, other_vehicle, service)
        assert response.status_code == 403


class TestRead:
    def test_owner_reads_booking(self, client, owner, pending_booking):
        response = client.get(f"{BASE}/{pending_booking['id']}", headers=actor_headers(owner))
        assert response.status_code == 200
        assert response.json()["id"] == pending_booking["id"]

    def test_other_owner_forbidden(self, client, other_owner, pending_booking):
        response = client.get(f"{BASE}/{pending_booking['id']}", headers=actor_headers(other_owner))
        assert response.status_code == 403

    def test_unknown_booking(self, client, admin):
        response = client.get(f"{BASE}/{ulid.ULID()}", headers=actor_headers(admin))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "BOOKING_NOT_FOUND"

    def test_malformed_booking_id(self, client, admin):
        response = client.get(f"{BASE}/not-a-booking", headers=actor_headers(admin))
        assert response.status_code == 422

    def test_list_scoped_to_owner(self, client, owner, other_owner, pending_booking):
        response = client.get(BASE, headers=actor_headers(owner))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert [item["id"] for item in data["items"]] == [pending_booking["id"]]

        response = client.get(BASE, headers=actor_headers(other_owner))
        assert response.json()["total"] == 0

    def test_list_filters(self, client, admin, pending_booking):
        response = client.get(BASE, params={"status": "confirmed"}, headers=actor_headers(admin))
        assert response.json()["total"] == 0
        response = client.get(BASE, params={"date": FUTURE_DAY}, headers=actor_headers(admin))
        assert response.json()["total"] == 1

    def test_list_rejects_bad_limit(self, client, admin):
        response = client.get(BASE, params={"limit": 0}, headers=actor_headers(admin))
        assert response.status_code == 422


class TestStatus:
    def test_mechanic_confirms(self, client, mechanic, pending_booking):
        response = client.put(
            f"{BASE}/{pending_booking['id']}/status",
            json={"status": "confirmed", "notes": "See you then"},
            headers=actor_headers(mechanic),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["confirmed_at"] is not None
        assert data["notes"]["mechanic"] == "See you then"

    def test_second_overlapping_confirmation_conflicts(
        self, client, owner, mechanic, vehicle, service, pending_booking
    ):
        second = _create(client, owner, vehicle, service, "10:30").json()
        headers = actor_headers(mechanic)

        first = client.put(
            f"{BASE}/{pending_booking['id']}/status", json={"status": "confirmed"}, headers=headers
        )
        assert first.status_code == 200

        response = client.put(
            f"{BASE}/{second['id']}/status", json={"status": "confirmed"}, headers=headers
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "SLOT_UNAVAILABLE"

    def test_owner_cannot_start(self, client, owner, pending_booking):
        response = client.put(
            f"{BASE}/{pending_booking['id']}/status",
            json={"status": "in_progress"},
            headers=actor_headers(owner),
        )
        assert response.status_code == 403

    def test_cancel_requires_reason(self, client, owner, pending_booking):
        response = client.put(
            f"{BASE}/{pending_booking['id']}/status",
            json={"status": "cancelled"},
            headers=actor_headers(owner),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CANCELLATION_REASON_REQUIRED"

    def test_terminal_booking(self, client, owner, admin, pending_booking):
        url = f"{BASE}/{pending_booking['id']}/status"
        cancelled = client.put(
            url,
            json={"status": "cancelled", "cancellation_reason": "Car sold"},
            headers=actor_headers(owner),
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["cancelled_by_id"] == owner.id

        response = client.put(url, json={"status": "confirmed"}, headers=actor_headers(admin))
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_TRANSITION"

    def test_unknown_status_value(self, client, admin, pending_booking):
        response = client.put(
            f"{BASE}/{pending_booking['id']}/status",
            json={"status": "archived"},
            headers=actor_headers(admin),
        )
        assert response.status_code == 422


class TestReschedule:
    def test_reschedule_records_history(self, client, owner, pending_booking):
        response = client.put(
            f"{BASE}/{pending_booking['id']}/reschedule",
            json={"booking_date": "2099-06-02", "booking_time": "14:00", "reason": "Work trip"},
            headers=actor_headers(owner),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "rescheduled"
        assert data["booking_date"] == "2099-06-02"
        [entry] = data["reschedule_history"]
        assert entry["original_time"] == "10:00"
        assert entry["new_time"] == "14:00"
        assert entry["reason"] == "Work trip"


class TestCalendar:
    def test_mechanic_calendar(self, client, mechanic, pending_booking):
        client.put(
            f"{BASE}/{pending_booking['id']}/status",
            json={"status": "confirmed"},
            headers=actor_headers(mechanic),
        )

        response = client.get(
            f"{BASE}/calendar/{mechanic.id}",
            params={"month": 6, "year": 2099},
            headers=actor_headers(mechanic),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["by_date"] == {FUTURE_DAY: [pending_booking["id"]]}

    def test_pending_bookings_not_listed(self, client, mechanic, pending_booking):
        response = client.get(f"{BASE}/calendar/{mechanic.id}", headers=actor_headers(mechanic))
        assert response.json()["total"] == 0

    def test_month_without_year(self, client, mechanic):
        response = client.get(
            f"{BASE}/calendar/{mechanic.id}", params={"month": 6}, headers=actor_headers(mechanic)
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("year", [9999, 0])
    def test_year_out_of_range(self, client, mechanic, year):
        response = client.get(
            f"{BASE}/calendar/{mechanic.id}",
            params={"month": 12, "year": year},
            headers=actor_headers(mechanic),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_owner_forbidden(self, client, owner, mechanic):
        response = client.get(f"{BASE}/calendar/{mechanic.id}", headers=actor_headers(owner))
        assert response.status_code == 403


def test_dependency_failure_is_retryable(client, owner, vehicle, service):
    failing = MagicMock()
    failing.create_booking.side_effect = DependencyException()
    app.dependency_overrides[get_booking_service] = lambda: failing

    response = _create(client, owner, vehicle, service)

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "2"
    assert response.json()["detail"]["code"] == "DEPENDENCY_UNAVAILABLE"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Testing"] == "1"


def test_prometheus_metrics(client):
    response = client.get("/metrics/prometheus")
    assert response.status_code == 200
    assert "garagebook_prometheus_scrapes_total" in response.text
