"""Unit tests for domain exception codes and their HTTP rendering."""

import pytest

from app.core.exceptions import (
    BookingConflictException,
    DependencyException,
    ForbiddenException,
    InvalidTimeFormatException,
    InvalidTransitionException,
    MechanicUnavailableException,
    NotFoundException,
    PastDateTimeException,
    ValidationException,
    is_db_pool_exhaustion,
)


@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (ValidationException("bad"), 400, "VALIDATION_ERROR"),
        (InvalidTimeFormatException("25:00"), 400, "INVALID_TIME_FORMAT"),
        (NotFoundException("missing"), 404, "NOT_FOUND"),
        (ForbiddenException(), 403, "FORBIDDEN"),
        (BookingConflictException(), 409, "SLOT_UNAVAILABLE"),
        (InvalidTransitionException("completed", "confirmed"), 422, "INVALID_TRANSITION"),
        (PastDateTimeException("2025-03-01T07:00", "2025-03-01T08:00"), 422, "PAST_DATETIME"),
        (MechanicUnavailableException("01M", "inactive"), 422, "MECHANIC_UNAVAILABLE"),
        (DependencyException(), 503, "DEPENDENCY_UNAVAILABLE"),
    ],
)
def test_http_rendering(exc, status_code, code):
    http_exc = exc.to_http_exception()
    assert http_exc.status_code == status_code
    assert http_exc.detail["code"] == code
    assert http_exc.detail["message"] == exc.message


def test_invalid_time_format_is_a_validation_error():
    assert isinstance(InvalidTimeFormatException("x"), ValidationException)


def test_dependency_exception_is_retryable():
    http_exc = DependencyException(retry_after_s=5).to_http_exception()
    assert http_exc.headers == {"Retry-After": "5"}


def test_invalid_transition_details():
    exc = InvalidTransitionException("cancelled", "confirmed")
    assert exc.details == {"current_status": "cancelled", "target_status": "confirmed"}


def test_pool_exhaustion_detection():
    assert is_db_pool_exhaustion(Exception("QueuePool limit of size 5 overflow 5 reached"))
    assert is_db_pool_exhaustion(Exception("connection timeout expired"))
    assert not is_db_pool_exhaustion(Exception("duplicate key value"))
