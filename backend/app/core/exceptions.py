# backend/app/core/exceptions.py
"""
Domain-specific exceptions for GarageBook platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "NOT_FOUND", details=details)


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "FORBIDDEN", details=details)


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class DependencyException(DomainException):
    """
    Raised when a backing dependency (database, lock store) is unavailable.

    Always retryable: the HTTP form carries a Retry-After header.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str = "Service temporarily unavailable. Please retry.",
        *,
        details: Optional[Dict[str, Any]] = None,
        retry_after_s: int = 2,
    ) -> None:
        super().__init__(message, code="DEPENDENCY_UNAVAILABLE", details=details)
        self.retry_after_s = retry_after_s

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers={"Retry-After": str(self.retry_after_s)},
        )


# Specific business exceptions


class InvalidTimeFormatException(ValidationException):
    """Raised when a time-of-day string is not a valid 24-hour HH:MM value."""

    def __init__(self, value: object):
        super().__init__(
            message=f"Invalid time format: {value!r}. Expected HH:MM (24-hour).",
            code="INVALID_TIME_FORMAT",
            details={"value": str(value)},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps an active booking of the same mechanic."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The mechanic already has a booking during this time slot",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a booking cannot move from its current status to the requested one."""

    def __init__(self, current_status: str, target_status: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Cannot change booking status from {current_status} to {target_status}",
            code="INVALID_TRANSITION",
            details={"current_status": current_status, "target_status": target_status},
        )


class PastDateTimeException(BusinessRuleException):
    """Raised when a booking would start in the past."""

    def __init__(self, requested_start: str, now: str):
        super().__init__(
            message="Booking date and time cannot be in the past",
            code="PAST_DATETIME",
            details={"requested_start": requested_start, "now": now},
        )


class MechanicUnavailableException(BusinessRuleException):
    """Raised when the selected mechanic is not an active mechanic."""

    def __init__(self, mechanic_id: Optional[str], reason: str):
        super().__init__(
            message="The selected mechanic is not available",
            code="MECHANIC_UNAVAILABLE",
            details={"mechanic_id": mechanic_id, "reason": reason},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """
    Check if an exception indicates DB connection pool exhaustion.

    This is a common failure mode under high load when all database
    connections are in use and new requests time out waiting.
    """
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )
