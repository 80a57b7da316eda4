# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...events import EventPublisher
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.mechanic_calendar_service import MechanicCalendarService
from ...services.notification_service import NotificationSender, get_notification_sender
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_notification_sender_singleton() -> NotificationSender:
    """Get singleton notification sender instance."""
    return get_notification_sender()


def get_event_publisher(
    sender: NotificationSender = Depends(get_notification_sender_singleton),
) -> EventPublisher:
    """Get the post-commit event publisher."""
    return EventPublisher(sender)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    """Get conflict checker instance."""
    return ConflictChecker(db)


def get_booking_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        conflict_checker: Conflict checker sharing the request session
        event_publisher: Publisher for post-commit notifications

    Returns:
        BookingService instance
    """
    return BookingService(db, conflict_checker=conflict_checker, event_publisher=event_publisher)


def get_mechanic_calendar_service(db: Session = Depends(get_db)) -> MechanicCalendarService:
    """Get mechanic calendar service instance."""
    return MechanicCalendarService(db)
