# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_actor, require_owner
from .database import get_db
from .services import (
    get_booking_service,
    get_conflict_checker,
    get_event_publisher,
    get_mechanic_calendar_service,
)

__all__ = [
    # Auth
    "get_current_actor",
    "require_owner",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_conflict_checker",
    "get_event_publisher",
    "get_mechanic_calendar_service",
]
