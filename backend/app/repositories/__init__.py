# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for GarageBook Platform

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    bookings, total = repository.list_bookings(owner_id=owner.id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .service_repository import ServiceRepository
from .user_repository import UserRepository
from .vehicle_repository import VehicleRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "RepositoryFactory",
    "ServiceRepository",
    "UserRepository",
    "VehicleRepository",
]
