# backend/app/repositories/factory.py
"""
Repository Factory for GarageBook Platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .service_repository import ServiceRepository
    from .user_repository import UserRepository
    from .vehicle_repository import VehicleRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """Create repository for user lookups."""
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_vehicle_repository(db: Session) -> "VehicleRepository":
        """Create repository for vehicle lookups."""
        from .vehicle_repository import VehicleRepository

        return VehicleRepository(db)

    @staticmethod
    def create_service_repository(db: Session) -> "ServiceRepository":
        """Create repository for service catalog lookups."""
        from .service_repository import ServiceRepository

        return ServiceRepository(db)
