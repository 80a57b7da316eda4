"""Service Repository for GarageBook Platform."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceRepository(BaseRepository[Service]):
    """Read access to the service catalog plus its booking counter."""

    def __init__(self, db: Session):
        super().__init__(db, Service)

    def increment_total_bookings(self, service_id: str) -> None:
        """Atomically bump the service's booking counter (does not commit)."""
        try:
            self.db.query(Service).filter(Service.id == service_id).update(
                {Service.total_bookings: Service.total_bookings + 1},
                synchronize_session="fetch",
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error incrementing bookings for service {service_id}: {str(e)}")
            raise RepositoryException(f"Failed to update service counter: {str(e)}") from e
