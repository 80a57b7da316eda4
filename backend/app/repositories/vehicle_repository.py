"""Vehicle Repository for GarageBook Platform."""

import logging

from sqlalchemy.orm import Session

from ..models.vehicle import Vehicle
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class VehicleRepository(BaseRepository[Vehicle]):
    """Read access to the vehicle directory."""

    def __init__(self, db: Session):
        super().__init__(db, Vehicle)
