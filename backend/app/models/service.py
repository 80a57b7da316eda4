# backend/app/models/service.py
"""
Garage service catalog read model.

A service carries the price and duration snapshotted into every booking
created for it, and optionally a default mechanic used when the owner
does not pick one.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Service(Base):
    """A bookable service such as an oil change or brake inspection."""

    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    service_name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    base_cost = Column(Numeric(10, 2), nullable=False)
    estimated_duration = Column(Integer, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    mechanic_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    total_bookings = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    mechanic = relationship("User", foreign_keys=[mechanic_id])

    __table_args__ = (
        CheckConstraint("base_cost >= 0", name="check_service_cost_non_negative"),
        CheckConstraint("estimated_duration >= 15", name="check_service_duration_minimum"),
        CheckConstraint("estimated_duration <= 480", name="check_service_duration_maximum"),
    )

    def __repr__(self) -> str:
        return (
            f"<Service {self.id}: {self.service_name} cost={self.base_cost} "
            f"duration={self.estimated_duration} available={self.is_available}>"
        )
