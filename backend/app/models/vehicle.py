"""Vehicle read model (owned by the vehicle directory)."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Vehicle(Base):
    """A vehicle registered by an owner."""

    __tablename__ = "vehicles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=True)
    license_plate = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", foreign_keys=[owner_id])

    def __repr__(self) -> str:
        return f"<Vehicle {self.id}: {self.year} {self.make} {self.model} owner={self.owner_id}>"
