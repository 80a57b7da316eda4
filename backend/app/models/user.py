# backend/app/models/user.py
"""
User model for GarageBook platform.

Users are owned by the account subsystem; the booking engine only reads
them to resolve roles and to check that a mechanic is active.
"""

import logging

from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import AccountStatus, RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Platform user: vehicle owner, mechanic or administrator.

    Attributes:
        id: ULID primary key
        name: Display name
        email: Unique email address
        role: One of RoleName values
        account_status: One of AccountStatus values
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.OWNER.value, index=True)
    account_status = Column(String(20), nullable=False, default=AccountStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'mechanic', 'owner')", name="ck_users_role"),
        CheckConstraint(
            "account_status IN ('active', 'inactive', 'suspended')",
            name="ck_users_account_status",
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.account_status == AccountStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role} status={self.account_status}>"
