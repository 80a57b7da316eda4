# backend/app/repositories/user_repository.py
"""
User Repository for GarageBook Platform

Read access to the user directory plus the per-mechanic row lock used to
serialize scheduling writes.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def lock_for_scheduling(self, user_id: str) -> Optional[User]:
        """
        Select the user row FOR UPDATE inside the current transaction.

        Concurrent scheduling writes for the same mechanic queue on this lock
        until the first transaction commits. SQLite ignores the clause.
        """
        try:
            return self.db.query(User).filter(User.id == user_id).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock user: {str(e)}") from e
