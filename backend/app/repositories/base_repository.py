# backend/app/repositories/base_repository.py
"""
Base repository for GarageBook data access.

Repositories never commit: the service layer owns the transaction and
decides how persistence failures map onto domain errors. Query failures
surface as RepositoryException with the SQLAlchemy error chained.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Primary-key reads and inserts shared by every repository.

    Attributes:
        db: SQLAlchemy session (owned by the calling service)
        model: Mapped class this repository serves
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """Load one row by id, with the subclass's eager loads unless disabled."""
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}") from e

    def create(self, **kwargs: Any) -> T:
        """Add and flush a new row so its id is available; does not commit."""
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e

    def flush(self) -> None:
        self.db.flush()

    def refresh(self, instance: T, lock: bool = False) -> None:
        """
        Reload ``instance`` from the database inside the current transaction.

        With ``lock`` the row is read ``FOR UPDATE`` and stays locked until
        the transaction ends.
        """
        self.db.refresh(instance, with_for_update=True if lock else None)

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override to eager-load relationships on ``get_by_id``."""
        return query
