# backend/app/services/base.py
"""
Base Service Pattern for GarageBook Platform

Provides common functionality for all service classes including:
- Transaction management
- Translation of persistence failures into domain errors
- Operation logging and Prometheus timing
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    DependencyException,
    RepositoryException,
    ServiceException,
    is_db_pool_exhaustion,
)
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services own the session's transaction boundaries; repositories only
    add, flush and query.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Commits on success and rolls back on any error. Integrity errors are
        re-raised untouched so callers can map constraint violations; other
        persistence failures become DependencyException (retryable) or
        ServiceException.

        Usage:
            with self.transaction():
                self.repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except IntegrityError:
            self.db.rollback()
            raise
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise self.translate_persistence_error(e) from e
        except Exception as e:
            self.logger.debug(f"Transaction rolled back: {type(e).__name__}")
            self.db.rollback()
            raise

    @staticmethod
    def translate_persistence_error(exc: Exception) -> Exception:
        """Map a data-access failure onto the domain error taxonomy."""
        cause = exc.__cause__ if isinstance(exc, RepositoryException) else exc
        if isinstance(cause, (OperationalError, PoolTimeoutError)) or is_db_pool_exhaustion(exc):
            return DependencyException(
                "The booking store is temporarily unavailable. Please retry.",
                details={"error_type": type(cause).__name__},
            )
        return ServiceException(f"Database operation failed: {str(exc)}")

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator timing a service method into Prometheus.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, owner_id, data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    try:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="success" if success else "error",
                            error_type=error_type,
                        )
                    except Exception:
                        # Metrics must never break the operation
                        logger.debug("Failed to record service metrics", exc_info=True)

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with structured context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
