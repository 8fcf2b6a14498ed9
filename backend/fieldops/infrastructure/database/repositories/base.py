"""
Base repository with common session handling.

Every database failure leaves the repository as a ``PersistenceError``.
Idempotent reads are retried with exponential backoff on transient
connection errors; writes are never retried.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session, SQLModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fieldops.core.config import settings
from fieldops.core.observability import get_logger
from fieldops.domain.shared.exceptions import PersistenceError

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
EntityT = TypeVar("EntityT", bound=SQLModel)


def _log_retry(retry_state) -> None:
    logger.warning(
        "Retrying database read",
        function=retry_state.fn.__name__ if retry_state.fn else None,
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def read_operation(operation: str):
    """Retry transient failures of an idempotent read, then wrap errors."""

    def decorator(func: F) -> F:
        retrying = retry(
            stop=stop_after_attempt(settings.PERSISTENCE_READ_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=0.1, max=settings.PERSISTENCE_READ_RETRY_MAX_DELAY
            ),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=_log_retry,
            reraise=True,
        )(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return retrying(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Database read failed", operation=operation, error=str(e))
                raise PersistenceError(operation, e) from e

        return wrapper  # type: ignore[return-value]

    return decorator


def write_operation(operation: str):
    """Wrap errors of a mutation without retrying it."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Database write failed", operation=operation, error=str(e))
                raise PersistenceError(operation, e) from e

        return wrapper  # type: ignore[return-value]

    return decorator


class BaseRepository:
    """
    Base repository holding the unit of work's session.

    Mutations are flushed immediately so constraint violations surface at the
    call site rather than at commit.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _save(self, entity: EntityT) -> EntityT:
        self.session.add(entity)
        self.session.flush()
        return entity

    def _remove(self, entity: SQLModel) -> None:
        self.session.delete(entity)
        self.session.flush()
