"""Base repository and storage-error translation."""

import logging
from contextlib import contextmanager
from typing import Generic, Iterator, Optional, Type, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from clipbin.core.errors import InternalFailure, StoreUnavailable
from clipbin.db.session import Base

T = TypeVar("T", bound=Base)

logger = logging.getLogger("clipbin.db")


@contextmanager
def store_errors(db: Session, operation: str) -> Iterator[None]:
    """Convert SQLAlchemy failures into the API error taxonomy.

    The original exception is logged with ``operation`` as context and the
    transaction is rolled back; callers only ever see ``StoreUnavailable``
    (connectivity, pool timeout) or ``InternalFailure``.
    """
    try:
        yield
    except (PoolTimeoutError, OperationalError) as exc:
        logger.error("store unavailable during %s: %s", operation, exc)
        _rollback(db, operation)
        raise StoreUnavailable() from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            logger.error("store connection lost during %s: %s", operation, exc)
            _rollback(db, operation)
            raise StoreUnavailable() from exc
        logger.error("store error during %s: %s", operation, exc)
        _rollback(db, operation)
        raise InternalFailure() from exc
    except SQLAlchemyError as exc:
        logger.error("store error during %s: %s", operation, exc)
        _rollback(db, operation)
        raise InternalFailure() from exc


def _rollback(db: Session, operation: str) -> None:
    try:
        db.rollback()
    except SQLAlchemyError:
        logger.exception("rollback after failed %s also failed", operation)


class BaseRepository(Generic[T]):
    """
    Base repository bound to one SQLAlchemy session.

    Usage:
        class UserRepository(BaseRepository[User]):
            model = User

        repo = UserRepository(db)
        user = repo.get_by_id(1)
    """

    model: Type[T]

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, id: int) -> Optional[T]:
        with store_errors(self.db, f"load {self.model.__tablename__} {id}"):
            return self.db.get(self.model, id)
