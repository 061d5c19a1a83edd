"""
User Store: the persistence contract the auth workflow and gate depend on.

The core only needs lookup, existence checks and save. SqlAlchemyUserStore is
the production implementation; tests use an in-memory fake of the protocol.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Callable, ContextManager, Optional, Protocol, runtime_checkable

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authapi.core.database import SessionLocal, check_db_connected
from authapi.core.exceptions import StorageUnavailableError, UserAlreadyExistsError
from authapi.models import User

logger = logging.getLogger(__name__)


@runtime_checkable
class UserStore(Protocol):
    """
    Interface for user persistence.

    All username/email comparisons are case-insensitive. Implementations raise
    StorageUnavailableError when the backing store fails, never a lookup miss.
    """

    def find_by_identifier(self, identifier: str) -> Optional[User]:
        """Return the user whose username or email matches identifier."""
        ...

    def find_by_username(self, username: str) -> Optional[User]:
        ...

    def exists_by_username(self, username: str) -> bool:
        ...

    def exists_by_email(self, email: str) -> bool:
        ...

    def save(self, user: User) -> User:
        """Insert or update user and return it with its id assigned."""
        ...

    def ping(self) -> bool:
        """Return True when the backing store is reachable."""
        ...


UserStoreFactory = Callable[[], ContextManager[UserStore]]


class SqlAlchemyUserStore:
    """UserStore over a SQLAlchemy session; one store per request."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _first(self, stmt) -> Optional[User]:
        try:
            return self.session.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            logger.error("User lookup failed: %s", e)
            raise StorageUnavailableError() from e

    def find_by_identifier(self, identifier: str) -> Optional[User]:
        needle = identifier.strip().lower()
        stmt = select(User).where(
            or_(func.lower(User.username) == needle, func.lower(User.email) == needle)
        )
        return self._first(stmt)

    def find_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.username) == username.strip().lower())
        return self._first(stmt)

    def exists_by_username(self, username: str) -> bool:
        return self.find_by_username(username) is not None

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self._first(stmt) is not None

    def save(self, user: User) -> User:
        try:
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        except IntegrityError as e:
            # Uniqueness is enforced by the database; a concurrent insert lost the race.
            self.session.rollback()
            logger.warning("User save violated a uniqueness constraint: %s", e.orig)
            raise UserAlreadyExistsError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("User save failed: %s", e)
            raise StorageUnavailableError() from e
        return user

    def ping(self) -> bool:
        return check_db_connected(self.session)


@contextmanager
def session_user_store() -> Iterator[UserStore]:
    """Yield a SqlAlchemyUserStore bound to a fresh session and close it when done."""
    db = SessionLocal()
    try:
        yield SqlAlchemyUserStore(db)
    finally:
        db.close()
