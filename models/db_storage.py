"""
DBStorage: the user record store.

Wraps a SQLAlchemy engine and a scoped_session. Backend exceptions are
turned into domain errors here: a unique-constraint violation becomes
Conflict, anything else StorageFailure. Nothing is retried.
"""
import logging
from os import getenv

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.user import User
from services.errors import Conflict, StorageFailure

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "User": User,
}


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


# driver codes for a duplicate key: SQLSTATE (PostgreSQL), errno (MySQL/MariaDB)
UNIQUE_VIOLATION_SQLSTATE = "23505"
MYSQL_DUPLICATE_ENTRY = 1062


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    # SQLite only reports the violation in its message
    message = str(orig if orig is not None else exc).lower()
    return "unique constraint" in message or "duplicate entry" in message


class DBStorage:
    __engine = None
    __session = None

    def reload(self, database_url: str | None = None, echo: bool = False):
        """Create the engine for `database_url`, create tables and start a session"""
        url = database_url or getenv("DATABASE_URL", "sqlite:///ritmo.db")
        if self.__session is not None:
            self.__session.remove()
        if self.__engine is not None:
            self.__engine.dispose()

        if _is_memory_sqlite(url):
            # one shared connection so every session sees the same in-memory db
            self.__engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.__engine = create_engine(url, echo=echo, pool_pre_ping=True)

        try:
            Base.metadata.create_all(self.__engine)
        except SQLAlchemyError as exc:
            logger.exception("could not initialise the database")
            raise StorageFailure("Database unavailable") from exc
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except IntegrityError as exc:
            self.__session.rollback()
            if is_unique_violation(exc):
                raise Conflict("Unique constraint violated") from exc
            raise StorageFailure("Integrity error") from exc
        except (SQLAlchemyError, OverflowError) as exc:
            self.__session.rollback()
            logger.exception("commit failed")
            raise StorageFailure() from exc

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls not in classes.values() or id is None:
            return None
        try:
            return self.__session.get(cls, id)
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc

    def find_by(self, cls, **filters):
        """Fetch the first object whose columns match every filter"""
        try:
            return self.__session.query(cls).filter_by(**filters).first()
        except SQLAlchemyError as exc:
            raise StorageFailure() from exc

    def delete_by_id(self, cls, id):
        """Hard delete by ID, returns the deleted object or None"""
        obj = self.get(cls, id)
        if obj is None:
            return None
        self.delete(obj)
        self.save()
        return obj

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

