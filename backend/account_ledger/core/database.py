import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# SQLAlchemy 2.0 style — replaces the deprecated declarative_base() function
class Base(DeclarativeBase):
    pass


# Driver messages that mean "somebody else holds the lock, try again later"
LOCK_TIMEOUT_MARKERS = (
    "database is locked",
    "database table is locked",
    "lock timeout",
    "could not obtain lock",
    "canceling statement due to lock timeout",
    "deadlock detected",
)


def is_lock_timeout(exc: OperationalError) -> bool:
    """True when the driver gave up waiting on a lock held by another writer."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in LOCK_TIMEOUT_MARKERS)


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:"}


class Database:
    """
    Lifecycle-managed storage handle.

    Owns the engine and the session factory. Opened once when the service
    starts and closed at shutdown; everything that needs storage receives
    this handle (or a session made from it) explicitly.
    """

    def __init__(self, url: str, lock_timeout_seconds: float = 5.0) -> None:
        self.url = url
        self.lock_timeout_seconds = lock_timeout_seconds
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def _engine_kwargs(self) -> dict:
        kwargs: dict = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            # TestClient and worker threads access SQLite connections across threads.
            kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": self.lock_timeout_seconds,
            }
            if _is_memory_sqlite(self.url):
                # One shared in-memory DB across all connections
                kwargs["poolclass"] = StaticPool
        elif self.url.startswith("postgresql"):
            timeout_ms = int(self.lock_timeout_seconds * 1000)
            kwargs["connect_args"] = {"options": f"-c lock_timeout={timeout_ms}"}
        return kwargs

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database handle is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is None:
            self._engine = create_engine(self.url, **self._engine_kwargs())
            self._session_factory = sessionmaker(
                autocommit=False, autoflush=False, bind=self._engine
            )
            logger.info("Database handle opened")
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database handle closed")

    def create_schema(self) -> None:
        # Import models so they are registered on Base.metadata
        from account_ledger.models import account, ledger_entry  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def new_session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database handle is not open")
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Session scope. Anything that escapes, including cancellation,
        rolls back whatever was not committed.
        """
        db = self.new_session()
        try:
            yield db
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request):
    with get_database(request).session() as db:
        yield db
