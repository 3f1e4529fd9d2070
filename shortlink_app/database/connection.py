"""
Database connection pool shared by every request.

One ConnectionPool is created at startup (see main.create_app) and injected
into the mapping store. Each store operation borrows a session through
ConnectionPool.session(), which always gives the slot back, whether the
operation commits, fails or raises.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from shortlink_app.config import Settings
from shortlink_app.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

Base = declarative_base()


class ConnectionPool:
    """
    Bounded pool of database sessions.

    - At most `db_pool_size` operations hold a connection at once.
    - Further callers queue for up to `db_pool_timeout` seconds.
    - With `db_queue_limit > 0`, callers beyond that many waiters fail
      immediately instead of queueing.

    Both failure modes raise a retryable StoreUnavailableError because no
    statement has been sent yet.
    """

    def __init__(self, settings: Settings):
        self.size = settings.db_pool_size
        self.queue_limit = settings.db_queue_limit
        self.timeout = settings.db_pool_timeout

        url = settings.sqlalchemy_url
        connect_args = {}
        if url.get_backend_name() == "sqlite":
            # Sessions hop between worker threads; let SQLite wait on locks
            connect_args = {"check_same_thread": False, "timeout": self.timeout}

        self.engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=self.size,
            max_overflow=0,
            pool_timeout=self.timeout,
            pool_pre_ping=True,
            echo=settings.db_echo,
            connect_args=connect_args,
        )
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

        self._condition = threading.Condition()
        self._in_use = 0
        self._waiting = 0

    @property
    def in_use(self) -> int:
        """Number of sessions currently checked out."""
        return self._in_use

    @property
    def waiting(self) -> int:
        """Number of callers queued for a free slot."""
        return self._waiting

    def _acquire(self) -> None:
        with self._condition:
            if self._in_use >= self.size:
                if self.queue_limit and self._waiting >= self.queue_limit:
                    raise StoreUnavailableError(
                        "Connection pool queue is full", retryable=True
                    )
                self._waiting += 1
                try:
                    acquired = self._condition.wait_for(
                        lambda: self._in_use < self.size, timeout=self.timeout
                    )
                finally:
                    self._waiting -= 1
                if not acquired:
                    raise StoreUnavailableError(
                        "Timed out waiting for a database connection", retryable=True
                    )
            self._in_use += 1

    def _release(self) -> None:
        with self._condition:
            self._in_use -= 1
            self._condition.notify()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Borrow a session for one logical operation.

        Commits when the block exits normally, rolls back on any exception,
        and releases the connection on every path.
        """
        self._acquire()
        try:
            db = self.session_factory()
            try:
                try:
                    # Check out the connection now so connect errors stay retryable
                    db.connection()
                except SQLAlchemyError as e:
                    logger.warning("Could not obtain a database connection: %s", e)
                    raise StoreUnavailableError(
                        "Could not connect to the database", retryable=True
                    ) from e
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()
        finally:
            self._release()

    def create_schema(self) -> None:
        """Create tables for all registered models"""
        # Import models so they're registered with Base
        from shortlink_app.models import UrlMapping  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.session() as db:
                db.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, StoreUnavailableError) as e:
            logger.error("Database health check failed: %s", e)
            return False

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
