"""
Database handle: owns the SQLAlchemy engine and session factory.

One Database is created per application (or per test) and handed to the
repositories at construction. Each gateway call runs inside its own
session_scope, which is the unit of work.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DatabaseSettings
from ..core.exceptions import StorageError
from .tables import Base

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: DatabaseSettings) -> Engine:
    """Create an engine with pool options suited to the configured backend."""
    kwargs: Dict[str, Any] = {
        "echo": settings.echo,
        "pool_pre_ping": settings.pool_pre_ping,
        # Bound values carry emails and hashes; keep them out of error text
        "hide_parameters": True,
    }

    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if settings.url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout_seconds,
            pool_recycle=settings.pool_recycle_seconds,
        )

    engine = create_engine(settings.url, **kwargs)
    if settings.is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.info(
        "Database engine created",
        url=settings.safe_url,
        pool=type(engine.pool).__name__,
    )
    return engine


class Database:
    """Explicitly owned connection pool plus session factory."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        return cls(build_engine(settings))

    def create_schema(self) -> None:
        """Create missing tables. Idempotent."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Acquire a session for one unit of work.

        Commits when the block finishes, rolls back on any error and always
        returns the connection to the pool. SQLAlchemy errors leave this
        block as StorageError.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database operation failed", error=str(e), error_type=type(e).__name__)
            raise StorageError("Database operation failed", details={"error_type": type(e).__name__}) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> Optional[str]:
        """Run a trivial query. Returns None when healthy, else the error text."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", error=str(e))
            return str(e)
        return None

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
        logger.info("Database engine disposed")
