"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - build_engine(): Creates an async engine, with SQLite write-locking applied
  - engine: The application's async database engine
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request

Locking:
  Transfers lock both account rows with SELECT ... FOR UPDATE. PostgreSQL
  honours that directly. SQLite ignores FOR UPDATE, so for file-backed
  SQLite databases every transaction is opened with BEGIN IMMEDIATE, which
  takes the database write lock up front. Two transfers racing on the same
  account therefore run one after the other instead of both reading a
  stale balance.

Session lifecycle:
  Each API request gets its own session via get_db(). The transfer engine
  commits its own units of work; get_db() commits anything left over on
  success and rolls back on unexpected exceptions.
"""

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from speedo.config import settings
from speedo.exceptions import BankAPIError


def _is_file_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    For file-backed SQLite, the driver's implicit BEGIN is disabled and
    replaced with BEGIN IMMEDIATE (see module docstring). In-memory SQLite
    shares a single connection, so it is left with the driver defaults.
    """
    async_engine = create_async_engine(url, echo=echo)

    if _is_file_sqlite(url):
        Path(make_url(url).database).parent.mkdir(parents=True, exist_ok=True)

        @event.listens_for(async_engine.sync_engine, "connect")
        def _disable_driver_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(async_engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return async_engine


# echo=True in debug mode logs all SQL statements — invaluable for development.
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Session factory: creates new AsyncSession instances.
# expire_on_commit=False prevents lazy-load errors after commit —
# the transfer engine commits mid-request and still reads the
# committed Transaction afterwards.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success and rolled back on any unexpected
    exception, then closed when the request completes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except BankAPIError:
            # Domain errors leave nothing half-written: the engine has
            # already committed (declined audit row) or rolled back.
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
