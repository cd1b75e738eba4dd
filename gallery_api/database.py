"""
Database engine and session management (SQLAlchemy 2.0, async).
PostgreSQL via asyncpg in production, SQLite via aiosqlite for development and tests.
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import declarative_base
from sqlalchemy import event, text
from fastapi import HTTPException
import logging

from gallery_api.config import settings
from gallery_api.exceptions import GalleryError

logger = logging.getLogger(__name__)

Base = declarative_base()

SUPPORTED_DRIVERS = ("postgresql+asyncpg", "sqlite+aiosqlite")


def _engine_options(url: str) -> dict:
    options = {"echo": False}
    # Pool sizing only matters for the PostgreSQL server pool
    if url.startswith("postgresql"):
        options.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {"server_settings": {"application_name": "gallery-api"}},
        })
    return options


def use_immediate_transactions(async_engine) -> None:
    """
    Start every SQLite transaction with ``BEGIN IMMEDIATE``.

    The Python sqlite driver only opens a transaction at the first write, so a
    count followed by an UPDATE is not atomic. Taking the write lock at BEGIN
    makes check-then-write sequences (featured admission, the reorder
    existence check) run one at a time; a second writer waits on the lock.
    """
    sync_engine = async_engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
if engine.dialect.name == "sqlite":
    use_immediate_transactions(engine)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency yielding one session per request.
    Commits when the handler returns; rolls back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except (GalleryError, HTTPException):
            # Expected request errors; services have already rolled back
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise


def describe_database_url(url: str) -> str:
    """
    Summarize DATABASE_URL for the startup log, without the password.

    Raises:
        ValueError: empty, unparseable, or using a driver other than asyncpg/aiosqlite
    """
    if not url:
        raise ValueError("DATABASE_URL is empty")
    try:
        parsed = make_url(url)
    except ArgumentError as e:
        raise ValueError(f"Cannot parse DATABASE_URL: {str(e)}")

    if parsed.drivername not in SUPPORTED_DRIVERS:
        raise ValueError(
            f"Unsupported driver '{parsed.drivername}'; expected one of: {', '.join(SUPPORTED_DRIVERS)}"
        )
    if parsed.drivername.startswith("sqlite"):
        return f"SQLite database at {parsed.database or ':memory:'}"
    return f"PostgreSQL database '{parsed.database}' on {parsed.host}:{parsed.port or 5432}"


async def init_db():
    """
    Check the database connection on startup.
    Creates missing tables when CREATE_TABLES_ON_STARTUP is set.
    """
    description = describe_database_url(settings.DATABASE_URL)
    logger.info(f"Using {description}")

    # Register the mapped tables on Base.metadata
    from gallery_api import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.CREATE_TABLES_ON_STARTUP:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables verified")
    except Exception as e:
        logger.error(f"Database connection failed ({type(e).__name__}): {str(e)}\n  Target: {description}")
        raise

    logger.info("Database connection initialized successfully")


async def close_db():
    """Close database connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
