"""
Database Access Layer - Core Engine.

============================================================
READ ACCESS TO THE TELEMETRY STORE
============================================================

The crawler owns the telemetry tables; this service only
reads them. This module provides:
- SQLAlchemy declarative base for the ORM tables
- Async engine creation with connection pooling
- Async session factory and session scope
- Connection verification

Requirements:
- SQLAlchemy 2.x async ORM with PostgreSQL (asyncpg)
- Explicit engine lifecycle: created once at startup,
  disposed at shutdown, passed to whoever needs it
- Hard failures on connection errors

============================================================
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


# =============================================================
# DECLARATIVE BASE
# =============================================================


class Base(DeclarativeBase):
    """Declarative base for all telemetry store tables."""
    pass


# =============================================================
# DATABASE ENGINE
# =============================================================


def get_database_url() -> str:
    """
    Get the async database URL from environment.

    Plain postgresql:// URLs are converted to the asyncpg driver.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise DatabaseConnectionError("DATABASE_URL is not set")

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


def create_database_engine(
    url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine with connection pooling.

    Args:
        url: Database URL (defaults to DATABASE_URL)
        pool_size: Number of connections to keep in pool
        max_overflow: Max connections beyond pool_size
        pool_timeout: Seconds to wait for available connection
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        AsyncEngine
    """
    database_url = url or get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    return create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@asynccontextmanager
async def session_scope(factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    """
    Async context manager for read sessions.

    Usage:
        async with session_scope(factory) as session:
            repository = TelemetryRepository(session)
            rows = await repository.fetch_live_nodes()

    On exception:
        - Rolls back
        - Re-raises the exception
        - Logs the error
    """
    session = factory()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(f"Database error, rolling back: {e}")
        await session.rollback()
        raise
    finally:
        await session.close()


async def verify_database_connection(engine: AsyncEngine) -> bool:
    """
    Verify database connection is working.

    Raises:
        DatabaseConnectionError if connection fails
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection verified successfully")
            return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e
    except OSError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


__all__ = [
    "Base",
    "get_database_url",
    "create_database_engine",
    "create_session_factory",
    "session_scope",
    "verify_database_connection",
    "DatabaseConnectionError",
]
