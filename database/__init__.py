"""
Database Package Initialization.

============================================================
TELEMETRY STORE ACCESS
============================================================

Async SQLAlchemy engine and session management for reading
the tables written by the crawler and the snapshot job.

============================================================
"""

from .engine import (
    Base,
    get_database_url,
    create_database_engine,
    create_session_factory,
    session_scope,
    verify_database_connection,
    DatabaseConnectionError,
)


__all__ = [
    "Base",
    "get_database_url",
    "create_database_engine",
    "create_session_factory",
    "session_scope",
    "verify_database_connection",
    "DatabaseConnectionError",
]
