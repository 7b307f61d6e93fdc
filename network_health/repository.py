"""
Network Health - Repository.

============================================================
PURPOSE
============================================================
Repository pattern implementation for reading telemetry from
the external store.

Provides clean interface for:
- Reading the live node table
- Reading historical rows in a time window
- Reading recent daily snapshot rollups

Every store failure surfaces as DataUnavailableError, never
as an empty result: an unreachable store and an empty table
are different conditions.

============================================================
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List
import logging

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.engine import session_scope

from .exceptions import DataUnavailableError
from .models import SnapshotRollup
from .persistence import NetworkSnapshotRecord, PNodeHistoryRecord, PNodeRecord


logger = logging.getLogger(__name__)


class TelemetryRepository:
    """
    Read-only repository over the telemetry store.

    ============================================================
    METHODS
    ============================================================
    - fetch_live_nodes: All rows of the live node table
    - fetch_history: Historical rows within [start, end]
    - fetch_recent_snapshots: Newest daily rollups first

    ============================================================
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    @classmethod
    def provider(
        cls,
        session_factory: async_sessionmaker,
    ) -> Callable[[], Any]:
        """
        Build a per-request repository provider.

        Usage:
            provide = TelemetryRepository.provider(factory)
            async with provide() as repository:
                rows = await repository.fetch_live_nodes()
        """
        @asynccontextmanager
        async def provide() -> AsyncIterator["TelemetryRepository"]:
            async with session_scope(session_factory) as session:
                yield cls(session)

        return provide

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    async def fetch_live_nodes(self) -> List[Dict[str, Any]]:
        """
        Get every row of the live node table.

        Returns:
            Raw live-schema records
        """
        stmt = select(PNodeRecord).order_by(PNodeRecord.ip)
        try:
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read live nodes: {e}")
            raise DataUnavailableError("pnodes", "query failed", e) from e

        logger.debug(f"Fetched {len(rows)} live node rows")
        return [row.to_record() for row in rows]

    async def fetch_history(self, start_ts: int, end_ts: int) -> List[Dict[str, Any]]:
        """
        Get historical rows with start_ts <= ts <= end_ts.

        Args:
            start_ts: Window start, unix seconds
            end_ts: Window end, unix seconds

        Returns:
            Raw historical-schema records, ascending by ts
        """
        stmt = (
            select(PNodeHistoryRecord)
            .where(PNodeHistoryRecord.ts >= start_ts)
            .where(PNodeHistoryRecord.ts <= end_ts)
            .order_by(PNodeHistoryRecord.ts, PNodeHistoryRecord.ip)
        )
        try:
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read node history [{start_ts}, {end_ts}]: {e}")
            raise DataUnavailableError("pnode_history", "query failed", e) from e

        logger.debug(f"Fetched {len(rows)} history rows in [{start_ts}, {end_ts}]")
        return [row.to_record() for row in rows]

    async def fetch_recent_snapshots(self, limit: int = 8) -> List[SnapshotRollup]:
        """
        Get the most recent daily rollups.

        Args:
            limit: Maximum number of rollups

        Returns:
            Rollups, newest first
        """
        stmt = (
            select(NetworkSnapshotRecord)
            .order_by(desc(NetworkSnapshotRecord.snapshot_date))
            .limit(limit)
        )
        try:
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read network snapshots: {e}")
            raise DataUnavailableError("network_snapshots", "query failed", e) from e

        return [row.to_rollup() for row in rows]
