"""
Tests for the Telemetry Repository.

============================================================
PURPOSE
============================================================
Repository reads are tested against a mocked AsyncSession.

TEST PRINCIPLES:
- ORM rows convert to the raw schemas the normalizer expects
- Store failures surface as DataUnavailableError
- Sessions are always closed

============================================================
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from network_health.exceptions import DataUnavailableError
from network_health.models import SnapshotRollup
from network_health.persistence import (
    NetworkSnapshotRecord,
    PNodeHistoryRecord,
    PNodeRecord,
)
from network_health.repository import TelemetryRepository


# ============================================================
# FIXTURES
# ============================================================

def session_returning(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)
    return session


def failing_session(error):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=error)
    return session


# ============================================================
# READS
# ============================================================

class TestFetchLiveNodes:

    @pytest.mark.asyncio
    async def test_rows_become_live_records(self):
        session = session_returning([
            PNodeRecord(
                ip="10.0.0.1",
                pubkey="pk-1",
                status="active",
                version="1.0.0",
                stats={"cpu_percent": 12.0, "uptime": 3600},
                last_seen_timestamp=1_700_000_000,
            ),
        ])

        records = await TelemetryRepository(session).fetch_live_nodes()

        assert records == [{
            "ip": "10.0.0.1",
            "pubkey": "pk-1",
            "status": "active",
            "version": "1.0.0",
            "stats": {"cpu_percent": 12.0, "uptime": 3600},
            "last_seen_timestamp": 1_700_000_000,
        }]

    @pytest.mark.asyncio
    async def test_null_stats(self):
        session = session_returning([PNodeRecord(ip="10.0.0.1", status="gossip_only")])

        records = await TelemetryRepository(session).fetch_live_nodes()

        assert records[0]["stats"] == {}

    @pytest.mark.asyncio
    async def test_store_error_is_data_unavailable(self):
        session = failing_session(OperationalError("SELECT", {}, Exception("down")))

        with pytest.raises(DataUnavailableError) as exc_info:
            await TelemetryRepository(session).fetch_live_nodes()

        assert exc_info.value.source == "pnodes"
        assert exc_info.value.details["exception_type"] == "OperationalError"


class TestFetchHistory:

    @pytest.mark.asyncio
    async def test_absent_columns_stay_absent(self):
        session = session_returning([
            PNodeHistoryRecord(
                ip="10.0.0.1",
                ts=100,
                cpu_percent=5.0,
                ram_used=1,
                ram_total=2,
                uptime=60,
                storage_committed=10,
            ),
        ])

        records = await TelemetryRepository(session).fetch_history(0, 200)

        assert "packets_sent" not in records[0]
        assert "version" not in records[0]
        assert records[0]["ts"] == 100
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_error_is_data_unavailable(self):
        session = failing_session(SQLAlchemyError("timeout"))

        with pytest.raises(DataUnavailableError) as exc_info:
            await TelemetryRepository(session).fetch_history(0, 200)

        assert exc_info.value.source == "pnode_history"


class TestFetchRecentSnapshots:

    @pytest.mark.asyncio
    async def test_rows_become_rollups(self):
        session = session_returning([
            NetworkSnapshotRecord(
                snapshot_date=date(2026, 1, 2),
                active_nodes=110,
                total_pages=2000,
                network_health_score=81,
                total_storage_committed=None,
            ),
        ])

        snapshots = await TelemetryRepository(session).fetch_recent_snapshots(8)

        assert snapshots == [SnapshotRollup(
            snapshot_date=date(2026, 1, 2),
            active_nodes=110,
            total_pages=2000,
            network_health_score=81,
            total_storage_committed=0,
        )]


# ============================================================
# PROVIDER
# ============================================================

class TestProvider:

    @pytest.mark.asyncio
    async def test_session_closed_after_use(self):
        session = session_returning([])
        factory = MagicMock(return_value=session)
        provide = TelemetryRepository.provider(factory)

        async with provide() as repository:
            assert await repository.fetch_live_nodes() == []

        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_session_closed_on_error(self):
        session = failing_session(SQLAlchemyError("down"))
        factory = MagicMock(return_value=session)
        provide = TelemetryRepository.provider(factory)

        with pytest.raises(DataUnavailableError):
            async with provide() as repository:
                await repository.fetch_live_nodes()

        session.close.assert_awaited_once()
