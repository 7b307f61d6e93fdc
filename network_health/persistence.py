"""
Network Health - Persistence Layer.

============================================================
PURPOSE
============================================================
ORM models for the external telemetry store. The crawler and
the daily snapshot job write these tables; this service only
reads them.

============================================================
MODELS
============================================================
1. PNodeRecord: Live node table, one row per node, rich stats
2. PNodeHistoryRecord: Historical rows keyed by (ip, ts),
   narrower schema, packet counters may be missing
3. NetworkSnapshotRecord: Daily network rollups

Each model converts itself to the raw mapping the normalizer
expects, so scoring never depends on ORM types.

============================================================
"""

from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import (
    BigInteger,
    Date,
    Float,
    Index,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base

from .models import SnapshotRollup
from .normalizer import sanitize_count


# ============================================================
# LIVE NODES
# ============================================================


class PNodeRecord(Base):
    """
    Current state of every known node.

    Stats are stored as the JSON document returned by the node
    RPC (cpu_percent, ram_used, ram_total, uptime, packets_*,
    storage_committed, ...).
    """

    __tablename__ = "pnodes"

    ip: Mapped[str] = mapped_column(String(64), primary_key=True)
    pubkey: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="gossip_only",
        comment="active | online | gossip_only",
    )
    version: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    stats: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    last_seen_timestamp: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="Unix seconds of the last crawl that saw the node",
    )

    __table_args__ = (
        Index("ix_pnodes_status", "status"),
    )

    def to_record(self) -> Dict[str, Any]:
        """Raw live-schema mapping for the normalizer."""
        return {
            "ip": self.ip,
            "pubkey": self.pubkey,
            "status": self.status,
            "version": self.version,
            "stats": dict(self.stats or {}),
            "last_seen_timestamp": self.last_seen_timestamp,
        }

    def __repr__(self) -> str:
        return f"PNodeRecord(ip={self.ip}, status={self.status}, version={self.version})"


# ============================================================
# NODE HISTORY
# ============================================================


class PNodeHistoryRecord(Base):
    """Point-in-time node stats written by each crawl."""

    __tablename__ = "pnode_history"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    ip: Mapped[str] = mapped_column(String(64), nullable=False)
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False, comment="Unix seconds")

    cpu_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ram_used: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    ram_total: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    uptime: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    storage_committed: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Not written by older crawler versions
    packets_sent: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    packets_received: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    version: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_pnode_history_ts", "ts"),
        Index("ix_pnode_history_ip_ts", "ip", "ts"),
    )

    def to_record(self) -> Dict[str, Any]:
        """Raw historical-schema mapping; absent columns stay absent."""
        record: Dict[str, Any] = {
            "ip": self.ip,
            "ts": self.ts,
            "cpu_percent": self.cpu_percent,
            "ram_used": self.ram_used,
            "ram_total": self.ram_total,
            "uptime": self.uptime,
            "storage_committed": self.storage_committed,
        }
        if self.packets_sent is not None:
            record["packets_sent"] = self.packets_sent
        if self.packets_received is not None:
            record["packets_received"] = self.packets_received
        if self.version:
            record["version"] = self.version
        return record

    def __repr__(self) -> str:
        return f"PNodeHistoryRecord(ip={self.ip}, ts={self.ts})"


# ============================================================
# DAILY SNAPSHOTS
# ============================================================


class NetworkSnapshotRecord(Base):
    """Daily network aggregate written by the snapshot job."""

    __tablename__ = "network_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    active_nodes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_pages: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    network_health_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_storage_committed: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    def to_rollup(self) -> SnapshotRollup:
        return SnapshotRollup(
            snapshot_date=self.snapshot_date,
            active_nodes=sanitize_count(self.active_nodes),
            total_pages=sanitize_count(self.total_pages),
            network_health_score=self.network_health_score,
            total_storage_committed=sanitize_count(self.total_storage_committed),
        )

    def __repr__(self) -> str:
        return f"NetworkSnapshotRecord(date={self.snapshot_date}, active={self.active_nodes})"
