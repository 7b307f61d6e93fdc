"""
Network Health - Node Snapshot Normalizer.

============================================================
SINGLE SANITIZATION BOUNDARY
============================================================

Converts raw per-node records into NodeTelemetry:
- Live schema:       {ip|pubkey, status, version, stats: {...}}
- Historical schema: {ip, ts, cpu_percent, ram_used, ram_total,
                      uptime, storage_committed, [packets_*]}

Both schemas go through the same default-filling rules so that
live and historical computations stay comparable:
- None, non-numeric, NaN, +/-Infinity, negative  -> 0
- cpu_percent                                     -> clamped 0-100
- ram_total below 1                               -> 1
- missing packet counters                         -> 0
- missing storage_committed                       -> 0 (lossy)

Offline records are normalized, not dropped. Filtering by
online state is a caller decision.

No later component ever sees a raw record.

============================================================
"""

import math
from typing import Any, Iterable, List, Mapping, Optional
import logging

from .exceptions import DataUnavailableError
from .models import NodeTelemetry


logger = logging.getLogger(__name__)


ONLINE_STATUSES = frozenset({"active", "online"})
# 9999-12-31T23:59:59Z, the last instant a calendar date can express
MAX_TIMESTAMP = 253_402_300_799
UNKNOWN_VERSION = "unknown"


# =============================================================
# FIELD SANITIZERS
# =============================================================


def sanitize_number(value: Any) -> float:
    """
    Coerce a raw value into a finite, non-negative float.

    Anything that is not a finite non-negative number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def sanitize_count(value: Any) -> int:
    """Coerce a raw value into a non-negative integer."""
    return int(sanitize_number(value))


def sanitize_timestamp(value: Any) -> int:
    """Coerce a raw value into epoch seconds; implausible instants become 0."""
    timestamp = sanitize_count(value)
    if timestamp > MAX_TIMESTAMP:
        return 0
    return timestamp


def sanitize_percent(value: Any) -> float:
    """Coerce a raw value into a percentage within 0-100."""
    return min(100.0, sanitize_number(value))


def parse_online(status: Any) -> bool:
    """'active' / 'online' are online; anything else is offline."""
    if not isinstance(status, str):
        return False
    return status.strip().lower() in ONLINE_STATUSES


def parse_version(version: Any) -> str:
    if not isinstance(version, str) or not version.strip():
        return UNKNOWN_VERSION
    return version.strip()


def parse_node_id(record: Mapping[str, Any]) -> str:
    """Node id is the IP, falling back to the public key."""
    for key in ("ip", "pubkey"):
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return "unknown"


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# =============================================================
# RECORD NORMALIZATION
# =============================================================


def _build_telemetry(
    node_id: str,
    is_online: bool,
    version: Any,
    stats: Mapping[str, Any],
    timestamp: Any,
    pubkey: Optional[str],
) -> NodeTelemetry:
    ram_total = sanitize_count(stats.get("ram_total"))
    return NodeTelemetry(
        id=node_id,
        is_online=is_online,
        version=parse_version(version),
        cpu_percent=sanitize_percent(stats.get("cpu_percent")),
        ram_used_bytes=sanitize_count(stats.get("ram_used")),
        ram_total_bytes=max(1, ram_total),
        uptime_seconds=sanitize_count(stats.get("uptime")),
        packets_sent=sanitize_count(stats.get("packets_sent")),
        packets_received=sanitize_count(stats.get("packets_received")),
        storage_committed_bytes=sanitize_count(stats.get("storage_committed")),
        timestamp=sanitize_timestamp(timestamp),
        pubkey=pubkey,
    )


def normalize_live_node(
    record: Mapping[str, Any],
    timestamp: Optional[int] = None,
) -> NodeTelemetry:
    """
    Normalize a record from the live node collection.

    Args:
        record: {ip|pubkey, status, version, stats: {...}}
        timestamp: Snapshot instant; defaults to the record's own
            last_seen_timestamp / timestamp field

    Returns:
        NodeTelemetry
    """
    stats = record.get("stats")
    if not isinstance(stats, Mapping):
        stats = {}

    if timestamp is None:
        timestamp = record.get("last_seen_timestamp", record.get("timestamp"))

    return _build_telemetry(
        node_id=parse_node_id(record),
        is_online=parse_online(record.get("status")),
        version=record.get("version"),
        stats=stats,
        timestamp=timestamp,
        pubkey=_optional_str(record.get("pubkey")),
    )


def normalize_history_record(record: Mapping[str, Any]) -> NodeTelemetry:
    """
    Normalize a row from the historical table.

    The historical table only stores rows for active nodes, so a
    row without a status column is treated as online.
    """
    status = record.get("status")
    is_online = True if status is None else parse_online(status)

    return _build_telemetry(
        node_id=parse_node_id(record),
        is_online=is_online,
        version=record.get("version"),
        stats=record,
        timestamp=record.get("ts"),
        pubkey=_optional_str(record.get("pubkey")),
    )


# =============================================================
# COLLECTION NORMALIZATION
# =============================================================


def _require_records(collection: Any, source: str) -> List[Mapping[str, Any]]:
    """A top-level collection must be a list of mappings."""
    if not isinstance(collection, (list, tuple)):
        raise DataUnavailableError(
            source=source,
            reason=f"expected a list of records, got {type(collection).__name__}",
        )
    for index, record in enumerate(collection):
        if not isinstance(record, Mapping):
            raise DataUnavailableError(
                source=source,
                reason=f"record {index} is {type(record).__name__}, not a mapping",
            )
    return list(collection)


def normalize_live_nodes(
    collection: Any,
    timestamp: Optional[int] = None,
) -> List[NodeTelemetry]:
    """Normalize the whole live node collection."""
    records = _require_records(collection, "live_nodes")
    nodes = [normalize_live_node(record, timestamp) for record in records]
    logger.debug(f"Normalized {len(nodes)} live node records")
    return nodes


def normalize_history_records(collection: Any) -> List[NodeTelemetry]:
    """Normalize a collection of historical rows."""
    records = _require_records(collection, "node_history")
    nodes = [normalize_history_record(record) for record in records]
    logger.debug(f"Normalized {len(nodes)} historical records")
    return nodes


def count_online(nodes: Iterable[NodeTelemetry]) -> int:
    return sum(1 for node in nodes if node.is_online)
