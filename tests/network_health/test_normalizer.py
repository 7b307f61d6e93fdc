"""
Tests for the Node Snapshot Normalizer.

============================================================
PURPOSE
============================================================
The normalizer is the single sanitization boundary.

TEST PRINCIPLES:
- Garbage values become 0, never exceptions
- Live and historical schemas normalize identically
- Offline records are kept
- Only malformed collections raise

============================================================
"""

import math

import pytest

from network_health.exceptions import DataUnavailableError
from network_health.models import NodeTelemetry
from network_health.normalizer import (
    UNKNOWN_VERSION,
    count_online,
    normalize_history_record,
    normalize_history_records,
    normalize_live_node,
    normalize_live_nodes,
    parse_node_id,
    parse_online,
    sanitize_count,
    sanitize_number,
    sanitize_percent,
    sanitize_timestamp,
)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def live_record():
    return {
        "ip": "10.0.0.1",
        "status": "active",
        "version": "1.2.0",
        "last_seen_timestamp": 1_700_000_000,
        "stats": {
            "cpu_percent": 12.5,
            "ram_used": 2_000,
            "ram_total": 8_000,
            "uptime": 3_600,
            "packets_sent": 500,
            "packets_received": 400,
            "storage_committed": 10_000,
        },
    }


@pytest.fixture
def history_record():
    return {
        "ip": "10.0.0.1",
        "ts": 1_700_000_000,
        "version": "1.2.0",
        "cpu_percent": 12.5,
        "ram_used": 2_000,
        "ram_total": 8_000,
        "uptime": 3_600,
        "packets_sent": 500,
        "packets_received": 400,
        "storage_committed": 10_000,
    }


# ============================================================
# FIELD SANITIZERS
# ============================================================

class TestSanitizeNumber:
    """Tests for numeric coercion."""

    @pytest.mark.parametrize("value", [
        None,
        "abc",
        float("nan"),
        float("inf"),
        float("-inf"),
        -5,
        -0.1,
        True,
        [1, 2],
        {},
        10 ** 400,
        -(10 ** 400),
    ])
    def test_garbage_becomes_zero(self, value):
        assert sanitize_number(value) == 0.0

    def test_numeric_string_is_parsed(self):
        assert sanitize_number("12.5") == 12.5

    def test_valid_number_passes_through(self):
        assert sanitize_number(3) == 3.0
        assert sanitize_number(0) == 0.0

    def test_count_truncates(self):
        assert sanitize_count(7.9) == 7
        assert sanitize_count(float("nan")) == 0

    def test_percent_is_capped(self):
        assert sanitize_percent(150) == 100.0
        assert sanitize_percent(-3) == 0.0
        assert sanitize_percent(42.0) == 42.0

    def test_timestamp_out_of_calendar_range(self):
        assert sanitize_timestamp(1_700_000_000) == 1_700_000_000
        assert sanitize_timestamp(10 ** 15) == 0
        assert sanitize_timestamp(10 ** 400) == 0


class TestParsers:
    """Tests for status and identity parsing."""

    @pytest.mark.parametrize("status,expected", [
        ("active", True),
        ("online", True),
        (" Active ", True),
        ("gossip_only", False),
        ("offline", False),
        (None, False),
        (1, False),
    ])
    def test_parse_online(self, status, expected):
        assert parse_online(status) is expected

    def test_node_id_prefers_ip(self):
        assert parse_node_id({"ip": "1.2.3.4", "pubkey": "pk"}) == "1.2.3.4"

    def test_node_id_falls_back_to_pubkey(self):
        assert parse_node_id({"ip": "", "pubkey": "pk"}) == "pk"

    def test_node_id_unknown(self):
        assert parse_node_id({}) == "unknown"


# ============================================================
# RECORD NORMALIZATION
# ============================================================

class TestNormalizeLiveNode:
    """Tests for live-schema records."""

    def test_full_record(self, live_record):
        node = normalize_live_node(live_record)

        assert node.id == "10.0.0.1"
        assert node.is_online is True
        assert node.version == "1.2.0"
        assert node.cpu_percent == 12.5
        assert node.ram_percent == 25.0
        assert node.uptime_seconds == 3_600
        assert node.storage_committed_bytes == 10_000
        assert node.timestamp == 1_700_000_000

    def test_missing_stats_default_to_zero(self):
        node = normalize_live_node({"ip": "10.0.0.2", "status": "active"})

        assert node.cpu_percent == 0.0
        assert node.ram_used_bytes == 0
        assert node.ram_total_bytes == 1
        assert node.packets_sent == 0
        assert node.storage_committed_bytes == 0
        assert node.version == UNKNOWN_VERSION

    def test_garbage_stats_are_clamped(self):
        node = normalize_live_node({
            "ip": "10.0.0.3",
            "status": "online",
            "version": "   ",
            "stats": {
                "cpu_percent": 250,
                "ram_used": float("nan"),
                "ram_total": 0,
                "uptime": -100,
                "packets_sent": float("inf"),
                "packets_received": "lots",
                "storage_committed": None,
            },
        })

        assert node.cpu_percent == 100.0
        assert node.ram_used_bytes == 0
        assert node.ram_total_bytes == 1
        assert node.uptime_seconds == 0
        assert node.packets_sent == 0
        assert node.packets_received == 0
        assert node.storage_committed_bytes == 0
        assert node.version == UNKNOWN_VERSION
        for value in (node.cpu_percent, node.ram_percent):
            assert math.isfinite(value)

    def test_oversized_integers_become_zero(self):
        nodes = normalize_live_nodes([{
            "ip": "10.0.0.5",
            "status": "active",
            "stats": {"storage_committed": 10 ** 400, "uptime": 10 ** 400},
        }])

        assert nodes[0].storage_committed_bytes == 0
        assert nodes[0].uptime_seconds == 0

    def test_non_mapping_stats_are_ignored(self):
        node = normalize_live_node({"ip": "10.0.0.4", "status": "active", "stats": "broken"})
        assert node.cpu_percent == 0.0

    def test_explicit_timestamp_overrides_record(self, live_record):
        node = normalize_live_node(live_record, timestamp=42)
        assert node.timestamp == 42

    def test_offline_record_is_normalized(self, live_record):
        live_record["status"] = "gossip_only"
        node = normalize_live_node(live_record)
        assert node.is_online is False
        assert node.cpu_percent == 12.5


class TestNormalizeHistoryRecord:
    """Tests for historical-schema rows."""

    def test_matches_live_schema(self, live_record, history_record):
        assert normalize_history_record(history_record) == normalize_live_node(live_record)

    def test_missing_packet_counters(self, history_record):
        del history_record["packets_sent"]
        del history_record["packets_received"]

        node = normalize_history_record(history_record)

        assert node.packets_sent == 0
        assert node.packets_received == 0
        assert node.packet_symmetry is None

    def test_row_without_status_is_online(self, history_record):
        assert normalize_history_record(history_record).is_online is True

    def test_explicit_status_is_respected(self, history_record):
        history_record["status"] = "offline"
        assert normalize_history_record(history_record).is_online is False


# ============================================================
# COLLECTIONS
# ============================================================

class TestCollections:
    """Tests for whole-collection normalization."""

    def test_offline_records_are_kept(self, live_record):
        offline = dict(live_record, ip="10.0.0.9", status="gossip_only")
        nodes = normalize_live_nodes([live_record, offline])

        assert len(nodes) == 2
        assert count_online(nodes) == 1
        assert all(isinstance(n, NodeTelemetry) for n in nodes)

    def test_empty_collection(self):
        assert normalize_live_nodes([]) == []

    @pytest.mark.parametrize("collection", [None, {"ip": "1.1.1.1"}, "nodes", 42])
    def test_non_list_collection_raises(self, collection):
        with pytest.raises(DataUnavailableError) as exc_info:
            normalize_live_nodes(collection)
        assert exc_info.value.source == "live_nodes"

    def test_non_mapping_element_raises(self, history_record):
        with pytest.raises(DataUnavailableError) as exc_info:
            normalize_history_records([history_record, "garbage"])
        assert exc_info.value.source == "node_history"
        assert "record 1" in exc_info.value.details["reason"]
