"""
Tests for the Network Health Engine.

============================================================
PURPOSE
============================================================
End-to-end scoring of normalized snapshots.

TEST PRINCIPLES:
- Zero nodes is a valid, critical network
- Same input, same output, regardless of order
- Only NodeTelemetry is accepted

============================================================
"""

import pytest

from network_health import (
    ComponentKey,
    ComponentStatus,
    HealthRating,
    NetworkHealthEngine,
    NodeHealthStatus,
    Severity,
    analyze_trend,
    compute_history_point,
    compute_network_health,
    compute_node_score,
    normalize_live_nodes,
)


DAY = 86400


@pytest.fixture
def engine():
    return NetworkHealthEngine()


@pytest.fixture
def mixed_nodes(make_node):
    return [
        make_node("10.0.0.1"),
        make_node("10.0.0.2", version="0.9.0", cpu_percent=92.0),
        make_node("10.0.0.3", uptime_seconds=DAY, packets_sent=100, packets_received=900),
        make_node("10.0.0.4", storage_committed_bytes=0, version="unknown"),
        make_node("10.0.0.5", is_online=False),
    ]


class TestCompute:
    """Tests for full network assessment."""

    def test_empty_network(self, engine):
        result = engine.compute([])

        assert result.overall == 0
        assert result.rating == HealthRating.CRITICAL
        assert result.recommendations == ()
        assert result.node_count == 0
        assert all(
            c.status == ComponentStatus.INSUFFICIENT_DATA
            for c in result.components.values()
        )

    def test_perfect_single_node(self, engine, perfect_node):
        result = engine.compute([perfect_node])

        assert result.overall == 100
        assert result.rating == HealthRating.EXCELLENT
        assert result.recommendations == ()
        assert all(c.score == 100.0 for c in result.components.values())

    def test_perfect_single_node_without_storage(self, engine, make_node):
        node = make_node(cpu_percent=0.0, ram_used_bytes=0, storage_committed_bytes=0)

        result = engine.compute([node])

        assert result.components[ComponentKey.STORAGE_HEALTH].status == (
            ComponentStatus.INSUFFICIENT_DATA
        )
        assert result.overall == 100
        assert result.rating == HealthRating.EXCELLENT

    def test_all_offline(self, engine, make_node):
        nodes = [make_node(f"10.0.0.{i}", is_online=False) for i in range(3)]

        result = engine.compute(nodes)

        assert result.overall == 0
        assert result.online_count == 0
        assert result.recommendations[0].id == "network-offline"
        assert result.recommendations[0].severity == Severity.CRITICAL
        assert result.recommendations[0].affected_node_count == 3

    def test_all_components_present(self, engine, mixed_nodes):
        result = engine.compute(mixed_nodes)

        assert list(result.components) == ComponentKey.ordered()
        assert 0 <= result.overall <= 100
        assert result.node_count == 5
        assert result.online_count == 4

    def test_idempotent(self, engine, mixed_nodes):
        assert engine.compute(mixed_nodes).to_dict() == engine.compute(mixed_nodes).to_dict()

    def test_order_independent(self, engine, mixed_nodes):
        forward = engine.compute(mixed_nodes).to_dict()
        backward = engine.compute(list(reversed(mixed_nodes))).to_dict()
        assert forward == backward

    def test_weakest_component(self, engine, mixed_nodes):
        result = engine.compute(mixed_nodes)
        weakest = result.get_weakest_component()

        assert weakest is not None
        assert weakest.score == min(c.score for c in result.components.values())

    def test_raw_records_rejected(self, engine):
        with pytest.raises(TypeError):
            engine.compute([{"ip": "10.0.0.1", "status": "active"}])

    def test_from_raw_records(self, engine):
        nodes = normalize_live_nodes([
            {"ip": "10.0.0.1", "status": "active", "version": "1.0", "stats": None},
            {"ip": "10.0.0.2", "status": "gossip_only"},
        ])

        result = engine.compute(nodes)

        assert result.node_count == 2
        assert result.online_count == 1


class TestHistory:
    """Tests for history point reconstruction."""

    def test_history_point_matches_compute(self, engine, mixed_nodes):
        result = engine.compute(mixed_nodes)
        point = engine.history_point(1_700_000_000, mixed_nodes)

        assert point.overall == result.overall
        assert point.rating == result.rating
        assert point.node_count == 5
        assert point.components[ComponentKey.STORAGE_HEALTH] == (
            result.components[ComponentKey.STORAGE_HEALTH].score
        )

    def test_history_groups_by_timestamp(self, engine, make_node):
        nodes = [
            make_node("a", timestamp=200),
            make_node("a", timestamp=100),
            make_node("b", timestamp=100),
        ]

        points = engine.history(nodes)

        assert [p.timestamp for p in points] == [100, 200]
        assert [p.node_count for p in points] == [2, 1]


class TestModuleFunctions:
    """Tests for the module-level API."""

    def test_compute_network_health(self, mixed_nodes):
        assert compute_network_health(mixed_nodes).to_dict() == (
            NetworkHealthEngine().compute(mixed_nodes).to_dict()
        )

    def test_compute_history_point(self, perfect_node):
        point = compute_history_point(123, [perfect_node])
        assert point.timestamp == 123
        assert point.overall == 100

    def test_analyze_trend_without_points(self):
        assert analyze_trend([]).summary.point_count == 0

    def test_compute_node_score(self, perfect_node):
        assert compute_node_score(perfect_node) == 100

    def test_node_status(self, engine, perfect_node):
        assert engine.node_status(perfect_node) == NodeHealthStatus.EXCELLENT
