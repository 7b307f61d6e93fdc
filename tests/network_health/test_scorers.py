"""
Tests for the Component Scorers.

============================================================
PURPOSE
============================================================
Each scorer is tested in isolation against hand-computed
scores.

TEST PRINCIPLES:
- Scores stay within 0-100
- No online nodes means insufficient data, never an error
- Offline nodes never drag per-node means down

============================================================
"""

import pytest

from network_health.config import (
    COLOR_DEGRADED,
    COLOR_HEALTHY,
    COLOR_NO_DATA,
    NetworkHealthConfig,
    StoragePolicy,
)
from network_health.models import ComponentKey, ComponentStatus
from network_health.scorers import (
    ComponentScorerFactory,
    NetworkConnectivityScorer,
    NetworkUptimeScorer,
    ResourceEfficiencyScorer,
    StorageHealthScorer,
    VersionConsensusScorer,
    gini_coefficient,
    majority_version,
)

GB = 1024 ** 3
DAY = 86400


# ============================================================
# HELPERS
# ============================================================

class TestGiniCoefficient:
    """Tests for the normalized Gini coefficient."""

    def test_empty_and_single(self):
        assert gini_coefficient([]) == 0.0
        assert gini_coefficient([5.0]) == 0.0

    def test_perfectly_even(self):
        assert gini_coefficient([3.0, 3.0, 3.0]) == pytest.approx(0.0)

    def test_single_holder(self):
        assert gini_coefficient([0.0, 0.0, 10.0]) == pytest.approx(1.0)

    def test_order_independent(self):
        assert gini_coefficient([1.0, 5.0, 9.0]) == gini_coefficient([9.0, 1.0, 5.0])


class TestMajorityVersion:
    """Tests for majority version selection."""

    def test_tie_goes_to_smallest_version(self, make_node):
        nodes = [
            make_node("a", version="1.1"),
            make_node("b", version="1.0"),
        ]
        assert majority_version(nodes) == ("1.0", 1)
        assert majority_version(list(reversed(nodes))) == ("1.0", 1)

    def test_empty(self):
        assert majority_version([]) == (None, 0)


# ============================================================
# VERSION CONSENSUS
# ============================================================

class TestVersionConsensusScorer:
    """Tests for version consensus scoring."""

    def test_share_of_majority(self, make_node):
        nodes = [
            make_node("a"),
            make_node("b"),
            make_node("c"),
            make_node("d", version="0.9.0"),
            make_node("e", version="0.8.0", is_online=False),
        ]

        component = VersionConsensusScorer().score(nodes)

        assert component.score == 75.0
        assert component.status == ComponentStatus.DEGRADED
        assert component.color == COLOR_DEGRADED
        assert component.details["consensus_version"] == "1.0.0"
        assert component.details["minority_count"] == 1
        assert component.details["total_versions"] == 2

    def test_no_online_nodes(self, make_node):
        component = VersionConsensusScorer().score([make_node(is_online=False)])

        assert component.score == 0.0
        assert component.status == ComponentStatus.INSUFFICIENT_DATA
        assert component.color == COLOR_NO_DATA
        assert component.has_data is False


# ============================================================
# NETWORK UPTIME
# ============================================================

class TestNetworkUptimeScorer:
    """Tests for uptime scoring."""

    def test_mean_of_capped_ratios(self, make_node):
        nodes = [
            make_node("a", uptime_seconds=14 * DAY),
            make_node("b", uptime_seconds=int(3.5 * DAY)),
        ]

        component = NetworkUptimeScorer().score(nodes)

        assert component.score == 75.0
        assert component.details["nodes_at_target"] == 1
        assert component.details["nodes_below_target"] == 1

    def test_offline_nodes_excluded(self, make_node):
        nodes = [
            make_node("a"),
            make_node("b", uptime_seconds=0, is_online=False),
        ]
        assert NetworkUptimeScorer().score(nodes).score == 100.0

    def test_empty(self):
        component = NetworkUptimeScorer().score([])
        assert component.status == ComponentStatus.INSUFFICIENT_DATA


# ============================================================
# STORAGE HEALTH
# ============================================================

class TestStorageHealthScorer:
    """Tests for storage distribution scoring."""

    def test_even_distribution(self, make_node):
        nodes = [make_node("a"), make_node("b")]

        component = StorageHealthScorer().score(nodes)

        assert component.score == 100.0
        assert component.status == ComponentStatus.HEALTHY
        assert component.color == COLOR_HEALTHY

    def test_non_reporting_nodes_lower_coverage(self, make_node):
        nodes = [
            make_node("a"),
            make_node("b"),
            make_node("c", storage_committed_bytes=0),
        ]

        component = StorageHealthScorer().score(nodes)

        assert component.score == pytest.approx(93.33)
        assert component.details["reporting_nodes"] == 2
        assert component.details["considered_nodes"] == 3

    def test_offline_storage_excluded_by_default(self, make_node):
        nodes = [
            make_node("a"),
            make_node("b"),
            make_node("c", storage_committed_bytes=0, is_online=False),
        ]
        assert StorageHealthScorer().score(nodes).score == 100.0

    def test_offline_storage_can_be_included(self, make_node):
        config = NetworkHealthConfig(storage=StoragePolicy(include_offline_storage=True))
        nodes = [
            make_node("a"),
            make_node("b"),
            make_node("c", storage_committed_bytes=0, is_online=False),
        ]
        assert StorageHealthScorer(config).score(nodes).score == pytest.approx(93.33)

    def test_concentration_lowers_score(self, make_node):
        nodes = [make_node(f"n{i}", storage_committed_bytes=1 * GB) for i in range(19)]
        nodes.append(make_node("whale", storage_committed_bytes=1000 * GB))

        component = StorageHealthScorer().score(nodes)

        assert component.score < 40.0
        assert component.details["concentrated_nodes"] == 1

    def test_nothing_reported(self, make_node):
        component = StorageHealthScorer().score([make_node(storage_committed_bytes=0)])

        assert component.status == ComponentStatus.INSUFFICIENT_DATA
        assert component.details["reporting_nodes"] == 0


# ============================================================
# RESOURCE EFFICIENCY
# ============================================================

class TestResourceEfficiencyScorer:
    """Tests for CPU/RAM headroom scoring."""

    def test_headroom_blend(self, make_node):
        node = make_node(cpu_percent=20.0, ram_used_bytes=4 * GB, ram_total_bytes=8 * GB)
        assert ResourceEfficiencyScorer().score([node]).score == 65.0

    def test_high_usage_counted(self, make_node):
        nodes = [make_node("a", cpu_percent=85.0), make_node("b")]
        component = ResourceEfficiencyScorer().score(nodes)
        assert component.details["high_usage_nodes"] == 1


# ============================================================
# NETWORK CONNECTIVITY
# ============================================================

class TestNetworkConnectivityScorer:
    """Tests for connectivity scoring."""

    def test_online_ratio_and_symmetry(self, make_node):
        nodes = [
            make_node("a"),
            make_node("b", packets_sent=0, packets_received=0),
            make_node("c", is_online=False),
            make_node("d", is_online=False),
        ]

        component = NetworkConnectivityScorer().score(nodes)

        assert component.score == 62.5
        assert component.details["online_ratio"] == 0.5
        assert component.details["nodes_without_traffic"] == 1

    def test_all_offline(self, make_node):
        component = NetworkConnectivityScorer().score([make_node(is_online=False)])

        assert component.status == ComponentStatus.INSUFFICIENT_DATA
        assert component.details["total_nodes"] == 1


# ============================================================
# FACTORY
# ============================================================

class TestComponentScorerFactory:
    """Tests for the scorer factory."""

    def test_create_all_in_stable_order(self):
        scorers = ComponentScorerFactory.create_all()
        assert list(scorers) == ComponentKey.ordered()

    def test_weights_follow_config(self):
        scorers = ComponentScorerFactory.create_all()
        assert all(s.weight == 0.2 for s in scorers.values())

    def test_unknown_component(self):
        with pytest.raises(ValueError):
            ComponentScorerFactory.create("bogus")
