"""
Network Health - Component Scorers.

============================================================
COMPONENT SCORING
============================================================

Individual scorers for each health component:
1. Version Consensus     - share of the majority version
2. Network Uptime        - uptime relative to a target
3. Storage Health        - dispersion of committed storage
4. Resource Efficiency   - CPU and RAM headroom
5. Network Connectivity  - online ratio and packet symmetry

Each scorer:
- Takes a sequence of NodeTelemetry
- Returns a HealthComponent scored 0-100
- Provides an explanation and the numbers behind it

============================================================
SCORING PHILOSOPHY
============================================================

- All scores normalized to 0-100, higher is better
- Fully explainable (no ML)
- Pure: no I/O, no clock, no shared state
- Never raises on node content: an empty or all-offline set
  scores 0 with an "insufficient data" status
- Offline nodes are excluded from per-node means, because
  "no data" is not "bad data"

============================================================
"""

import math
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from .config import COMPONENT_LABELS, NetworkHealthConfig
from .models import ComponentKey, ComponentStatus, HealthComponent, NodeTelemetry


logger = logging.getLogger(__name__)


# =============================================================
# HELPERS
# =============================================================


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def gini_coefficient(values: Sequence[float]) -> float:
    """
    Normalized Gini coefficient of non-negative values.

    0 means perfectly even, 1 means a single holder has
    everything. A single value is perfectly even.
    """
    n = len(values)
    total = math.fsum(values)
    if n < 2 or total <= 0:
        return 0.0
    ordered = sorted(values)
    weighted = math.fsum((i + 1) * v for i, v in enumerate(ordered))
    gini = (2.0 * weighted) / (n * total) - (n + 1) / n
    normalized = gini * n / (n - 1)
    return max(0.0, min(1.0, normalized))


def online_nodes(nodes: Sequence[NodeTelemetry]) -> List[NodeTelemetry]:
    return [node for node in nodes if node.is_online]


def majority_version(nodes: Sequence[NodeTelemetry]) -> Tuple[Optional[str], int]:
    """
    Most common version and its count.

    Ties go to the lexicographically smallest version so the
    result does not depend on input order.
    """
    counts = Counter(node.version for node in nodes)
    if not counts:
        return None, 0
    version, count = min(counts.items(), key=lambda item: (-item[1], item[0]))
    return version, count


# =============================================================
# BASE COMPONENT SCORER
# =============================================================


class BaseComponentScorer(ABC):
    """
    Abstract base class for component scorers.

    Each component scorer calculates a normalized score (0-100)
    from a set of node telemetry.
    """

    component_key: ComponentKey

    def __init__(self, config: Optional[NetworkHealthConfig] = None) -> None:
        """Initialize scorer with configuration."""
        self._config = config or NetworkHealthConfig()

    @property
    def weight(self) -> float:
        return self._config.weights.get_weight(self.component_key)

    @property
    def label(self) -> str:
        return COMPONENT_LABELS[self.component_key]

    @abstractmethod
    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """
        Calculate score for this component.

        Args:
            nodes: All known nodes of one snapshot, online or not

        Returns:
            HealthComponent with score, status and explanation
        """
        pass

    def _normalize_score(self, raw_score: float) -> float:
        """Normalize score to 0-100 range, two decimals."""
        return round(max(0.0, min(100.0, raw_score)), 2)

    def _build(
        self,
        raw_score: float,
        explanation: str,
        details: Dict[str, Any],
    ) -> HealthComponent:
        score = self._normalize_score(raw_score)
        status = self._config.status.get_status(score)
        return HealthComponent(
            key=self.component_key,
            label=self.label,
            score=score,
            weight=self.weight,
            color=self._config.status.get_color(status),
            status=status,
            explanation=explanation,
            details=details,
        )

    def _insufficient(
        self,
        explanation: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> HealthComponent:
        status = ComponentStatus.INSUFFICIENT_DATA
        return HealthComponent(
            key=self.component_key,
            label=self.label,
            score=0.0,
            weight=self.weight,
            color=self._config.status.get_color(status),
            status=status,
            explanation=explanation,
            details=details or {},
        )


# =============================================================
# VERSION CONSENSUS SCORER
# =============================================================


class VersionConsensusScorer(BaseComponentScorer):
    """
    Scores how many online nodes run the majority version.

    score = share of the most common version x 100
    """

    component_key = ComponentKey.VERSION_CONSENSUS

    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """Calculate version consensus score."""
        online = online_nodes(nodes)
        if not online:
            return self._insufficient("No online nodes - no version data")

        version, count = majority_version(online)
        share = count / len(online) * 100.0

        return self._build(
            share,
            explanation=f"{count}/{len(online)} online nodes on {version} ({share:.1f}%)",
            details={
                "consensus_version": version,
                "consensus_count": count,
                "consensus_percent": round(share, 2),
                "minority_count": len(online) - count,
                "total_versions": len({node.version for node in online}),
            },
        )


# =============================================================
# NETWORK UPTIME SCORER
# =============================================================


class NetworkUptimeScorer(BaseComponentScorer):
    """
    Scores uptime of online nodes against a target.

    Per node: min(uptime / target, 1) x 100; component: mean.
    """

    component_key = ComponentKey.NETWORK_UPTIME

    def node_uptime_score(self, node: NodeTelemetry) -> float:
        target = self._config.uptime.target_uptime_seconds
        return min(node.uptime_seconds / target, 1.0) * 100.0

    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """Calculate network uptime score."""
        online = online_nodes(nodes)
        if not online:
            return self._insufficient("No online nodes - no uptime data")

        target = self._config.uptime.target_uptime_seconds
        per_node = [self.node_uptime_score(node) for node in online]
        at_target = sum(1 for node in online if node.uptime_seconds >= target)
        avg_days = mean([node.uptime_seconds for node in online]) / 86400

        return self._build(
            mean(per_node),
            explanation=(
                f"{at_target}/{len(online)} online nodes at target uptime, "
                f"average {avg_days:.1f} days"
            ),
            details={
                "target_uptime_seconds": target,
                "nodes_at_target": at_target,
                "nodes_below_target": len(online) - at_target,
                "average_uptime_days": round(avg_days, 2),
            },
        )


# =============================================================
# STORAGE HEALTH SCORER
# =============================================================


class StorageHealthScorer(BaseComponentScorer):
    """
    Scores how evenly committed storage is spread.

    - Distribution: (1 - normalized Gini) over nodes reporting
      non-zero committed storage
    - Coverage: reporting nodes / considered nodes

    Nodes with zero committed storage stay out of the
    distribution but count in the coverage denominator.
    """

    component_key = ComponentKey.STORAGE_HEALTH

    def considered_nodes(self, nodes: Sequence[NodeTelemetry]) -> List[NodeTelemetry]:
        if self._config.storage.include_offline_storage:
            return list(nodes)
        return online_nodes(nodes)

    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """Calculate storage health score."""
        considered = self.considered_nodes(nodes)
        if not considered:
            return self._insufficient("No nodes to evaluate storage")

        reporting = [n.storage_committed_bytes for n in considered if n.storage_committed_bytes > 0]
        if not reporting:
            return self._insufficient(
                "No node reports committed storage",
                details={"considered_nodes": len(considered), "reporting_nodes": 0},
            )

        policy = self._config.storage
        gini = gini_coefficient(reporting)
        coverage = len(reporting) / len(considered)
        distribution_score = (1.0 - gini) * 100.0
        final_score = (
            distribution_score * policy.distribution_weight +
            coverage * 100.0 * policy.coverage_weight
        )

        total = sum(reporting)
        average = total / len(reporting)
        concentrated = sum(1 for v in reporting if v > average * policy.concentration_multiplier)

        return self._build(
            final_score,
            explanation=(
                f"Gini {gini:.2f} across {len(reporting)} nodes, "
                f"coverage {coverage * 100:.0f}%"
            ),
            details={
                "gini": round(gini, 4),
                "coverage_percent": round(coverage * 100.0, 2),
                "considered_nodes": len(considered),
                "reporting_nodes": len(reporting),
                "concentrated_nodes": concentrated,
                "total_committed_bytes": total,
                "average_committed_bytes": round(average, 2),
            },
        )


# =============================================================
# RESOURCE EFFICIENCY SCORER
# =============================================================


class ResourceEfficiencyScorer(BaseComponentScorer):
    """
    Scores CPU and RAM headroom of online nodes.

    Per node: cpu_weight x (100 - cpu%) + ram_weight x (100 - ram%)
    """

    component_key = ComponentKey.RESOURCE_EFFICIENCY

    def node_headroom(self, node: NodeTelemetry) -> float:
        policy = self._config.resources
        cpu_headroom = 100.0 - node.cpu_percent
        ram_headroom = 100.0 - node.ram_percent
        return cpu_headroom * policy.cpu_weight + ram_headroom * policy.ram_weight

    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """Calculate resource efficiency score."""
        online = online_nodes(nodes)
        if not online:
            return self._insufficient("No online nodes - no resource data")

        high = self._config.resources.high_usage_percent
        avg_cpu = mean([node.cpu_percent for node in online])
        avg_ram = mean([node.ram_percent for node in online])
        high_usage = sum(
            1 for node in online
            if node.cpu_percent >= high or node.ram_percent >= high
        )

        return self._build(
            mean([self.node_headroom(node) for node in online]),
            explanation=f"Average CPU {avg_cpu:.1f}%, average RAM {avg_ram:.1f}%",
            details={
                "average_cpu_percent": round(avg_cpu, 2),
                "average_ram_percent": round(avg_ram, 2),
                "high_usage_nodes": high_usage,
            },
        )


# =============================================================
# NETWORK CONNECTIVITY SCORER
# =============================================================


class NetworkConnectivityScorer(BaseComponentScorer):
    """
    Scores reachability and balanced peer traffic.

    - Online ratio: online / all known nodes
    - Symmetry: min(sent, received) / max(sent, received) per
      online node, neutral when a counter is zero
    """

    component_key = ComponentKey.NETWORK_CONNECTIVITY

    def node_symmetry(self, node: NodeTelemetry) -> float:
        symmetry = node.packet_symmetry
        if symmetry is None:
            return self._config.connectivity.neutral_symmetry
        return symmetry

    def score(self, nodes: Sequence[NodeTelemetry]) -> HealthComponent:
        """Calculate network connectivity score."""
        online = online_nodes(nodes)
        if not online:
            return self._insufficient(
                "No online nodes - no connectivity data",
                details={"total_nodes": len(nodes), "online_nodes": 0},
            )

        policy = self._config.connectivity
        online_ratio = len(online) / len(nodes)
        avg_symmetry = mean([self.node_symmetry(node) for node in online])
        final_score = (
            online_ratio * policy.online_ratio_weight +
            avg_symmetry * policy.symmetry_weight
        ) * 100.0

        no_traffic = sum(1 for node in online if node.packet_symmetry is None)

        return self._build(
            final_score,
            explanation=(
                f"{len(online)}/{len(nodes)} nodes online, "
                f"average packet symmetry {avg_symmetry:.2f}"
            ),
            details={
                "total_nodes": len(nodes),
                "online_nodes": len(online),
                "online_ratio": round(online_ratio, 4),
                "average_symmetry": round(avg_symmetry, 4),
                "nodes_without_traffic": no_traffic,
            },
        )


# =============================================================
# SCORER FACTORY
# =============================================================


class ComponentScorerFactory:
    """Factory for creating component scorers."""

    _scorers = {
        ComponentKey.VERSION_CONSENSUS: VersionConsensusScorer,
        ComponentKey.NETWORK_UPTIME: NetworkUptimeScorer,
        ComponentKey.STORAGE_HEALTH: StorageHealthScorer,
        ComponentKey.RESOURCE_EFFICIENCY: ResourceEfficiencyScorer,
        ComponentKey.NETWORK_CONNECTIVITY: NetworkConnectivityScorer,
    }

    @classmethod
    def create(
        cls,
        key: ComponentKey,
        config: Optional[NetworkHealthConfig] = None,
    ) -> BaseComponentScorer:
        """Create a scorer for the given component."""
        scorer_class = cls._scorers.get(key)
        if scorer_class is None:
            raise ValueError(f"Unknown component: {key}")
        return scorer_class(config)

    @classmethod
    def create_all(
        cls,
        config: Optional[NetworkHealthConfig] = None,
    ) -> Dict[ComponentKey, BaseComponentScorer]:
        """Create scorers for all components, in stable order."""
        return {
            key: cls.create(key, config)
            for key in ComponentKey.ordered()
        }
