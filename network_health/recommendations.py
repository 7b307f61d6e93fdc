"""
Network Health - Recommendation Engine.

============================================================
RECOMMENDATION SOURCES
============================================================

1. Component recommendations
   One per component that has data and scores below the
   concern threshold. Severity is CRITICAL below the critical
   threshold, WARNING otherwise.

2. Node outliers
   Independent of component scores: every online node at or
   above the CPU / RAM outlier level gets its own CRITICAL
   recommendation.

3. Network-wide conditions
   - Every known node offline            -> CRITICAL
   - Online nodes with unknown version   -> INFO

============================================================
ORDERING
============================================================

Deduplicated by id (first wins), then sorted by:
severity (critical -> info), affected node count descending,
component order, id. Capped at max_recommendations.

============================================================
"""

from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from .config import NetworkHealthConfig
from .managers import ManagerDirectory
from .models import (
    ComponentKey,
    HealthComponent,
    NodeTelemetry,
    Recommendation,
    Severity,
)
from .normalizer import UNKNOWN_VERSION
from .scorers import mean, online_nodes


logger = logging.getLogger(__name__)


class RecommendationEngine:
    """
    Turns component scores and raw telemetry into ranked issues.

    Pure: the same components and nodes always yield the same
    tuple of recommendations.
    """

    def __init__(
        self,
        config: Optional[NetworkHealthConfig] = None,
        managers: Optional[ManagerDirectory] = None,
    ) -> None:
        self._config = config or NetworkHealthConfig()
        self._policy = self._config.recommendations
        self._managers = managers or ManagerDirectory()

        self._component_rules: Dict[
            ComponentKey,
            Callable[[HealthComponent, Sequence[NodeTelemetry]], Recommendation],
        ] = {
            ComponentKey.VERSION_CONSENSUS: self._version_consensus,
            ComponentKey.NETWORK_UPTIME: self._network_uptime,
            ComponentKey.STORAGE_HEALTH: self._storage_health,
            ComponentKey.RESOURCE_EFFICIENCY: self._resource_efficiency,
            ComponentKey.NETWORK_CONNECTIVITY: self._network_connectivity,
        }

    # =========================================================
    # PUBLIC INTERFACE
    # =========================================================

    def generate(
        self,
        components: Mapping[ComponentKey, HealthComponent],
        nodes: Sequence[NodeTelemetry],
    ) -> Tuple[Recommendation, ...]:
        """
        Generate the ranked recommendation list.

        Args:
            components: Scored components of the snapshot
            nodes: All normalized nodes of the snapshot

        Returns:
            Sorted, deduplicated and capped recommendations
        """
        candidates: List[Recommendation] = []

        for key in ComponentKey.ordered():
            component = components.get(key)
            if component is None or not component.has_data:
                continue
            if component.score < self._policy.concern_threshold:
                candidates.append(self._component_rules[key](component, nodes))

        candidates.extend(self._network_conditions(nodes))
        candidates.extend(self._node_outliers(nodes))

        ranked = self.rank(candidates)
        if len(ranked) < len(candidates):
            logger.debug(f"Dropped {len(candidates) - len(ranked)} recommendations (dedupe/cap)")
        return ranked

    def rank(self, recommendations: Sequence[Recommendation]) -> Tuple[Recommendation, ...]:
        """Deduplicate by id, sort, and cap."""
        unique: Dict[str, Recommendation] = {}
        for rec in recommendations:
            unique.setdefault(rec.id, rec)
        ordered = sorted(unique.values(), key=lambda r: r.sort_key())
        return tuple(ordered[:self._policy.max_recommendations])

    # =========================================================
    # HELPERS
    # =========================================================

    def _severity_for(self, score: float) -> Severity:
        if score < self._policy.critical_threshold:
            return Severity.CRITICAL
        return Severity.WARNING

    def _build(
        self,
        rec_id: str,
        component: ComponentKey,
        severity: Severity,
        title: str,
        action: str,
        affected: Sequence[NodeTelemetry],
        description: str = "",
    ) -> Recommendation:
        ids = tuple(sorted({node.id for node in affected}))
        return Recommendation(
            id=rec_id,
            severity=severity,
            title=title,
            affected_node_count=len(affected),
            suggested_action=action,
            component=component,
            description=description,
            affected_nodes=ids,
            affected_managers=self._managers.managers_for(affected),
        )

    # =========================================================
    # COMPONENT RULES
    # =========================================================

    def _version_consensus(
        self,
        component: HealthComponent,
        nodes: Sequence[NodeTelemetry],
    ) -> Recommendation:
        consensus = component.details.get("consensus_version")
        affected = [n for n in online_nodes(nodes) if n.version != consensus]
        return self._build(
            "version-consensus-low",
            ComponentKey.VERSION_CONSENSUS,
            self._severity_for(component.score),
            f"{len(affected)} nodes not on consensus version {consensus}",
            f"Upgrade nodes running minority versions to {consensus}",
            affected,
            description=component.explanation,
        )

    def _network_uptime(
        self,
        component: HealthComponent,
        nodes: Sequence[NodeTelemetry],
    ) -> Recommendation:
        target = self._config.uptime.target_uptime_seconds
        affected = [n for n in online_nodes(nodes) if n.uptime_seconds < target]
        return self._build(
            "network-uptime-low",
            ComponentKey.NETWORK_UPTIME,
            self._severity_for(component.score),
            f"{len(affected)} nodes below {target // 86400}-day uptime target",
            "Investigate frequent restarts and stabilize node processes",
            affected,
            description=component.explanation,
        )

    def _storage_health(
        self,
        component: HealthComponent,
        nodes: Sequence[NodeTelemetry],
    ) -> Recommendation:
        policy = self._config.storage
        considered = list(nodes) if policy.include_offline_storage else online_nodes(nodes)
        reporting = [n.storage_committed_bytes for n in considered if n.storage_committed_bytes > 0]
        ceiling = mean(reporting) * policy.concentration_multiplier
        affected = [
            n for n in considered
            if n.storage_committed_bytes == 0 or n.storage_committed_bytes > ceiling
        ]
        return self._build(
            "storage-health-low",
            ComponentKey.STORAGE_HEALTH,
            self._severity_for(component.score),
            f"Committed storage unevenly spread across {len(affected)} nodes",
            "Commit storage on nodes reporting none and rebalance concentrated capacity",
            affected,
            description=component.explanation,
        )

    def _resource_efficiency(
        self,
        component: HealthComponent,
        nodes: Sequence[NodeTelemetry],
    ) -> Recommendation:
        high = self._config.resources.high_usage_percent
        affected = [
            n for n in online_nodes(nodes)
            if n.cpu_percent >= high or n.ram_percent >= high
        ]
        return self._build(
            "resource-efficiency-low",
            ComponentKey.RESOURCE_EFFICIENCY,
            self._severity_for(component.score),
            f"{len(affected)} nodes running with little CPU/RAM headroom",
            "Add capacity or reduce load on saturated nodes",
            affected,
            description=component.explanation,
        )

    def _network_connectivity(
        self,
        component: HealthComponent,
        nodes: Sequence[NodeTelemetry],
    ) -> Recommendation:
        low = self._config.connectivity.low_symmetry
        affected = [
            n for n in nodes
            if not n.is_online
            or (n.packet_symmetry is not None and n.packet_symmetry < low)
        ]
        return self._build(
            "network-connectivity-low",
            ComponentKey.NETWORK_CONNECTIVITY,
            self._severity_for(component.score),
            f"{len(affected)} nodes offline or with one-sided traffic",
            "Check reachability, open RPC/gossip ports and peer configuration",
            affected,
            description=component.explanation,
        )

    # =========================================================
    # NETWORK CONDITIONS AND NODE OUTLIERS
    # =========================================================

    def _network_conditions(self, nodes: Sequence[NodeTelemetry]) -> List[Recommendation]:
        recs: List[Recommendation] = []
        online = online_nodes(nodes)

        if nodes and not online:
            recs.append(self._build(
                "network-offline",
                ComponentKey.NETWORK_CONNECTIVITY,
                Severity.CRITICAL,
                f"All {len(nodes)} known nodes are offline",
                "Verify the crawler can reach the network and that nodes are running",
                nodes,
            ))

        unknown = [n for n in online if n.version == UNKNOWN_VERSION]
        if unknown:
            recs.append(self._build(
                "version-unknown",
                ComponentKey.VERSION_CONSENSUS,
                Severity.INFO,
                f"{len(unknown)} online nodes report no version",
                "Update node software so it reports its version",
                unknown,
            ))

        return recs

    def _node_outliers(self, nodes: Sequence[NodeTelemetry]) -> List[Recommendation]:
        recs: List[Recommendation] = []
        for node in online_nodes(nodes):
            if node.cpu_percent >= self._policy.cpu_outlier_percent:
                recs.append(self._build(
                    f"cpu-critical-{node.id}",
                    ComponentKey.RESOURCE_EFFICIENCY,
                    Severity.CRITICAL,
                    f"Node {node.id} at {node.cpu_percent:.0f}% CPU",
                    "Reduce load or add CPU capacity on this node",
                    [node],
                ))
            if node.ram_percent >= self._policy.ram_outlier_percent:
                recs.append(self._build(
                    f"ram-critical-{node.id}",
                    ComponentKey.RESOURCE_EFFICIENCY,
                    Severity.CRITICAL,
                    f"Node {node.id} at {node.ram_percent:.0f}% RAM",
                    "Free memory or add RAM on this node",
                    [node],
                ))
        return recs
