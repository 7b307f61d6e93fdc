"""
Network Health - Per-Node Scorer.

============================================================
SINGLE-NODE POLICY
============================================================

A separate 0-100 score for one node, used for "yesterday" and
"last week" comparisons:

    0.4 x uptime score       min(uptime / target, 1) x 100
  + 0.3 x CPU headroom       100 - cpu%
  + 0.3 x packet symmetry    min/max x 100, neutral 50 when a
                             counter is zero

It deliberately does not reuse the network components: a
single node has no version share or storage distribution.

Offline and private nodes score 0. Callers exclude zeros from
averages instead of padding with them.

============================================================
"""

from typing import Optional

from .aggregator import round_half_up
from .config import NetworkHealthConfig
from .models import NodeHealthStatus, NodeTelemetry


def is_private(node: NodeTelemetry) -> bool:
    """Offline, or reporting neither uptime nor storage."""
    if not node.is_online:
        return True
    return node.uptime_seconds == 0 and node.storage_committed_bytes == 0


class NodeScorer:
    """Scores a single node independently of the rest of the network."""

    def __init__(self, config: Optional[NetworkHealthConfig] = None) -> None:
        self._config = config or NetworkHealthConfig()
        self._policy = self._config.node_score

    def uptime_score(self, node: NodeTelemetry) -> float:
        target = self._config.uptime.target_uptime_seconds
        return min(node.uptime_seconds / target, 1.0) * 100.0

    def symmetry_score(self, node: NodeTelemetry) -> float:
        symmetry = node.packet_symmetry
        if symmetry is None:
            return self._policy.neutral_symmetry_score
        return symmetry * 100.0

    def score(self, node: NodeTelemetry) -> int:
        """Integer score 0-100; 0 for offline or private nodes."""
        if is_private(node):
            return 0

        raw = (
            self.uptime_score(node) * self._policy.uptime_weight +
            (100.0 - node.cpu_percent) * self._policy.cpu_weight +
            self.symmetry_score(node) * self._policy.symmetry_weight
        )
        return max(0, min(100, round_half_up(raw)))

    def classify(self, node: NodeTelemetry) -> NodeHealthStatus:
        """
        Health badge for one node.

        Critical and warning conditions are checked before the
        excellent band; anything in between is good.
        """
        if is_private(node):
            return NodeHealthStatus.PRIVATE

        uptime_hours = node.uptime_seconds / 3600
        score = self.score(node)

        if node.cpu_percent >= 95 or node.ram_percent >= 90 or uptime_hours < 1 or score < 50:
            return NodeHealthStatus.CRITICAL
        if node.cpu_percent >= 80 or node.ram_percent >= 75 or uptime_hours < 6 or score < 70:
            return NodeHealthStatus.WARNING
        if node.cpu_percent <= 25 and node.ram_percent < 50 and uptime_hours >= 48:
            return NodeHealthStatus.EXCELLENT
        return NodeHealthStatus.GOOD
