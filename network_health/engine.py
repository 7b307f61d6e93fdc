"""
Network Health - Main Orchestrator.

============================================================
PURPOSE
============================================================
The NetworkHealthEngine is the main entry point for network
health scoring.

It orchestrates:
1. Component scoring
2. Score aggregation and rating
3. Recommendation generation
4. History point reconstruction
5. Trend analysis
6. Per-node scoring

============================================================
DESIGN PRINCIPLES
============================================================
- Input is normalized NodeTelemetry only
- Deterministic and stateless per call: no clock, no I/O
- Holds nothing but its immutable config and manager
  directory, so one engine serves concurrent callers
- Never raises on per-node content

============================================================
USAGE
============================================================
    from network_health import NetworkHealthEngine, normalize_live_nodes

    engine = NetworkHealthEngine()
    nodes = normalize_live_nodes(raw_records)

    result = engine.compute(nodes)
    print(f"Health: {result.overall} ({result.rating.value})")

============================================================
"""

from typing import Iterable, List, Optional, Sequence
import logging

from .aggregator import CompositeAggregator
from .config import NetworkHealthConfig
from .history import compute_comparative_score, group_by_timestamp
from .managers import ManagerDirectory
from .models import (
    ComparativeScore,
    HistoryPoint,
    NetworkHealthScore,
    NodeHealthStatus,
    NodeTelemetry,
    TrendAnalysis,
)
from .node_scorer import NodeScorer
from .recommendations import RecommendationEngine
from .scorers import ComponentScorerFactory
from .trends import TrendAnalyzer


logger = logging.getLogger(__name__)


def _require_telemetry(nodes: Iterable[NodeTelemetry]) -> List[NodeTelemetry]:
    """Downstream of the normalizer only NodeTelemetry is accepted."""
    node_list = list(nodes)
    for node in node_list:
        if not isinstance(node, NodeTelemetry):
            raise TypeError(
                f"Expected NodeTelemetry, got {type(node).__name__}; "
                f"normalize raw records first"
            )
    return node_list


class NetworkHealthEngine:
    """
    Main orchestrator for network health scoring.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    1. Run the five component scorers
    2. Aggregate into overall score and rating
    3. Generate ranked recommendations
    4. Compress assessments into history points
    5. Classify trends over history
    6. Score single nodes for comparisons

    ============================================================
    """

    def __init__(
        self,
        config: Optional[NetworkHealthConfig] = None,
        managers: Optional[ManagerDirectory] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Scoring configuration. Uses defaults if not provided.
            managers: Read-only pubkey -> manager wallet directory
        """
        self.config = config or NetworkHealthConfig()
        self._scorers = ComponentScorerFactory.create_all(self.config)
        self._aggregator = CompositeAggregator(self.config)
        self._recommendations = RecommendationEngine(self.config, managers)
        self._trend_analyzer = TrendAnalyzer(self.config.trend)
        self._node_scorer = NodeScorer(self.config)

    # --------------------------------------------------------
    # NETWORK SCORE
    # --------------------------------------------------------

    def compute(self, nodes: Iterable[NodeTelemetry]) -> NetworkHealthScore:
        """
        Compute the full network health assessment.

        Args:
            nodes: All known nodes of one snapshot, online or not

        Returns:
            NetworkHealthScore with components and recommendations
        """
        node_list = _require_telemetry(nodes)

        components = {
            key: scorer.score(node_list)
            for key, scorer in self._scorers.items()
        }
        overall, rating = self._aggregator.aggregate(components)
        recommendations = self._recommendations.generate(components, node_list)
        online = sum(1 for node in node_list if node.is_online)

        logger.debug(
            f"Network health computed: {overall} ({rating.value}) "
            f"from {len(node_list)} nodes, {online} online"
        )

        return NetworkHealthScore(
            overall=overall,
            rating=rating,
            components=components,
            recommendations=recommendations,
            node_count=len(node_list),
            online_count=online,
        )

    # --------------------------------------------------------
    # HISTORY
    # --------------------------------------------------------

    def history_point(
        self,
        timestamp: int,
        nodes: Iterable[NodeTelemetry],
    ) -> HistoryPoint:
        """Compress the assessment of one snapshot into a history point."""
        node_list = _require_telemetry(nodes)
        result = self.compute(node_list)
        return HistoryPoint(
            timestamp=int(timestamp),
            overall=result.overall,
            rating=result.rating,
            components={key: c.score for key, c in result.components.items()},
            node_count=len(node_list),
        )

    def history(self, nodes: Iterable[NodeTelemetry]) -> List[HistoryPoint]:
        """One history point per distinct snapshot timestamp, ascending."""
        groups = group_by_timestamp(_require_telemetry(nodes))
        return [self.history_point(ts, group) for ts, group in groups.items()]

    def analyze_trend(self, points: Iterable[HistoryPoint]) -> TrendAnalysis:
        return self._trend_analyzer.analyze(points)

    # --------------------------------------------------------
    # SINGLE NODE
    # --------------------------------------------------------

    def node_score(self, node: NodeTelemetry) -> int:
        _require_telemetry([node])
        return self._node_scorer.score(node)

    def node_status(self, node: NodeTelemetry) -> NodeHealthStatus:
        _require_telemetry([node])
        return self._node_scorer.classify(node)

    def comparative_score(
        self,
        nodes: Sequence[NodeTelemetry],
        target_timestamp: int,
    ) -> Optional[ComparativeScore]:
        """Average node score around a past instant, or None."""
        return compute_comparative_score(
            _require_telemetry(nodes),
            target_timestamp,
            self._node_scorer,
        )


# =============================================================
# MODULE-LEVEL API
# =============================================================


def compute_network_health(
    nodes: Iterable[NodeTelemetry],
    config: Optional[NetworkHealthConfig] = None,
    managers: Optional[ManagerDirectory] = None,
) -> NetworkHealthScore:
    """Compute the network health score of one snapshot."""
    return NetworkHealthEngine(config, managers).compute(nodes)


def compute_history_point(
    timestamp: int,
    nodes: Iterable[NodeTelemetry],
    config: Optional[NetworkHealthConfig] = None,
) -> HistoryPoint:
    """Compute the compressed history point of one snapshot."""
    return NetworkHealthEngine(config).history_point(timestamp, nodes)


def analyze_trend(
    points: Iterable[HistoryPoint],
    config: Optional[NetworkHealthConfig] = None,
) -> TrendAnalysis:
    """Classify the trend of a series of history points."""
    config = config or NetworkHealthConfig()
    return TrendAnalyzer(config.trend).analyze(points)


def compute_node_score(
    node: NodeTelemetry,
    config: Optional[NetworkHealthConfig] = None,
) -> int:
    """Score a single node 0-100."""
    return NetworkHealthEngine(config).node_score(node)
