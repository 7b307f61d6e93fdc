"""
pNode Network Health Module.

============================================================
NETWORK-WIDE HEALTH SCORING
============================================================

This module turns raw telemetry from the storage nodes of a
decentralized network into a single 0-100 health score, a
qualitative rating, per-component breakdowns, ranked
operator recommendations and historical trends.

CORE PHILOSOPHY:
- Missing or garbage telemetry never crashes a computation
- Scoring is pure: same input, same output, no clock, no I/O
- An empty network is a valid (critical) network

============================================================
HEALTH COMPONENTS
============================================================

1. Version Consensus    - Share of online nodes on the majority version
2. Network Uptime       - Mean uptime against a 7 day target
3. Storage Health       - Evenness of committed storage
4. Resource Efficiency  - CPU and RAM headroom
5. Connectivity         - Online ratio and packet symmetry

Each component weighs 20% by default.

============================================================
RATINGS
============================================================

- EXCELLENT (score >= 85)
- GOOD      (70 <= score < 85)
- FAIR      (50 <= score < 70)
- POOR      (30 <= score < 50)
- CRITICAL  (score < 30)

============================================================
USAGE
============================================================

```python
from network_health import (
    compute_network_health,
    normalize_live_nodes,
    analyze_trend,
)

nodes = normalize_live_nodes(raw_records)
result = compute_network_health(nodes)
print(f"Score: {result.overall}, Rating: {result.rating.value}")

for rec in result.recommendations:
    print(f"[{rec.severity.value}] {rec.title}: {rec.suggested_action}")
```

The HTTP surface (network_health.api) and the telemetry store
access (network_health.repository) are imported explicitly by
the application entry point.

============================================================
"""

from .models import (
    ComponentKey,
    ComponentStatus,
    HealthRating,
    Severity,
    Trend,
    NodeHealthStatus,
    NodeTelemetry,
    HealthComponent,
    Recommendation,
    NetworkHealthScore,
    HistoryPoint,
    TrendSummary,
    TrendAnalysis,
    ComparativeScore,
    SnapshotRollup,
    GrowthMetrics,
)
from .config import (
    NetworkHealthConfig,
    ComponentWeights,
    RatingThresholds,
    ComponentStatusThresholds,
    TrendPolicy,
)
from .exceptions import (
    NetworkHealthError,
    DataUnavailableError,
    NoHistoricalDataError,
    ConfigurationError,
    InvalidRequestError,
)
from .normalizer import (
    normalize_live_node,
    normalize_live_nodes,
    normalize_history_record,
    normalize_history_records,
)
from .scorers import (
    BaseComponentScorer,
    VersionConsensusScorer,
    NetworkUptimeScorer,
    StorageHealthScorer,
    ResourceEfficiencyScorer,
    NetworkConnectivityScorer,
    ComponentScorerFactory,
)
from .aggregator import CompositeAggregator, round_half_up
from .recommendations import RecommendationEngine
from .trends import TrendAnalyzer, compute_growth_metrics
from .node_scorer import NodeScorer
from .managers import ManagerDirectory
from .engine import (
    NetworkHealthEngine,
    compute_network_health,
    compute_history_point,
    analyze_trend,
    compute_node_score,
)


__all__ = [
    # Models
    "ComponentKey",
    "ComponentStatus",
    "HealthRating",
    "Severity",
    "Trend",
    "NodeHealthStatus",
    "NodeTelemetry",
    "HealthComponent",
    "Recommendation",
    "NetworkHealthScore",
    "HistoryPoint",
    "TrendSummary",
    "TrendAnalysis",
    "ComparativeScore",
    "SnapshotRollup",
    "GrowthMetrics",
    # Config
    "NetworkHealthConfig",
    "ComponentWeights",
    "RatingThresholds",
    "ComponentStatusThresholds",
    "TrendPolicy",
    # Exceptions
    "NetworkHealthError",
    "DataUnavailableError",
    "NoHistoricalDataError",
    "ConfigurationError",
    "InvalidRequestError",
    # Normalizer
    "normalize_live_node",
    "normalize_live_nodes",
    "normalize_history_record",
    "normalize_history_records",
    # Scorers
    "BaseComponentScorer",
    "VersionConsensusScorer",
    "NetworkUptimeScorer",
    "StorageHealthScorer",
    "ResourceEfficiencyScorer",
    "NetworkConnectivityScorer",
    "ComponentScorerFactory",
    # Core
    "CompositeAggregator",
    "round_half_up",
    "RecommendationEngine",
    "TrendAnalyzer",
    "compute_growth_metrics",
    "NodeScorer",
    "ManagerDirectory",
    "NetworkHealthEngine",
    "compute_network_health",
    "compute_history_point",
    "analyze_trend",
    "compute_node_score",
]
