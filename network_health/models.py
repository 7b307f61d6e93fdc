"""
Network Health - Data Models.

============================================================
CORE DATA STRUCTURES
============================================================

Defines all value types for network health scoring:
- NodeTelemetry: Canonical, normalized per-node record
- HealthComponent: Score for one of the five components
- Recommendation: Ranked, actionable issue
- NetworkHealthScore: Aggregated network assessment
- HistoryPoint: Compressed per-timestamp assessment
- TrendAnalysis: Trend classification and chart series
- ComparativeScore: Average node score at a past instant
- SnapshotRollup / GrowthMetrics: Daily rollups and growth

Every type produced by the normalizer or the scorers is
frozen. Nothing downstream of normalization mutates values.

============================================================
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


# =============================================================
# ENUMS
# =============================================================


class ComponentKey(str, Enum):
    """
    The five weighted components of the network health score.

    Declaration order is the stable tie-break order used when
    ranking recommendations.
    """
    VERSION_CONSENSUS = "version_consensus"
    NETWORK_UPTIME = "network_uptime"
    STORAGE_HEALTH = "storage_health"
    RESOURCE_EFFICIENCY = "resource_efficiency"
    NETWORK_CONNECTIVITY = "network_connectivity"

    @classmethod
    def ordered(cls) -> List["ComponentKey"]:
        """Return all components in their stable order."""
        return list(cls)

    @property
    def order(self) -> int:
        """Position of this component in the stable order."""
        return ComponentKey.ordered().index(self)


class ComponentStatus(str, Enum):
    """Status of a single component."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    INSUFFICIENT_DATA = "insufficient_data"

    @property
    def has_data(self) -> bool:
        return self != ComponentStatus.INSUFFICIENT_DATA


class HealthRating(str, Enum):
    """Qualitative rating of the composite score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class Severity(str, Enum):
    """Severity of a recommendation."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort rank, most severe first."""
        return {
            Severity.CRITICAL: 0,
            Severity.WARNING: 1,
            Severity.INFO: 2,
        }[self]


class Trend(str, Enum):
    """Direction of the composite score over time."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


class NodeHealthStatus(str, Enum):
    """Health badge of a single node."""
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"
    PRIVATE = "private"


# =============================================================
# TELEMETRY
# =============================================================


@dataclass(frozen=True)
class NodeTelemetry:
    """
    Canonical telemetry for one node at one snapshot instant.

    Produced only by the normalizer. All numeric fields are
    finite and non-negative; ram_total_bytes is at least 1.
    """
    id: str
    is_online: bool
    version: str = "unknown"
    cpu_percent: float = 0.0
    ram_used_bytes: int = 0
    ram_total_bytes: int = 1
    uptime_seconds: int = 0
    packets_sent: int = 0
    packets_received: int = 0
    storage_committed_bytes: int = 0
    timestamp: int = 0
    pubkey: Optional[str] = None

    @property
    def ram_percent(self) -> float:
        """RAM usage in percent, clamped to 0-100."""
        return max(0.0, min(100.0, self.ram_used_bytes / self.ram_total_bytes * 100.0))

    @property
    def packet_symmetry(self) -> Optional[float]:
        """min/max of the packet counters, or None when either is zero."""
        if self.packets_sent > 0 and self.packets_received > 0:
            return (
                min(self.packets_sent, self.packets_received)
                / max(self.packets_sent, self.packets_received)
            )
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "is_online": self.is_online,
            "version": self.version,
            "cpu_percent": self.cpu_percent,
            "ram_used_bytes": self.ram_used_bytes,
            "ram_total_bytes": self.ram_total_bytes,
            "uptime_seconds": self.uptime_seconds,
            "packets_sent": self.packets_sent,
            "packets_received": self.packets_received,
            "storage_committed_bytes": self.storage_committed_bytes,
            "timestamp": self.timestamp,
            "pubkey": self.pubkey,
        }


# =============================================================
# SCORES
# =============================================================


@dataclass(frozen=True)
class HealthComponent:
    """
    Score for a single health component.

    Each component is scored 0-100 with an explanation.
    """
    key: ComponentKey
    label: str
    score: float  # 0-100
    weight: float  # (0, 1]
    color: str
    status: ComponentStatus
    explanation: str = ""
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        """Clamp score range and freeze details."""
        if not 0 <= self.score <= 100:
            object.__setattr__(self, 'score', max(0.0, min(100.0, self.score)))
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, 'details', MappingProxyType(dict(self.details)))

    @property
    def weighted_score(self) -> float:
        return self.score * self.weight

    @property
    def has_data(self) -> bool:
        return self.status.has_data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key.value,
            "label": self.label,
            "score": self.score,
            "weight": self.weight,
            "weighted_score": round(self.weighted_score, 2),
            "color": self.color,
            "status": self.status.value,
            "explanation": self.explanation,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class Recommendation:
    """
    One actionable issue found in the network.

    Ordering: severity (critical first), affected node count
    descending, component order, then id.
    """
    id: str
    severity: Severity
    title: str
    affected_node_count: int
    suggested_action: str
    component: ComponentKey
    description: str = ""
    affected_nodes: Tuple[str, ...] = ()
    affected_managers: Tuple[str, ...] = ()

    def sort_key(self) -> Tuple[int, int, int, str]:
        return (
            self.severity.rank,
            -self.affected_node_count,
            self.component.order,
            self.id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "affected_node_count": self.affected_node_count,
            "suggested_action": self.suggested_action,
            "component": self.component.value,
            "description": self.description,
            "affected_nodes": list(self.affected_nodes),
            "affected_managers": list(self.affected_managers),
        }


@dataclass(frozen=True)
class NetworkHealthScore:
    """
    Aggregated health assessment of the whole network.

    Combines the five component scores into a final rating.
    """
    overall: int  # 0-100
    rating: HealthRating
    components: Mapping[ComponentKey, HealthComponent]
    recommendations: Tuple[Recommendation, ...] = ()
    node_count: int = 0
    online_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.components, MappingProxyType):
            object.__setattr__(self, 'components', MappingProxyType(dict(self.components)))

    def get_component_score(self, key: ComponentKey) -> Optional[float]:
        """Get score for a specific component."""
        if key in self.components:
            return self.components[key].score
        return None

    def get_weakest_component(self) -> Optional[HealthComponent]:
        """Get the component with data and the lowest score."""
        measured = [c for c in self.components.values() if c.has_data]
        if not measured:
            return None
        return min(measured, key=lambda c: (c.score, c.key.order))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "overall": self.overall,
            "rating": self.rating.value,
            "components": {
                key.value: component.to_dict()
                for key, component in self.components.items()
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
            "node_count": self.node_count,
            "online_count": self.online_count,
        }


@dataclass(frozen=True)
class HistoryPoint:
    """
    Compressed assessment for one snapshot timestamp.

    Keeps only the five component scores, no labels or colors.
    """
    timestamp: int
    overall: int
    rating: HealthRating
    components: Mapping[ComponentKey, float]
    node_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.components, MappingProxyType):
            object.__setattr__(self, 'components', MappingProxyType(dict(self.components)))

    @property
    def date_iso(self) -> Optional[str]:
        """ISO date of the timestamp, None when it is out of calendar range."""
        try:
            return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()
        except (ValueError, OverflowError, OSError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "date": self.date_iso,
            "overall": self.overall,
            "rating": self.rating.value,
            "node_count": self.node_count,
            "components": {
                key.value: score for key, score in self.components.items()
            },
        }


# =============================================================
# TRENDS
# =============================================================


@dataclass(frozen=True)
class TrendSummary:
    """Descriptive statistics over a series of history points."""
    point_count: int
    average_score: int = 0
    min_score: int = 0
    max_score: int = 0
    first_timestamp: Optional[int] = None
    last_timestamp: Optional[int] = None
    first_window_average: Optional[float] = None
    last_window_average: Optional[float] = None
    difference: Optional[float] = None
    sufficient_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "point_count": self.point_count,
            "average_score": self.average_score,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "first_timestamp": self.first_timestamp,
            "last_timestamp": self.last_timestamp,
            "first_window_average": self.first_window_average,
            "last_window_average": self.last_window_average,
            "difference": self.difference,
            "sufficient_data": self.sufficient_data,
        }


@dataclass(frozen=True)
class TrendAnalysis:
    """Trend classification with per-timestamp chart series."""
    trend: Trend
    summary: TrendSummary
    points: Tuple[HistoryPoint, ...] = ()

    @property
    def timestamps(self) -> List[int]:
        return [p.timestamp for p in self.points]

    def series(self) -> Dict[str, List[float]]:
        """Per-component time series, aligned with `timestamps`."""
        result: Dict[str, List[float]] = {
            "overall": [float(p.overall) for p in self.points],
        }
        for key in ComponentKey.ordered():
            result[key.value] = [p.components.get(key, 0.0) for p in self.points]
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend.value,
            "summary": self.summary.to_dict(),
            "history": [p.to_dict() for p in self.points],
            "series": {
                "timestamps": self.timestamps,
                **self.series(),
            },
        }


@dataclass(frozen=True)
class ComparativeScore:
    """Average per-node score of the network at a past instant."""
    score: int
    node_count: int
    target_timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network_health_score": self.score,
            "node_count": self.node_count,
            "timestamp": self.target_timestamp,
        }


@dataclass(frozen=True)
class SnapshotRollup:
    """Daily network aggregate written by the snapshot job."""
    snapshot_date: date
    active_nodes: int = 0
    total_pages: int = 0
    network_health_score: Optional[int] = None
    total_storage_committed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.snapshot_date.isoformat(),
            "active_nodes": self.active_nodes,
            "total_pages": self.total_pages,
            "network_health": self.network_health_score,
            "total_storage_committed": self.total_storage_committed,
        }


@dataclass(frozen=True)
class GrowthMetrics:
    """Growth of the network between the oldest and newest rollups."""
    network_growth_rate: float
    storage_growth_rate: float
    has_historical_data: bool
    days_of_data: int
    days_between_snapshots: int = 0
    most_recent: Optional[SnapshotRollup] = None
    oldest: Optional[SnapshotRollup] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "network_growth_rate": self.network_growth_rate,
            "storage_growth_rate": self.storage_growth_rate,
            "has_historical_data": self.has_historical_data,
            "days_of_data": self.days_of_data,
        }
        if self.has_historical_data:
            result["days_between_snapshots"] = self.days_between_snapshots
            result["most_recent_metrics"] = self.most_recent.to_dict() if self.most_recent else None
            result["oldest_metrics"] = self.oldest.to_dict() if self.oldest else None
        if self.message:
            result["message"] = self.message
        return result
