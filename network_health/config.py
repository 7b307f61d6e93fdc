"""
Network Health - Configuration.

============================================================
POLICY TABLES
============================================================

All scoring parameters are constant tables, not logic:
- Component weights (integer percentages, sum 100)
- Rating thresholds (inclusive lower bounds)
- Component status thresholds
- Per-component policies
- Recommendation policy
- Trend policy
- Per-node score policy

Configuration can be loaded from:
- Default values
- Environment variables
- YAML config file

Every table is frozen. A config is built once and passed
explicitly to the engine; there is no global instance.

============================================================
"""

import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
import logging

import yaml

from .exceptions import ConfigurationError
from .models import ComponentKey, ComponentStatus, HealthRating


logger = logging.getLogger(__name__)


SECONDS_PER_DAY = 86400

COLOR_HEALTHY = "#10B981"
COLOR_DEGRADED = "#F59E0B"
COLOR_CRITICAL = "#EF4444"
COLOR_NO_DATA = "#6B7280"

COMPONENT_LABELS: Dict[ComponentKey, str] = {
    ComponentKey.VERSION_CONSENSUS: "Version Consensus",
    ComponentKey.NETWORK_UPTIME: "Network Uptime",
    ComponentKey.STORAGE_HEALTH: "Storage Health",
    ComponentKey.RESOURCE_EFFICIENCY: "Resource Efficiency",
    ComponentKey.NETWORK_CONNECTIVITY: "Network Connectivity",
}


# =============================================================
# COMPONENT WEIGHTS
# =============================================================


@dataclass(frozen=True)
class ComponentWeights:
    """
    Weights for each health component, in whole percent.

    Percentages must sum to exactly 100, so the float weights
    sum to exactly 1.0.
    """
    version_consensus: int = 20
    network_uptime: int = 20
    storage_health: int = 20
    resource_efficiency: int = 20
    network_connectivity: int = 20

    def __post_init__(self) -> None:
        """Validate the weight table."""
        for key in ComponentKey.ordered():
            percent = self.get_percent(key)
            if not 0 < percent <= 100:
                raise ConfigurationError(
                    f"Weight for {key.value} must be in (0, 100]",
                    config_key=f"weights.{key.value}",
                    expected_value="1-100",
                    actual_value=str(percent),
                )
        total = sum(self.get_percent(key) for key in ComponentKey.ordered())
        if total != 100:
            raise ConfigurationError(
                f"Component weights sum to {total}%, expected 100%",
                config_key="weights",
                expected_value="100",
                actual_value=str(total),
            )

    def get_percent(self, key: ComponentKey) -> int:
        return getattr(self, key.value)

    def get_weight(self, key: ComponentKey) -> float:
        """Get weight for a specific component as a fraction."""
        return self.get_percent(key) / 100

    def total(self) -> float:
        """Get sum of all weights."""
        return math.fsum(self.get_weight(key) for key in ComponentKey.ordered())

    def to_dict(self) -> Dict[str, float]:
        return {key.value: self.get_weight(key) for key in ComponentKey.ordered()}


# =============================================================
# RATING THRESHOLDS
# =============================================================


@dataclass(frozen=True)
class RatingThresholds:
    """
    Inclusive lower bounds of each rating.

    - EXCELLENT: score >= excellent
    - GOOD:      score >= good
    - FAIR:      score >= fair
    - POOR:      score >= poor
    - CRITICAL:  anything lower
    """
    excellent: int = 85
    good: int = 70
    fair: int = 50
    poor: int = 30

    def __post_init__(self) -> None:
        """Validate thresholds are strictly descending within 0-100."""
        bounds = [self.excellent, self.good, self.fair, self.poor]
        if any(not 0 <= b <= 100 for b in bounds):
            raise ConfigurationError("Rating thresholds must be 0-100", config_key="ratings")
        if bounds != sorted(bounds, reverse=True) or len(set(bounds)) != len(bounds):
            raise ConfigurationError(
                "Rating thresholds must be strictly descending",
                config_key="ratings",
                actual_value=str(bounds),
            )

    def get_rating(self, score: float) -> HealthRating:
        """Determine rating from score."""
        if score >= self.excellent:
            return HealthRating.EXCELLENT
        elif score >= self.good:
            return HealthRating.GOOD
        elif score >= self.fair:
            return HealthRating.FAIR
        elif score >= self.poor:
            return HealthRating.POOR
        else:
            return HealthRating.CRITICAL

    def to_dict(self) -> Dict[str, int]:
        return {
            "excellent": self.excellent,
            "good": self.good,
            "fair": self.fair,
            "poor": self.poor,
        }


@dataclass(frozen=True)
class ComponentStatusThresholds:
    """Thresholds mapping a component score to status and color."""
    healthy: float = 80.0
    degraded: float = 60.0

    def __post_init__(self) -> None:
        if self.degraded >= self.healthy:
            raise ConfigurationError("degraded threshold must be < healthy threshold")

    def get_status(self, score: float) -> ComponentStatus:
        if score >= self.healthy:
            return ComponentStatus.HEALTHY
        elif score >= self.degraded:
            return ComponentStatus.DEGRADED
        return ComponentStatus.CRITICAL

    @staticmethod
    def get_color(status: ComponentStatus) -> str:
        return {
            ComponentStatus.HEALTHY: COLOR_HEALTHY,
            ComponentStatus.DEGRADED: COLOR_DEGRADED,
            ComponentStatus.CRITICAL: COLOR_CRITICAL,
            ComponentStatus.INSUFFICIENT_DATA: COLOR_NO_DATA,
        }[status]


# =============================================================
# COMPONENT-SPECIFIC POLICIES
# =============================================================


@dataclass(frozen=True)
class UptimePolicy:
    """Uptime at or above the target scores 100."""
    target_uptime_seconds: int = 7 * SECONDS_PER_DAY

    def __post_init__(self) -> None:
        if self.target_uptime_seconds <= 0:
            raise ConfigurationError("target_uptime_seconds must be positive")


@dataclass(frozen=True)
class StoragePolicy:
    """
    Storage distribution policy.

    include_offline_storage decides whether offline/private nodes
    contribute their committed storage to the distribution.
    """
    distribution_weight: float = 0.8
    coverage_weight: float = 0.2
    include_offline_storage: bool = False
    # Nodes above this multiple of the mean count as concentrated
    concentration_multiplier: float = 10.0

    def __post_init__(self) -> None:
        if abs(self.distribution_weight + self.coverage_weight - 1.0) > 1e-9:
            raise ConfigurationError("storage sub-weights must sum to 1.0")


@dataclass(frozen=True)
class ResourcePolicy:
    """CPU/RAM headroom blending."""
    cpu_weight: float = 0.5
    ram_weight: float = 0.5
    high_usage_percent: float = 80.0

    def __post_init__(self) -> None:
        if abs(self.cpu_weight + self.ram_weight - 1.0) > 1e-9:
            raise ConfigurationError("resource sub-weights must sum to 1.0")


@dataclass(frozen=True)
class ConnectivityPolicy:
    """Online ratio and packet symmetry blending."""
    online_ratio_weight: float = 0.5
    symmetry_weight: float = 0.5
    # Used when a node has a zero packet counter
    neutral_symmetry: float = 0.5
    low_symmetry: float = 0.5

    def __post_init__(self) -> None:
        if abs(self.online_ratio_weight + self.symmetry_weight - 1.0) > 1e-9:
            raise ConfigurationError("connectivity sub-weights must sum to 1.0")


@dataclass(frozen=True)
class RecommendationPolicy:
    """When and how many recommendations are emitted."""
    concern_threshold: float = 60.0
    critical_threshold: float = 30.0
    cpu_outlier_percent: float = 90.0
    ram_outlier_percent: float = 90.0
    max_recommendations: int = 10

    def __post_init__(self) -> None:
        if self.critical_threshold > self.concern_threshold:
            raise ConfigurationError("critical_threshold must be <= concern_threshold")
        if self.max_recommendations < 0:
            raise ConfigurationError("max_recommendations must be >= 0")


@dataclass(frozen=True)
class TrendPolicy:
    """First-window vs last-window comparison."""
    window_size: int = 7
    change_threshold: float = 5.0
    min_points: int = 2

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ConfigurationError("window_size must be >= 1")


@dataclass(frozen=True)
class NodeScorePolicy:
    """
    Single-node score weighting.

    Independent of the network-wide components on purpose: a
    single node has no version share or storage distribution.
    """
    uptime_weight: float = 0.4
    cpu_weight: float = 0.3
    symmetry_weight: float = 0.3
    neutral_symmetry_score: float = 50.0

    def __post_init__(self) -> None:
        total = self.uptime_weight + self.cpu_weight + self.symmetry_weight
        if abs(total - 1.0) > 1e-9:
            raise ConfigurationError("node score weights must sum to 1.0")


@dataclass(frozen=True)
class HistoryPolicy:
    """Windows used by the history and comparison queries."""
    default_days: int = 30
    max_days: int = 90
    yesterday_offset_seconds: int = SECONDS_PER_DAY
    yesterday_window_before_seconds: int = 12 * 3600
    yesterday_window_after_seconds: int = 12 * 3600
    last_week_offset_seconds: int = 7 * SECONDS_PER_DAY
    last_week_window_seconds: int = 2 * SECONDS_PER_DAY
    growth_snapshot_limit: int = 8


def _env_number(name: str, parse: Callable[[str], Any]) -> Any:
    """Parse a numeric environment variable or fail with the variable named."""
    raw = os.getenv(name, "").strip()
    try:
        return parse(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}",
            config_key=name,
            expected_value=parse.__name__,
            actual_value=raw,
        ) from e


# =============================================================
# MAIN CONFIGURATION
# =============================================================


@dataclass(frozen=True)
class NetworkHealthConfig:
    """
    Main configuration for network health scoring.

    Combines all sub-configurations.
    """
    weights: ComponentWeights = field(default_factory=ComponentWeights)
    ratings: RatingThresholds = field(default_factory=RatingThresholds)
    status: ComponentStatusThresholds = field(default_factory=ComponentStatusThresholds)

    uptime: UptimePolicy = field(default_factory=UptimePolicy)
    storage: StoragePolicy = field(default_factory=StoragePolicy)
    resources: ResourcePolicy = field(default_factory=ResourcePolicy)
    connectivity: ConnectivityPolicy = field(default_factory=ConnectivityPolicy)

    recommendations: RecommendationPolicy = field(default_factory=RecommendationPolicy)
    trend: TrendPolicy = field(default_factory=TrendPolicy)
    node_score: NodeScorePolicy = field(default_factory=NodeScorePolicy)
    history: HistoryPolicy = field(default_factory=HistoryPolicy)

    @classmethod
    def from_env(cls) -> "NetworkHealthConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - NETWORK_HEALTH_WEIGHT_<COMPONENT> (whole percent)
        - NETWORK_HEALTH_TARGET_UPTIME_SECONDS
        - NETWORK_HEALTH_INCLUDE_OFFLINE_STORAGE
        - NETWORK_HEALTH_CONCERN_THRESHOLD
        - NETWORK_HEALTH_MAX_RECOMMENDATIONS
        """
        config = cls()

        weight_overrides = {}
        for key in ComponentKey.ordered():
            value = os.getenv(f"NETWORK_HEALTH_WEIGHT_{key.name}")
            if value:
                weight_overrides[key.value] = _env_number(f"NETWORK_HEALTH_WEIGHT_{key.name}", int)
        if weight_overrides:
            config = replace(config, weights=replace(config.weights, **weight_overrides))

        if os.getenv("NETWORK_HEALTH_TARGET_UPTIME_SECONDS"):
            config = replace(config, uptime=UptimePolicy(
                target_uptime_seconds=_env_number("NETWORK_HEALTH_TARGET_UPTIME_SECONDS", int),
            ))
        if os.getenv("NETWORK_HEALTH_INCLUDE_OFFLINE_STORAGE"):
            include = os.getenv("NETWORK_HEALTH_INCLUDE_OFFLINE_STORAGE").lower() in ("1", "true", "yes")
            config = replace(config, storage=replace(config.storage, include_offline_storage=include))
        if os.getenv("NETWORK_HEALTH_CONCERN_THRESHOLD"):
            config = replace(config, recommendations=replace(
                config.recommendations,
                concern_threshold=_env_number("NETWORK_HEALTH_CONCERN_THRESHOLD", float),
            ))
        if os.getenv("NETWORK_HEALTH_MAX_RECOMMENDATIONS"):
            config = replace(config, recommendations=replace(
                config.recommendations,
                max_recommendations=_env_number("NETWORK_HEALTH_MAX_RECOMMENDATIONS", int),
            ))

        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "NetworkHealthConfig":
        """Load configuration from YAML file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load YAML config from {path}: {e}")
            raise ConfigurationError(
                f"Cannot read network health config: {e}",
                config_key=str(path),
            ) from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkHealthConfig":
        """Build configuration from a plain mapping of section -> values."""
        sections = {
            "weights": ComponentWeights,
            "ratings": RatingThresholds,
            "status": ComponentStatusThresholds,
            "uptime": UptimePolicy,
            "storage": StoragePolicy,
            "resources": ResourcePolicy,
            "connectivity": ConnectivityPolicy,
            "recommendations": RecommendationPolicy,
            "trend": TrendPolicy,
            "node_score": NodeScorePolicy,
            "history": HistoryPolicy,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigurationError(
                f"Unknown config sections: {', '.join(sorted(unknown))}",
                config_key="root",
            )

        kwargs = {}
        for name, table in sections.items():
            if name in data:
                try:
                    kwargs[name] = table(**(data[name] or {}))
                except TypeError as e:
                    raise ConfigurationError(
                        f"Invalid keys in section '{name}': {e}",
                        config_key=name,
                    ) from e
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "weights": self.weights.to_dict(),
            "ratings": self.ratings.to_dict(),
            "target_uptime_seconds": self.uptime.target_uptime_seconds,
            "include_offline_storage": self.storage.include_offline_storage,
            "concern_threshold": self.recommendations.concern_threshold,
            "max_recommendations": self.recommendations.max_recommendations,
            "trend_window_size": self.trend.window_size,
        }
