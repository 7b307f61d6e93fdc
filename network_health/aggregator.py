"""
Network Health - Composite Aggregator.

============================================================
SCORE AGGREGATION
============================================================

    overall = round_half_up( sum(component.score * weight) )

clamped to 0-100. The rating comes from a fixed threshold
table (see RatingThresholds), not from this module.

Components with insufficient data are left out and the
remaining weights renormalized. When no component has data
the sum is 0: an empty network scores 0, rated critical.

============================================================
"""

import math
from typing import Mapping, Optional, Tuple
import logging

from .config import NetworkHealthConfig
from .models import ComponentKey, HealthComponent, HealthRating


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class CompositeAggregator:
    """Combines the five components into an overall score and rating."""

    def __init__(self, config: Optional[NetworkHealthConfig] = None) -> None:
        self._config = config or NetworkHealthConfig()

    def weighted_sum(self, components: Mapping[ComponentKey, HealthComponent]) -> float:
        """
        Exact sum of score x weight over the components that have data.

        Weights of insufficient-data components are redistributed
        over the rest in proportion.
        """
        missing = [key.value for key in ComponentKey.ordered() if key not in components]
        if missing:
            raise ValueError(f"Missing components: {', '.join(missing)}")
        scored = [key for key in ComponentKey.ordered() if components[key].status.has_data]
        total_weight = math.fsum(self._config.weights.get_weight(key) for key in scored)
        if total_weight <= 0:
            return 0.0
        return math.fsum(
            components[key].score * self._config.weights.get_weight(key)
            for key in scored
        ) / total_weight

    def overall(self, components: Mapping[ComponentKey, HealthComponent]) -> int:
        """Integer overall score, clamped to 0-100."""
        return max(0, min(100, round_half_up(self.weighted_sum(components))))

    def rate(self, overall: float) -> HealthRating:
        return self._config.ratings.get_rating(overall)

    def aggregate(
        self,
        components: Mapping[ComponentKey, HealthComponent],
    ) -> Tuple[int, HealthRating]:
        """
        Aggregate components into (overall, rating).

        Args:
            components: One HealthComponent per ComponentKey

        Returns:
            Integer overall score and its rating
        """
        overall = self.overall(components)
        return overall, self.rate(overall)
