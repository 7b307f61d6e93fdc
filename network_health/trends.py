"""
Network Health - Historical Trend Analyzer.

============================================================
TREND CLASSIFICATION
============================================================

Input: history points, one per snapshot timestamp.

1. Sort by timestamp, deduplicate by timestamp (last wins)
2. Fewer than window_size points -> UNKNOWN
3. Otherwise compare the mean of the first window with the
   mean of the last window:
   - difference >  +change_threshold -> IMPROVING
   - difference <  -change_threshold -> DECLINING
   - otherwise                       -> STABLE

Cadence is irrelevant: gaps of days between snapshots are
fine, the analyzer only looks at the ordered points.

============================================================
GROWTH RATES
============================================================

A simpler variant works on daily snapshot rollups directly
(not re-derived from telemetry): the newest rollup against
the oldest one, in percent.

============================================================
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from .aggregator import round_half_up
from .config import TrendPolicy
from .models import (
    GrowthMetrics,
    HistoryPoint,
    SnapshotRollup,
    Trend,
    TrendAnalysis,
    TrendSummary,
)


logger = logging.getLogger(__name__)


def deduplicate_points(points: Iterable[HistoryPoint]) -> List[HistoryPoint]:
    """Order points by timestamp, keeping the last point per timestamp."""
    by_timestamp: Dict[int, HistoryPoint] = {}
    for point in points:
        by_timestamp[point.timestamp] = point
    return [by_timestamp[ts] for ts in sorted(by_timestamp)]


def _window_mean(points: Sequence[HistoryPoint]) -> float:
    return math.fsum(p.overall for p in points) / len(points)


class TrendAnalyzer:
    """Classifies the direction of the composite score over time."""

    def __init__(self, policy: Optional[TrendPolicy] = None) -> None:
        self._policy = policy or TrendPolicy()

    def classify(self, difference: float) -> Trend:
        threshold = self._policy.change_threshold
        if difference > threshold:
            return Trend.IMPROVING
        elif difference < -threshold:
            return Trend.DECLINING
        return Trend.STABLE

    def analyze(self, points: Iterable[HistoryPoint]) -> TrendAnalysis:
        """
        Analyze a series of history points.

        Args:
            points: History points in any order, possibly with
                duplicate timestamps

        Returns:
            TrendAnalysis with trend, summary and the ordered points
        """
        ordered = deduplicate_points(points)
        window = self._policy.window_size

        if not ordered:
            return TrendAnalysis(
                trend=Trend.UNKNOWN,
                summary=TrendSummary(point_count=0),
            )

        scores = [p.overall for p in ordered]
        first_avg: Optional[float] = None
        last_avg: Optional[float] = None
        difference: Optional[float] = None
        trend = Trend.UNKNOWN

        if len(ordered) >= max(window, self._policy.min_points):
            first_avg = _window_mean(ordered[:window])
            last_avg = _window_mean(ordered[-window:])
            difference = last_avg - first_avg
            trend = self.classify(difference)
        else:
            logger.debug(f"Trend unknown: {len(ordered)} points, need {window}")

        summary = TrendSummary(
            point_count=len(ordered),
            average_score=round_half_up(math.fsum(scores) / len(scores)),
            min_score=min(scores),
            max_score=max(scores),
            first_timestamp=ordered[0].timestamp,
            last_timestamp=ordered[-1].timestamp,
            first_window_average=round(first_avg, 2) if first_avg is not None else None,
            last_window_average=round(last_avg, 2) if last_avg is not None else None,
            difference=round(difference, 2) if difference is not None else None,
            sufficient_data=len(ordered) >= self._policy.min_points,
        )

        return TrendAnalysis(trend=trend, summary=summary, points=tuple(ordered))


# =============================================================
# SNAPSHOT GROWTH RATES
# =============================================================


def _growth_percent(newest: int, oldest: int) -> float:
    if oldest <= 0:
        return 0.0
    return round((newest - oldest) / oldest * 100.0, 1)


def compute_growth_metrics(snapshots: Iterable[SnapshotRollup]) -> GrowthMetrics:
    """
    Growth between the oldest and the newest daily rollup.

    Needs at least two rollups; with fewer, growth is 0 and
    has_historical_data is False.
    """
    ordered = sorted(snapshots, key=lambda s: s.snapshot_date)

    if len(ordered) < 2:
        message = (
            "Only 1 day of data. Growth will be calculated tomorrow."
            if len(ordered) == 1
            else "Not enough historical data yet."
        )
        return GrowthMetrics(
            network_growth_rate=0.0,
            storage_growth_rate=0.0,
            has_historical_data=False,
            days_of_data=len(ordered),
            message=message,
        )

    oldest, newest = ordered[0], ordered[-1]
    return GrowthMetrics(
        network_growth_rate=_growth_percent(newest.active_nodes, oldest.active_nodes),
        storage_growth_rate=_growth_percent(newest.total_pages, oldest.total_pages),
        has_historical_data=True,
        days_of_data=len(ordered),
        days_between_snapshots=(newest.snapshot_date - oldest.snapshot_date).days,
        most_recent=newest,
        oldest=oldest,
    )
