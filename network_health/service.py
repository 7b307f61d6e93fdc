"""
Network Health - Service Layer.

============================================================
PURPOSE
============================================================
Composes the telemetry repository with the scoring engine
for the HTTP handlers.

- Each call opens its own repository scope
- Scoring stays synchronous and pure; only reads are async
- The clock is passed in, so every window is reproducible

============================================================
FAILURE CONDITIONS
============================================================
- Store error           -> DataUnavailableError (from repository)
- Empty history window  -> NoHistoricalDataError
- Bad days parameter    -> InvalidRequestError
- Zero live nodes       -> valid score, not an error

============================================================
"""

import time
from typing import Any, AsyncContextManager, Callable, Dict, Optional
import logging

from .config import NetworkHealthConfig
from .engine import NetworkHealthEngine
from .exceptions import InvalidRequestError, NoHistoricalDataError
from .models import ComparativeScore, GrowthMetrics, NetworkHealthScore
from .normalizer import normalize_history_records, normalize_live_nodes
from .repository import TelemetryRepository
from .trends import compute_growth_metrics


logger = logging.getLogger(__name__)


RepositoryProvider = Callable[[], AsyncContextManager[TelemetryRepository]]


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else int(now)


class NetworkHealthService:
    """
    Read-only network health service.

    Usage:
        provider = TelemetryRepository.provider(session_factory)
        service = NetworkHealthService(provider, NetworkHealthEngine(config))
        score = await service.get_current_health()
    """

    def __init__(
        self,
        repository_provider: RepositoryProvider,
        engine: Optional[NetworkHealthEngine] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            repository_provider: Zero-argument callable returning an
                async context manager that yields a TelemetryRepository
            engine: Scoring engine. Uses defaults if not provided.
        """
        self._provide = repository_provider
        self._engine = engine or NetworkHealthEngine()

    @property
    def config(self) -> NetworkHealthConfig:
        return self._engine.config

    # --------------------------------------------------------
    # CURRENT SCORE
    # --------------------------------------------------------

    async def get_current_health(self) -> NetworkHealthScore:
        """Score the live node table."""
        async with self._provide() as repository:
            rows = await repository.fetch_live_nodes()

        nodes = normalize_live_nodes(rows)
        result = self._engine.compute(nodes)
        logger.info(
            f"Current network health: {result.overall} ({result.rating.value}), "
            f"{result.online_count}/{result.node_count} online"
        )
        return result

    # --------------------------------------------------------
    # HISTORY
    # --------------------------------------------------------

    def validate_days(self, days: Any) -> int:
        """Parse and bound-check the history window length."""
        policy = self.config.history
        if days is None or days == "":
            return policy.default_days
        try:
            value = int(days)
        except (TypeError, ValueError):
            raise InvalidRequestError("days", f"must be an integer, got {days!r}")
        if value < 1 or value > policy.max_days:
            raise InvalidRequestError("days", f"must be between 1 and {policy.max_days}")
        return value

    async def get_history(
        self,
        days: Any = None,
        now: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Rebuild the score series over the last N days and classify it.

        Args:
            days: Window length in days (1..max_days)
            now: Current unix time; defaults to the wall clock

        Returns:
            Trend analysis dict plus the requested window

        Raises:
            InvalidRequestError: days out of range
            NoHistoricalDataError: no rows in the window
        """
        window_days = self.validate_days(days)
        end_ts = _now(now)
        start_ts = end_ts - window_days * 86400

        async with self._provide() as repository:
            rows = await repository.fetch_history(start_ts, end_ts)

        if not rows:
            raise NoHistoricalDataError(start_ts, end_ts)

        nodes = normalize_history_records(rows)
        points = self._engine.history(nodes)
        analysis = self._engine.analyze_trend(points)

        logger.info(
            f"History over {window_days}d: {len(points)} points, trend {analysis.trend.value}"
        )

        result = analysis.to_dict()
        result["days_requested"] = window_days
        result["window_start"] = start_ts
        result["window_end"] = end_ts
        return result

    # --------------------------------------------------------
    # COMPARISONS
    # --------------------------------------------------------

    async def _comparison(
        self,
        target_ts: int,
        before_seconds: int,
        after_seconds: int,
    ) -> ComparativeScore:
        start_ts = target_ts - before_seconds
        end_ts = target_ts + after_seconds

        async with self._provide() as repository:
            rows = await repository.fetch_history(start_ts, end_ts)

        if not rows:
            raise NoHistoricalDataError(start_ts, end_ts)

        result = self._engine.comparative_score(
            normalize_history_records(rows),
            target_ts,
        )
        if result is None:
            raise NoHistoricalDataError(
                start_ts,
                end_ts,
                message="No active nodes found in historical data",
            )
        return result

    async def get_yesterday(self, now: Optional[int] = None) -> ComparativeScore:
        """Average node score around 24 hours ago."""
        policy = self.config.history
        return await self._comparison(
            _now(now) - policy.yesterday_offset_seconds,
            policy.yesterday_window_before_seconds,
            policy.yesterday_window_after_seconds,
        )

    async def get_last_week(self, now: Optional[int] = None) -> ComparativeScore:
        """Average node score around 7 days ago."""
        policy = self.config.history
        return await self._comparison(
            _now(now) - policy.last_week_offset_seconds,
            policy.last_week_window_seconds,
            policy.last_week_window_seconds,
        )

    # --------------------------------------------------------
    # GROWTH
    # --------------------------------------------------------

    async def get_growth_metrics(self) -> GrowthMetrics:
        """Growth between the oldest and newest recent daily rollups."""
        async with self._provide() as repository:
            snapshots = await repository.fetch_recent_snapshots(
                self.config.history.growth_snapshot_limit,
            )
        return compute_growth_metrics(snapshots)
