"""
Network Health - History Reconstruction.

Helpers that turn normalized historical rows into inputs for
the engine:
- group rows sharing a snapshot timestamp
- pick, per node, the row closest to a past instant
- average per-node scores at that instant ("yesterday",
  "last week")
"""

import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional
import logging

from .aggregator import round_half_up
from .models import ComparativeScore, NodeTelemetry
from .node_scorer import NodeScorer


logger = logging.getLogger(__name__)


def group_by_timestamp(nodes: Iterable[NodeTelemetry]) -> "OrderedDict[int, List[NodeTelemetry]]":
    """Group nodes by snapshot timestamp, ascending, in a single pass."""
    groups: Dict[int, List[NodeTelemetry]] = {}
    for node in nodes:
        groups.setdefault(node.timestamp, []).append(node)
    return OrderedDict((ts, groups[ts]) for ts in sorted(groups))


def select_closest_records(
    nodes: Iterable[NodeTelemetry],
    target_timestamp: int,
) -> List[NodeTelemetry]:
    """
    For each node id, keep the record closest to the target.

    Ties keep the earlier record. Output is ordered by node id.
    """
    closest: Dict[str, NodeTelemetry] = {}
    for node in nodes:
        existing = closest.get(node.id)
        if existing is None:
            closest[node.id] = node
            continue
        existing_diff = abs(existing.timestamp - target_timestamp)
        candidate_diff = abs(node.timestamp - target_timestamp)
        if candidate_diff < existing_diff or (
            candidate_diff == existing_diff and node.timestamp < existing.timestamp
        ):
            closest[node.id] = node
    return [closest[node_id] for node_id in sorted(closest)]


def compute_comparative_score(
    nodes: Iterable[NodeTelemetry],
    target_timestamp: int,
    scorer: Optional[NodeScorer] = None,
) -> Optional[ComparativeScore]:
    """
    Average node score of the network around a past instant.

    Zero scores (offline / private nodes) are excluded from
    the average. Returns None when no node has a valid score.
    """
    scorer = scorer or NodeScorer()
    selected = select_closest_records(nodes, target_timestamp)
    valid = [s for s in (scorer.score(node) for node in selected) if s > 0]

    if not valid:
        logger.info(f"No scorable nodes around {target_timestamp} ({len(selected)} records)")
        return None

    return ComparativeScore(
        score=round_half_up(math.fsum(valid) / len(valid)),
        node_count=len(valid),
        target_timestamp=target_timestamp,
    )
