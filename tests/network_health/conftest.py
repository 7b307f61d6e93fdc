"""
Shared fixtures for network health tests.
"""

import pytest

from network_health.models import NodeTelemetry


GB = 1024 ** 3
DAY = 86400
BASE_TS = 1_700_000_000


@pytest.fixture
def make_node():
    """
    Factory for healthy online nodes.

    Defaults: on 1.0.0, 10% CPU, 25% RAM, 7 days uptime,
    balanced traffic, 100 GB committed.
    """
    def _make(node_id: str = "10.0.0.1", **overrides) -> NodeTelemetry:
        fields = dict(
            id=node_id,
            is_online=True,
            version="1.0.0",
            cpu_percent=10.0,
            ram_used_bytes=2 * GB,
            ram_total_bytes=8 * GB,
            uptime_seconds=7 * DAY,
            packets_sent=1000,
            packets_received=1000,
            storage_committed_bytes=100 * GB,
            timestamp=BASE_TS,
        )
        fields.update(overrides)
        return NodeTelemetry(**fields)

    return _make


@pytest.fixture
def perfect_node(make_node):
    return make_node(cpu_percent=0.0, ram_used_bytes=0)
