"""Consolidated cluster snapshot from the aggregator."""

from clusterlens.snapshot.errors import (
    MarkupResponseError,
    SnapshotError,
    SnapshotHTTPError,
    SnapshotParseError,
    SnapshotTransportError,
)
from clusterlens.snapshot.models import (
    ApplicationService,
    ClusterEvent,
    ConnectivityEdge,
    HealthSnapshot,
    InfraComponent,
    PodRecord,
)
from clusterlens.snapshot.poller import SnapshotPoller, SnapshotState, fetch_snapshot

__all__ = [
    "ApplicationService",
    "ClusterEvent",
    "ConnectivityEdge",
    "HealthSnapshot",
    "InfraComponent",
    "MarkupResponseError",
    "PodRecord",
    "SnapshotError",
    "SnapshotHTTPError",
    "SnapshotParseError",
    "SnapshotPoller",
    "SnapshotState",
    "SnapshotTransportError",
    "fetch_snapshot",
]
