"""Monitor event system for ClusterLens."""

from __future__ import annotations

from clusterlens.events.emitter import (
    PROBE_UPDATED,
    SNAPSHOT_FAILED,
    SNAPSHOT_UPDATED,
    EventEmitter,
    EventListener,
    MonitorEvent,
)
from clusterlens.events.log import EventLog

__all__ = [
    "PROBE_UPDATED",
    "SNAPSHOT_FAILED",
    "SNAPSHOT_UPDATED",
    "EventEmitter",
    "EventListener",
    "EventLog",
    "MonitorEvent",
]
