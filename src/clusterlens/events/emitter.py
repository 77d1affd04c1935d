"""Event emitter, listener protocol, and monitor event dataclass."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

logger = logging.getLogger(__name__)

PROBE_UPDATED = "probe.updated"
SNAPSHOT_UPDATED = "snapshot.updated"
SNAPSHOT_FAILED = "snapshot.failed"


@dataclass
class MonitorEvent:
    """Published whenever a probe record or the snapshot state changes."""

    event_type: str
    source: str  # service name for probes, "aggregator" for snapshots
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


class EventListener(Protocol):
    """Protocol for consuming monitor events."""

    async def on_event(self, event: MonitorEvent) -> None: ...


class EventEmitter:
    """Dispatches monitor events to listeners in registration order."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    async def emit(self, event: MonitorEvent) -> None:
        for listener in self._listeners:
            try:
                await listener.on_event(event)
            except Exception:
                logger.exception("Event listener error (%s)", event.event_type)
