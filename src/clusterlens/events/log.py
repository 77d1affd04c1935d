"""In-memory ring buffer for recent monitor events."""

from __future__ import annotations

import asyncio
from collections import deque

from clusterlens.events.emitter import MonitorEvent


class EventLog:
    """Bounded in-memory event log. Implements EventListener protocol.

    Nothing here is persisted; the buffer only backs the recent-activity feed.
    """

    def __init__(self, max_size: int = 100) -> None:
        self._events: deque[MonitorEvent] = deque(maxlen=max_size)
        self._lock = asyncio.Lock()

    async def on_event(self, event: MonitorEvent) -> None:
        async with self._lock:
            self._events.append(event)

    async def get_recent(
        self,
        limit: int = 20,
        event_type: str | None = None,
        source: str | None = None,
    ) -> list[MonitorEvent]:
        async with self._lock:
            events = [
                e
                for e in self._events
                if (event_type is None or e.event_type == event_type) and (source is None or e.source == source)
            ]
        events.reverse()
        return events[:limit]
