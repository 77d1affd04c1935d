"""Tests for the monitor event emitter and the in-memory event log."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from clusterlens.events.emitter import (
    PROBE_UPDATED,
    SNAPSHOT_FAILED,
    SNAPSHOT_UPDATED,
    EventEmitter,
    MonitorEvent,
)
from clusterlens.events.log import EventLog

# ─── MonitorEvent tests ───


class TestMonitorEvent:
    def test_defaults(self):
        evt = MonitorEvent(event_type=PROBE_UPDATED, source="auth-service")
        assert evt.data == {}
        assert evt.timestamp.tzinfo is not None

    def test_to_dict(self):
        ts = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        evt = MonitorEvent(event_type=SNAPSHOT_FAILED, source="aggregator", timestamp=ts, data={"error_kind": "markup"})
        assert evt.to_dict() == {
            "event_type": "snapshot.failed",
            "source": "aggregator",
            "timestamp": "2026-10-19T12:00:00+00:00",
            "data": {"error_kind": "markup"},
        }


# ─── EventEmitter tests ───


class TestEventEmitter:
    @pytest.mark.asyncio
    async def test_emit_to_listeners_in_order(self):
        emitter = EventEmitter()
        calls: list[str] = []
        first = AsyncMock()
        first.on_event.side_effect = lambda e: calls.append("first")
        second = AsyncMock()
        second.on_event.side_effect = lambda e: calls.append("second")
        emitter.add_listener(first)
        emitter.add_listener(second)

        evt = MonitorEvent(event_type=SNAPSHOT_UPDATED, source="aggregator")
        await emitter.emit(evt)
        first.on_event.assert_called_once_with(evt)
        second.on_event.assert_called_once_with(evt)
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_listener_error_does_not_propagate(self):
        emitter = EventEmitter()
        bad = AsyncMock()
        bad.on_event.side_effect = RuntimeError("listener crash")
        good = AsyncMock()
        emitter.add_listener(bad)
        emitter.add_listener(good)

        evt = MonitorEvent(event_type=PROBE_UPDATED, source="auth-service")
        await emitter.emit(evt)
        good.on_event.assert_called_once_with(evt)

    @pytest.mark.asyncio
    async def test_no_listeners(self):
        await EventEmitter().emit(MonitorEvent(event_type=PROBE_UPDATED, source="x"))


# ─── EventLog tests ───


class TestEventLog:
    @pytest.mark.asyncio
    async def test_most_recent_first(self):
        log = EventLog()
        for name in ["a", "b", "c"]:
            await log.on_event(MonitorEvent(event_type=PROBE_UPDATED, source=name))
        events = await log.get_recent()
        assert [e.source for e in events] == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_bounded(self):
        log = EventLog(max_size=2)
        for name in ["a", "b", "c"]:
            await log.on_event(MonitorEvent(event_type=PROBE_UPDATED, source=name))
        events = await log.get_recent()
        assert [e.source for e in events] == ["c", "b"]

    @pytest.mark.asyncio
    async def test_limit_and_filters(self):
        log = EventLog()
        await log.on_event(MonitorEvent(event_type=PROBE_UPDATED, source="auth-service"))
        await log.on_event(MonitorEvent(event_type=SNAPSHOT_FAILED, source="aggregator"))
        await log.on_event(MonitorEvent(event_type=PROBE_UPDATED, source="media-service"))

        assert len(await log.get_recent(limit=1)) == 1
        probes = await log.get_recent(event_type=PROBE_UPDATED)
        assert [e.source for e in probes] == ["media-service", "auth-service"]
        auth = await log.get_recent(source="auth-service")
        assert len(auth) == 1
