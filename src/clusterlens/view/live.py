"""Keeps the latest DashboardView rebuilt as probes and polls publish."""

from __future__ import annotations

from clusterlens.events.emitter import MonitorEvent
from clusterlens.probes.scheduler import ProbeScheduler
from clusterlens.snapshot.poller import SnapshotPoller
from clusterlens.view.builder import DashboardView, build_view


class LiveView:
    """Recomputes the view on every monitor event. Implements EventListener protocol."""

    def __init__(self, scheduler: ProbeScheduler, poller: SnapshotPoller) -> None:
        self._scheduler = scheduler
        self._poller = poller
        self._current = self.rebuild()

    @property
    def current(self) -> DashboardView:
        return self._current

    def rebuild(self) -> DashboardView:
        self._current = build_view(
            self._poller.state,
            self._scheduler.results,
            configured=self._scheduler.service_names,
        )
        return self._current

    async def on_event(self, event: MonitorEvent) -> None:
        self.rebuild()
