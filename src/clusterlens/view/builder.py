"""Display-ready aggregates derived from the latest snapshot and probe results.

Everything here is a pure function of its inputs: the builder keeps no
state between calls, so the derived pod list always reflects exactly the
snapshot it was given.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from clusterlens.probes.models import ProbeResult
from clusterlens.snapshot.models import ApplicationService, HealthSnapshot, PodRecord
from clusterlens.snapshot.poller import SnapshotState
from clusterlens.view.status import UNKNOWN, classify_status, worst_bucket

LOADING = "loading"
FAILED = "failed"
STALE = "stale"
LIVE = "live"


def flatten_pods(snapshot: HealthSnapshot | None) -> list[PodRecord]:
    """Every infrastructure component's pods, in component order."""
    if snapshot is None:
        return []
    pods: list[PodRecord] = []
    for component in snapshot.kubernetes_infrastructure.values():
        if component.pods:
            pods.extend(component.pods)
    return pods


def filter_pods(pods: Iterable[PodRecord], search: str = "", problems_only: bool = False) -> list[PodRecord]:
    """Case-insensitive name search AND (optionally) the problems-only predicate."""
    needle = search.strip().lower()
    return [
        pod
        for pod in pods
        if (not needle or needle in pod.name.lower()) and (not problems_only or pod.has_problem)
    ]


def average_latency(services: Sequence[ApplicationService]) -> Optional[float]:
    """Mean response time, or None when there are no services to average."""
    if not services:
        return None
    return sum(s.response_time_ms for s in services) / len(services)


@dataclass(frozen=True)
class ServiceView:
    """Server-side status and client-side probes for one service, side by side."""

    name: str
    health: str
    snapshot_status: Optional[str] = None
    response_time_ms: Optional[float] = None
    ping_status: Optional[str] = None
    ping_latency_ms: Optional[float] = None
    db_status: Optional[str] = None
    db_latency_ms: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def combine_service(
    name: str,
    app_service: ApplicationService | None,
    probe: ProbeResult | None,
) -> ServiceView:
    statuses: list[str] = []
    if app_service is not None:
        statuses.append(app_service.status)
    if probe is not None:
        statuses.extend([probe.ping_status, probe.db_status])
    health = worst_bucket([classify_status(s) for s in statuses]) if statuses else UNKNOWN
    return ServiceView(
        name=name,
        health=health,
        snapshot_status=app_service.status if app_service else None,
        response_time_ms=app_service.response_time_ms if app_service else None,
        ping_status=probe.ping_status if probe else None,
        ping_latency_ms=probe.ping_latency_ms if probe else None,
        db_status=probe.db_status if probe else None,
        db_latency_ms=probe.db_latency_ms if probe else None,
    )


def combine_services(
    snapshot: HealthSnapshot | None,
    probe_results: Mapping[str, ProbeResult],
    configured: Sequence[str] = (),
) -> list[ServiceView]:
    """One entry per known service: configured order, then snapshot order, then the rest."""
    app_services = {s.name: s for s in snapshot.application_services} if snapshot else {}
    names: list[str] = []
    for name in [*configured, *app_services, *probe_results]:
        if name not in names:
            names.append(name)
    return [combine_service(name, app_services.get(name), probe_results.get(name)) for name in names]


def _infrastructure(snapshot: HealthSnapshot | None) -> list[dict[str, Any]]:
    if snapshot is None:
        return []
    return [
        {
            "name": name,
            "status": component.status,
            "health": classify_status(component.status),
            "ready_replicas": component.ready_replicas,
            "total_replicas": component.total_replicas,
            "restart_count": component.restart_count,
            "external_ip": component.external_ip,
            "pod_count": len(component.pods or []),
        }
        for name, component in snapshot.kubernetes_infrastructure.items()
    ]


def _view_state(state: SnapshotState) -> str:
    if state.snapshot is None:
        return FAILED if state.error else LOADING
    return STALE if state.error else LIVE


@dataclass(frozen=True)
class DashboardView:
    """Everything the dashboard renders, derived in one pass."""

    state: str
    overall_status: Optional[str] = None
    overall_health: str = UNKNOWN
    snapshot_timestamp: Optional[str] = None
    last_updated: Optional[datetime] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    average_latency_ms: Optional[float] = None
    services: list[ServiceView] = field(default_factory=list)
    pods: list[PodRecord] = field(default_factory=list)
    total_pod_count: int = 0
    problem_pod_count: int = 0
    infrastructure: list[dict[str, Any]] = field(default_factory=list)
    dependencies: dict[str, Any] = field(default_factory=dict)
    connectivity: list[dict[str, Any]] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)

    def with_pod_filter(self, search: str = "", problems_only: bool = False) -> DashboardView:
        if not search and not problems_only:
            return self
        return dataclasses.replace(self, pods=filter_pods(self.pods, search, problems_only))

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "overall_status": self.overall_status,
            "overall_health": self.overall_health,
            "snapshot_timestamp": self.snapshot_timestamp,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "average_latency_ms": self.average_latency_ms,
            "services": [s.to_dict() for s in self.services],
            "pods": [p.model_dump() for p in self.pods],
            "total_pod_count": self.total_pod_count,
            "problem_pod_count": self.problem_pod_count,
            "infrastructure": self.infrastructure,
            "dependencies": self.dependencies,
            "connectivity": self.connectivity,
            "events": self.events,
        }


def build_view(
    state: SnapshotState,
    probe_results: Mapping[str, ProbeResult],
    configured: Sequence[str] = (),
) -> DashboardView:
    snapshot = state.snapshot
    pods = flatten_pods(snapshot)
    return DashboardView(
        state=_view_state(state),
        overall_status=snapshot.overall_status if snapshot else None,
        overall_health=classify_status(snapshot.overall_status) if snapshot else UNKNOWN,
        snapshot_timestamp=snapshot.timestamp if snapshot else None,
        last_updated=state.last_updated,
        error=state.error,
        error_kind=state.error_kind,
        average_latency_ms=average_latency(snapshot.application_services) if snapshot else None,
        services=combine_services(snapshot, probe_results, configured),
        pods=pods,
        total_pod_count=len(pods),
        problem_pod_count=sum(1 for p in pods if p.has_problem),
        infrastructure=_infrastructure(snapshot),
        dependencies=snapshot.dependencies.model_dump(exclude_none=True) if snapshot else {},
        connectivity=[edge.model_dump() for edge in snapshot.connectivity_matrix] if snapshot else [],
        events=[evt.model_dump() for evt in snapshot.recent_events] if snapshot else [],
    )
