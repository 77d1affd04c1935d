"""Pydantic models for the aggregator's consolidated cluster snapshot."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PodRecord(BaseModel):
    """One workload replica."""

    model_config = ConfigDict(extra="allow")

    name: str
    status: str
    ready: bool = False
    restarts: int = 0
    age: str = ""
    node: str | None = None
    namespace: str | None = None
    termination_reason: str | None = None
    last_exit_code: int | None = None
    logs: list[str] | None = None

    @property
    def has_problem(self) -> bool:
        return self.status != "Running" or self.restarts > 0


class InfraComponent(BaseModel):
    """A Kubernetes infrastructure component (ingress, cert-manager, load balancer, ...)."""

    model_config = ConfigDict(extra="allow")

    status: str
    ready_replicas: int | None = None
    total_replicas: int | None = None
    restart_count: int | None = None
    pods: list[PodRecord] | None = None
    external_ip: str | None = None
    ports: list[str] | None = None


class ApplicationService(BaseModel):
    """Server-side view of one application service."""

    name: str
    status: str
    response_time_ms: float
    health_endpoint: str | None = None
    last_check: str | None = None


class DependencyStatus(BaseModel):
    status: str
    connected: bool = False
    response_time_ms: float = -1
    host: str | None = None
    port: int | None = None
    database_name: str | None = None


class DatabaseStatus(DependencyStatus):
    url: str | None = None


class Dependencies(BaseModel):
    redis: DependencyStatus | None = None
    postgresql: DatabaseStatus | None = None


class ConnectivityEdge(BaseModel):
    """One directed reachability check between two services."""

    source: str
    target: str
    status: str
    response_time_ms: float = -1
    error_message: str | None = None
    last_check: str | None = None


class ClusterEvent(BaseModel):
    type: str
    reason: str
    message: str
    object: str
    namespace: str | None = None
    timestamp: str
    count: int | None = None


class HealthSnapshot(BaseModel):
    """Consolidated, point-in-time cluster health document."""

    timestamp: str
    overall_status: str
    kubernetes_infrastructure: dict[str, InfraComponent] = Field(default_factory=dict)
    application_services: list[ApplicationService] = Field(default_factory=list)
    dependencies: Dependencies = Field(default_factory=Dependencies)
    connectivity_matrix: list[ConnectivityEdge] = Field(default_factory=list)
    recent_events: list[ClusterEvent] = Field(default_factory=list)
