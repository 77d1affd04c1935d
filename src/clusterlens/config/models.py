"""Pydantic models for ClusterLens configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_UPSTREAM_ORIGIN = "https://backend-stage.vacademy.io"

DEFAULT_PREFIXES: list[str] = [
    "/auth-service",
    "/admin-core-service",
    "/media-service",
    "/assessment-service",
    "/notification-service",
    "/ai-service",
    "/community-service",
]


class LensIdentity(BaseModel):
    """Top-level identity metadata."""

    name: str = "ClusterLens"
    version: str = "0.1.0"


class RouterConfig(BaseModel):
    """Path-prefix proxy settings."""

    upstream_origin: str = DEFAULT_UPSTREAM_ORIGIN
    prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_PREFIXES))
    timeout: float = Field(default=30.0, gt=0)
    follow_redirects: bool = True


class ServiceEntry(BaseModel):
    """A service whose liveness and database health are probed."""

    name: str
    base_path: str = ""
    url: str = ""  # overrides upstream_origin + base_path

    def base_url(self, upstream_origin: str) -> str:
        if self.url:
            return self.url.rstrip("/")
        return upstream_origin.rstrip("/") + self.base_path.rstrip("/")


def _default_services() -> dict[str, ServiceEntry]:
    names = [
        "auth-service",
        "admin-core-service",
        "media-service",
        "assessment-service",
        "notification-service",
        "ai-service",
    ]
    return {name: ServiceEntry(name=name, base_path=f"/{name}") for name in names}


class AggregatorConfig(BaseModel):
    """Where the consolidated cluster snapshot is fetched from."""

    url: str = ""  # empty = upstream_origin + /community-service
    health_path: str = "/diagnostics/health"


class PollingConfig(BaseModel):
    """Refresh cadence and per-call deadlines, in seconds."""

    enabled: bool = True  # false = proxy only, refresh on demand
    probe_interval: float = Field(default=10.0, gt=0)
    snapshot_interval: float = Field(default=30.0, gt=0)
    probe_timeout: float = Field(default=5.0, gt=0)
    snapshot_timeout: float = Field(default=10.0, gt=0)


class AuthConfig(BaseModel):
    """Authentication configuration for the manual refresh endpoints."""

    api_key: str = ""  # empty = auth disabled


class LensConfig(BaseModel):
    """Root configuration model for .clusterlens.yaml."""

    lens: LensIdentity = Field(default_factory=LensIdentity)
    router: RouterConfig = Field(default_factory=RouterConfig)
    services: dict[str, ServiceEntry] = Field(default_factory=_default_services)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    static_dir: str = ""
    event_log_size: int = 100
    log_level: str = "INFO"

    def service_base_url(self, key: str) -> str:
        return self.services[key].base_url(self.router.upstream_origin)

    @property
    def snapshot_url(self) -> str:
        base = self.aggregator.url or self.router.upstream_origin.rstrip("/") + "/community-service"
        return base.rstrip("/") + self.aggregator.health_path
