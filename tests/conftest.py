"""Shared fixtures for ClusterLens tests."""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any, Dict

import httpx
import pytest
import yaml

from clusterlens.config.models import LensConfig

SAMPLE_CONFIG: Dict[str, Any] = {
    "lens": {"name": "ClusterLens", "version": "0.1.0"},
    "router": {
        "upstream_origin": "https://backend.example.test",
        "prefixes": ["/auth-service", "/media-service", "/community-service"],
        "timeout": 30,
    },
    "services": {
        "auth-service": {"name": "auth-service", "base_path": "/auth-service"},
        "media-service": {"name": "media-service", "base_path": "/media-service"},
    },
    "polling": {
        "enabled": False,
        "probe_interval": 10,
        "snapshot_interval": 30,
        "probe_timeout": 5,
        "snapshot_timeout": 10,
    },
}

SAMPLE_SNAPSHOT: Dict[str, Any] = {
    "timestamp": "2026-10-19T10:00:00Z",
    "overall_status": "HEALTHY",
    "kubernetes_infrastructure": {
        "ingress_nginx": {
            "status": "UP",
            "ready_replicas": 1,
            "total_replicas": 1,
            "restart_count": 0,
            "pods": [
                {
                    "name": "ingress-nginx-controller-abc",
                    "status": "Running",
                    "ready": True,
                    "restarts": 0,
                    "age": "2d",
                    "node": "lke-node-1",
                }
            ],
        },
        "redis": {
            "status": "DEGRADED",
            "pods": [
                {
                    "name": "redis-xyz",
                    "status": "CrashLoopBackOff",
                    "ready": False,
                    "restarts": 6,
                    "age": "1h",
                    "termination_reason": "OOMKilled",
                    "last_exit_code": 137,
                    "logs": ["out of memory"],
                }
            ],
        },
        "calico_network": {"status": "UP"},
        "load_balancer": {"status": "ACTIVE", "external_ip": "172.232.85.240", "ports": ["80/TCP", "443/TCP"]},
    },
    "application_services": [
        {"name": "auth-service", "status": "UP", "response_time_ms": 45},
        {"name": "admin-core-service", "status": "UP", "response_time_ms": 62},
        {"name": "media-service", "status": "DOWN", "response_time_ms": 13},
    ],
    "dependencies": {
        "redis": {"status": "UP", "connected": True, "response_time_ms": 2, "host": "redis", "port": 6379},
        "postgresql": {"status": "UP", "connected": True, "response_time_ms": 15, "database_name": "app_db"},
    },
    "connectivity_matrix": [
        {"source": "auth-service", "target": "admin-core-service", "status": "OK", "response_time_ms": 23},
        {
            "source": "admin-core-service",
            "target": "media-service",
            "status": "FAILED",
            "response_time_ms": -1,
            "error_message": "Connection refused",
        },
    ],
    "recent_events": [
        {
            "type": "Warning",
            "reason": "FailedScheduling",
            "message": "0/3 nodes are available: 3 Insufficient cpu.",
            "object": "pod/redis-xyz",
            "namespace": "default",
            "timestamp": "2026-10-19T09:50:00Z",
            "count": 5,
        }
    ],
}


@pytest.fixture()
def sample_config() -> LensConfig:
    """Return a parsed LensConfig from sample data."""
    return LensConfig(**copy.deepcopy(SAMPLE_CONFIG))


@pytest.fixture()
def sample_config_dict() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp .clusterlens.yaml and return the path."""
    path = tmp_path / ".clusterlens.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def snapshot_payload() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_SNAPSHOT)


@pytest.fixture()
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


class ChunkedBody(httpx.AsyncByteStream):
    """A response body delivered in chunks, the way a socket-backed upstream sends it."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


@pytest.fixture()
def upstream_response() -> Callable[..., httpx.Response]:
    """Build an upstream reply whose body is streamed rather than preloaded."""

    def _make(
        status_code: int,
        body: bytes = b"",
        headers: list[tuple[str, str]] | None = None,
    ) -> httpx.Response:
        return httpx.Response(status_code, headers=headers or [], stream=ChunkedBody(body))

    return _make
