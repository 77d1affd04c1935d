"""Async liveness and database probes."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from clusterlens.probes.models import UP, ProbeOutcome, ProbeResult

PING_PATH = "/health/ping"
DB_PATH = "/health/db"


async def _bounded_get(client: httpx.AsyncClient, url: str, timeout: float) -> httpx.Response:
    """GET with a hard overall deadline on top of httpx's per-phase timeouts."""
    return await asyncio.wait_for(client.get(url, timeout=timeout), timeout=timeout)


def _transport_failure(exc: Exception) -> ProbeOutcome:
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return ProbeOutcome.down("Timeout")
    if isinstance(exc, httpx.ConnectError):
        return ProbeOutcome.down(f"Connection refused: {exc}")
    return ProbeOutcome.down(str(exc) or type(exc).__name__)


async def probe_ping(client: httpx.AsyncClient, base_url: str, timeout: float = 5.0) -> ProbeOutcome:
    """Any 2xx from {base}/health/ping is UP, timed to the millisecond."""
    url = base_url.rstrip("/") + PING_PATH
    start = time.monotonic()
    try:
        resp = await _bounded_get(client, url, timeout)
    except Exception as exc:
        return _transport_failure(exc)
    latency = round((time.monotonic() - start) * 1000)
    if resp.is_success:
        return ProbeOutcome.up(latency)
    return ProbeOutcome.down(f"HTTP {resp.status_code}")


def _db_latency(payload: dict[str, Any]) -> float:
    for key in ("total_latency_ms", "latency_ms"):
        value = payload.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return 0


async def probe_db(client: httpx.AsyncClient, base_url: str, timeout: float = 5.0) -> ProbeOutcome:
    """UP only when {base}/health/db answers 2xx with a JSON body whose status is "UP"."""
    url = base_url.rstrip("/") + DB_PATH
    try:
        resp = await _bounded_get(client, url, timeout)
    except Exception as exc:
        return _transport_failure(exc)
    if not resp.is_success:
        return ProbeOutcome.down(f"HTTP {resp.status_code}")
    try:
        payload = resp.json()
    except ValueError:
        return ProbeOutcome.down("Unparsable response body")
    if not isinstance(payload, dict):
        return ProbeOutcome.down("Unexpected response shape")
    status = payload.get("status")
    if status != UP:
        return ProbeOutcome.down(f"Reported status {status!r}")
    return ProbeOutcome.up(_db_latency(payload))


async def probe_service(
    client: httpx.AsyncClient,
    service: str,
    base_url: str,
    timeout: float = 5.0,
    cycle: int = 0,
) -> ProbeResult:
    """Run the ping and DB probes for one service concurrently."""
    ping, db = await asyncio.gather(
        probe_ping(client, base_url, timeout=timeout),
        probe_db(client, base_url, timeout=timeout),
    )
    return ProbeResult.from_outcomes(service, ping, db, cycle)
