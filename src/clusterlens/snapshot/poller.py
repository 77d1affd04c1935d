"""Periodic poller for the aggregator's consolidated health snapshot."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from clusterlens.config.models import LensConfig
from clusterlens.events.emitter import SNAPSHOT_FAILED, SNAPSHOT_UPDATED, EventEmitter, MonitorEvent
from clusterlens.snapshot.errors import (
    MarkupResponseError,
    SnapshotError,
    SnapshotHTTPError,
    SnapshotParseError,
    SnapshotTransportError,
)
from clusterlens.snapshot.models import HealthSnapshot

logger = logging.getLogger(__name__)

_MARKUP_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True)
class SnapshotState:
    """The single live snapshot plus the outcome of the most recent poll.

    A failed poll keeps the previous snapshot and only sets ``error``.
    """

    snapshot: Optional[HealthSnapshot] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    last_updated: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    polls: int = 0

    @property
    def loading(self) -> bool:
        return self.polls == 0

    @property
    def stale(self) -> bool:
        return self.snapshot is not None and self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "snapshot": self.snapshot.model_dump() if self.snapshot else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "last_attempt": self.last_attempt.isoformat() if self.last_attempt else None,
            "loading": self.loading,
            "stale": self.stale,
        }


def _is_markup(content_type: str) -> bool:
    lowered = content_type.lower()
    return any(t in lowered for t in _MARKUP_TYPES)


async def fetch_snapshot(client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> HealthSnapshot:
    """Fetch and validate one snapshot. Every failure raises a SnapshotError."""
    try:
        resp = await asyncio.wait_for(client.get(url, timeout=timeout), timeout=timeout)
    except (TimeoutError, httpx.TimeoutException) as exc:
        raise SnapshotTransportError(f"Timed out after {timeout:g}s fetching health data") from exc
    except httpx.HTTPError as exc:
        raise SnapshotTransportError(f"Could not reach aggregator: {exc}") from exc

    # Checked before the status so a gateway's HTML error page is reported as such.
    if _is_markup(resp.headers.get("content-type", "")):
        excerpt = resp.text[:150]
        logger.error("Health API returned HTML instead of JSON. Check API URL or proxy config: %r", excerpt)
        raise MarkupResponseError(resp.status_code, excerpt)

    if not resp.is_success:
        raise SnapshotHTTPError(resp.status_code, resp.reason_phrase)

    try:
        payload = resp.json()
    except ValueError as exc:
        raise SnapshotParseError(f"Malformed JSON in health response: {exc}") from exc
    try:
        return HealthSnapshot.model_validate(payload)
    except ValidationError as exc:
        raise SnapshotParseError(
            f"Health response does not match the snapshot shape ({exc.error_count()} error(s))"
        ) from exc


class SnapshotPoller:
    """Owns the current SnapshotState and refreshes it on a fixed period."""

    def __init__(
        self,
        url: str,
        *,
        interval: float = 30.0,
        timeout: float = 10.0,
        emitter: EventEmitter | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._interval = interval
        self._timeout = timeout
        self._emitter = emitter
        self._client = client
        self._owns_client = False
        self._state = SnapshotState()
        self._lock = asyncio.Lock()
        self._stop = asyncio.Event()
        self._loop_task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: LensConfig, emitter: EventEmitter | None = None) -> SnapshotPoller:
        return cls(
            config.snapshot_url,
            interval=config.polling.snapshot_interval,
            timeout=config.polling.snapshot_timeout,
            emitter=emitter,
        )

    @property
    def state(self) -> SnapshotState:
        return self._state

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        self._loop_task = asyncio.create_task(self._run_loop(), name="snapshot-poller")
        logger.info("Started snapshot poller for %s (interval %.1fs)", self.url, self._interval)

    async def stop(self) -> None:
        self._stop.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            await asyncio.gather(self._loop_task, return_exceptions=True)
            self._loop_task = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
        logger.info("Stopped snapshot poller")

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._stop.is_set():
            started = loop.time()
            await self.poll_once()
            remaining = max(0.0, self._interval - (loop.time() - started))
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=remaining)
            except TimeoutError:
                continue

    async def refresh(self) -> SnapshotState:
        """Manual trigger; shares the lock with scheduled polls."""
        return await self.poll_once()

    async def poll_once(self) -> SnapshotState:
        async with self._lock:
            now = datetime.now(UTC)
            try:
                snapshot = await self._fetch()
            except SnapshotError as exc:
                self._state = dataclasses.replace(
                    self._state,
                    error=str(exc),
                    error_kind=exc.kind,
                    last_attempt=now,
                    polls=self._state.polls + 1,
                )
                logger.warning("Snapshot poll failed (%s): %s", exc.kind, exc)
                await self._emit(SNAPSHOT_FAILED, {"error": str(exc), "error_kind": exc.kind})
            except Exception as exc:
                logger.exception("Unexpected error while polling %s", self.url)
                self._state = dataclasses.replace(
                    self._state,
                    error=str(exc) or type(exc).__name__,
                    error_kind="unknown",
                    last_attempt=now,
                    polls=self._state.polls + 1,
                )
                await self._emit(SNAPSHOT_FAILED, {"error": self._state.error, "error_kind": "unknown"})
            else:
                self._state = SnapshotState(
                    snapshot=snapshot,
                    last_updated=datetime.now(UTC),
                    last_attempt=now,
                    polls=self._state.polls + 1,
                )
                await self._emit(SNAPSHOT_UPDATED, {"overall_status": snapshot.overall_status})
            return self._state

    async def _fetch(self) -> HealthSnapshot:
        if self._client is not None:
            return await fetch_snapshot(self._client, self.url, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await fetch_snapshot(client, self.url, timeout=self._timeout)

    async def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        if self._emitter is not None:
            await self._emitter.emit(MonitorEvent(event_type=event_type, source="aggregator", data=data))
