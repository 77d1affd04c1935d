"""Fixed-period probe scheduler owning the service -> ProbeResult mapping."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Mapping
from types import MappingProxyType

import httpx

from clusterlens.config.models import LensConfig
from clusterlens.events.emitter import PROBE_UPDATED, EventEmitter, MonitorEvent
from clusterlens.probes.health import probe_service
from clusterlens.probes.models import ProbeResult

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """Probes every configured service on a fixed period.

    Each tick launches a cycle as its own task without waiting for the
    previous one, so cycles can overlap. Every cycle gets the next sequence
    number and a service's record is only replaced by a result from the same
    or a newer cycle; a slow older cycle finishing late is dropped.
    """

    def __init__(
        self,
        services: Mapping[str, str],
        *,
        interval: float = 10.0,
        timeout: float = 5.0,
        emitter: EventEmitter | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._services = dict(services)  # name -> base URL
        self._interval = interval
        self._timeout = timeout
        self._emitter = emitter
        self._client = client
        self._owns_client = False
        self._results: dict[str, ProbeResult] = {}
        self._sequence = itertools.count(1)
        self._stop = asyncio.Event()
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(cls, config: LensConfig, emitter: EventEmitter | None = None) -> ProbeScheduler:
        services = {entry.name: config.service_base_url(key) for key, entry in config.services.items()}
        return cls(
            services,
            interval=config.polling.probe_interval,
            timeout=config.polling.probe_timeout,
            emitter=emitter,
        )

    @property
    def service_names(self) -> list[str]:
        return list(self._services.keys())

    @property
    def results(self) -> Mapping[str, ProbeResult]:
        """Read-only copy of the latest published records."""
        return MappingProxyType(dict(self._results))

    def get(self, service: str) -> ProbeResult | None:
        return self._results.get(service)

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
        self._loop_task = asyncio.create_task(self._run_loop(), name="probe-scheduler")
        logger.info(
            "Started probe scheduler for %d services (interval %.1fs, timeout %.1fs)",
            len(self._services),
            self._interval,
            self._timeout,
        )

    async def stop(self) -> None:
        self._stop.set()
        tasks = list(self._inflight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
        logger.info("Stopped probe scheduler")

    async def _run_loop(self) -> None:
        while not self._stop.is_set():
            self._launch_cycle()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except TimeoutError:
                continue

    def _launch_cycle(self) -> asyncio.Task[None]:
        cycle = next(self._sequence)
        task = asyncio.create_task(self._run_cycle(cycle), name=f"probe-cycle-{cycle}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def trigger_refresh(self) -> asyncio.Task[None]:
        """Run a cycle now without waiting for it; the periodic schedule is untouched."""
        return self._launch_cycle()

    async def refresh_all(self) -> Mapping[str, ProbeResult]:
        """Run a cycle now and return the mapping once every service has reported."""
        await self._launch_cycle()
        return self.results

    async def _run_cycle(self, cycle: int) -> None:
        if self._client is not None:
            await self._probe_all(self._client, cycle)
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            await self._probe_all(client, cycle)

    async def _probe_all(self, client: httpx.AsyncClient, cycle: int) -> None:
        await asyncio.gather(
            *(self._probe_and_publish(client, name, base_url, cycle) for name, base_url in self._services.items())
        )

    async def _probe_and_publish(self, client: httpx.AsyncClient, name: str, base_url: str, cycle: int) -> None:
        try:
            result = await probe_service(client, name, base_url, timeout=self._timeout, cycle=cycle)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Probe of %s failed unexpectedly", name)
            result = ProbeResult.failed(name, str(exc), cycle)
        await self._publish(result)

    async def _publish(self, result: ProbeResult) -> bool:
        current = self._results.get(result.service)
        if current is not None and current.cycle > result.cycle:
            logger.debug(
                "Dropping stale probe result for %s (cycle %d < %d)",
                result.service,
                result.cycle,
                current.cycle,
            )
            return False
        self._results[result.service] = result
        if not result.healthy:
            logger.debug(
                "%s: ping %s (%s), db %s (%s)",
                result.service,
                result.ping_status,
                result.ping_error,
                result.db_status,
                result.db_error,
            )
        if self._emitter is not None:
            await self._emitter.emit(
                MonitorEvent(
                    event_type=PROBE_UPDATED,
                    source=result.service,
                    data={"ping_status": result.ping_status, "db_status": result.db_status, "cycle": result.cycle},
                )
            )
        return True
