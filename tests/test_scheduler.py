"""Tests for the fixed-period probe scheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from clusterlens.config.models import LensConfig
from clusterlens.events.emitter import PROBE_UPDATED, EventEmitter
from clusterlens.events.log import EventLog
from clusterlens.probes.models import DOWN, UP, ProbeResult
from clusterlens.probes.scheduler import ProbeScheduler

SERVICES = {
    "auth-service": "https://backend.example.test/auth-service",
    "media-service": "https://backend.example.test/media-service",
}


def _up(service: str, cycle: int, ping: int = 45, db: int = 15) -> ProbeResult:
    return ProbeResult(
        service=service,
        ping_status=UP,
        ping_latency_ms=ping,
        db_status=UP,
        db_latency_ms=db,
        cycle=cycle,
    )


def _down(service: str, cycle: int) -> ProbeResult:
    return ProbeResult(service=service, ping_status=DOWN, db_status=DOWN, cycle=cycle)


class TestFromConfig:
    def test_services_and_timing(self, sample_config: LensConfig):
        scheduler = ProbeScheduler.from_config(sample_config)
        assert scheduler.service_names == ["auth-service", "media-service"]
        assert scheduler._services["auth-service"] == "https://backend.example.test/auth-service"
        assert scheduler._interval == 10
        assert scheduler._timeout == 5


class TestRefreshAll:
    @pytest.mark.asyncio
    async def test_auth_service_scenario(self, mock_client):
        def handler(req: httpx.Request) -> httpx.Response:
            if req.url.path.endswith("/health/ping"):
                return httpx.Response(200)
            return httpx.Response(200, json={"status": "UP", "total_latency_ms": 15})

        async with mock_client(handler) as client:
            scheduler = ProbeScheduler({"auth-service": SERVICES["auth-service"]}, client=client)
            with patch("clusterlens.probes.health.time") as mock_time:
                mock_time.monotonic.side_effect = [100.0, 100.045]
                results = await scheduler.refresh_all()

        auth = results["auth-service"]
        assert auth.ping_status == UP
        assert auth.ping_latency_ms == 45
        assert auth.db_status == UP
        assert auth.db_latency_ms == 15

    @pytest.mark.asyncio
    async def test_every_service_published(self):
        async def fake_probe(client, name, base_url, timeout, cycle):
            return _up(name, cycle)

        scheduler = ProbeScheduler(SERVICES, client=AsyncMock())
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=fake_probe):
            results = await scheduler.refresh_all()
        assert set(results) == set(SERVICES)
        assert all(r.cycle == 1 for r in results.values())

    @pytest.mark.asyncio
    async def test_down_after_up_drops_old_latency(self):
        scheduler = ProbeScheduler(SERVICES, client=AsyncMock())

        async def first(client, name, base_url, timeout, cycle):
            return _up(name, cycle)

        async def second(client, name, base_url, timeout, cycle):
            return ProbeResult(service=name, ping_status=DOWN, ping_latency_ms=-1, db_status=UP, db_latency_ms=3, cycle=cycle)

        with patch("clusterlens.probes.scheduler.probe_service", side_effect=first):
            await scheduler.refresh_all()
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=second):
            results = await scheduler.refresh_all()
        assert results["auth-service"].ping_status == DOWN
        assert results["auth-service"].ping_latency_ms == -1

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_down(self):
        async def flaky(client, name, base_url, timeout, cycle):
            if name == "media-service":
                raise RuntimeError("kaboom")
            return _up(name, cycle)

        scheduler = ProbeScheduler(SERVICES, client=AsyncMock())
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=flaky):
            results = await scheduler.refresh_all()
        assert results["auth-service"].ping_status == UP
        assert results["media-service"].ping_status == DOWN
        assert results["media-service"].ping_error == "kaboom"

    @pytest.mark.asyncio
    async def test_uses_temporary_client_when_not_started(self):
        async def fake_probe(client, name, base_url, timeout, cycle):
            assert isinstance(client, httpx.AsyncClient)
            return _up(name, cycle)

        scheduler = ProbeScheduler(SERVICES)
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=fake_probe):
            results = await scheduler.refresh_all()
        assert len(results) == 2


class TestOverlap:
    @pytest.mark.asyncio
    async def test_stale_cycle_discarded(self):
        scheduler = ProbeScheduler(SERVICES)
        assert await scheduler._publish(_down("auth-service", cycle=2))
        assert not await scheduler._publish(_up("auth-service", cycle=1))
        assert scheduler.get("auth-service").cycle == 2
        assert scheduler.get("auth-service").ping_status == DOWN

    @pytest.mark.asyncio
    async def test_slow_earlier_cycle_does_not_overwrite(self):
        async def racing(client, name, base_url, timeout, cycle):
            if cycle == 1:
                await asyncio.sleep(0.2)
                return _up(name, cycle)
            return _down(name, cycle)

        scheduler = ProbeScheduler(SERVICES, client=AsyncMock())
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=racing):
            slow = scheduler.trigger_refresh()
            fast = scheduler.trigger_refresh()
            await asyncio.gather(slow, fast)
        for result in scheduler.results.values():
            assert result.cycle == 2
            assert result.ping_status == DOWN


class TestPublishedMapping:
    @pytest.mark.asyncio
    async def test_results_are_read_only(self):
        scheduler = ProbeScheduler(SERVICES)
        await scheduler._publish(_up("auth-service", 1))
        results = scheduler.results
        with pytest.raises(TypeError):
            results["auth-service"] = _down("auth-service", 9)  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_emits_probe_updated(self):
        emitter = EventEmitter()
        log = EventLog()
        emitter.add_listener(log)
        scheduler = ProbeScheduler(SERVICES, emitter=emitter)
        await scheduler._publish(_up("auth-service", 1))
        events = await log.get_recent()
        assert len(events) == 1
        assert events[0].event_type == PROBE_UPDATED
        assert events[0].source == "auth-service"
        assert events[0].data["ping_status"] == UP


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_periodic_cycles_then_stop(self):
        calls: list[int] = []

        async def fake_probe(client, name, base_url, timeout, cycle):
            calls.append(cycle)
            return _up(name, cycle)

        scheduler = ProbeScheduler(SERVICES, interval=0.05, client=AsyncMock())
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=fake_probe):
            await scheduler.start()
            assert scheduler.running
            await asyncio.sleep(0.18)
            await scheduler.stop()
        assert not scheduler.running
        assert len(set(calls)) >= 3
        assert scheduler._inflight == set()

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight(self):
        async def hang(client, name, base_url, timeout, cycle):
            await asyncio.sleep(10)
            return _up(name, cycle)

        scheduler = ProbeScheduler(SERVICES, interval=60, client=AsyncMock())
        with patch("clusterlens.probes.scheduler.probe_service", side_effect=hang):
            await scheduler.start()
            await asyncio.sleep(0.05)
            await asyncio.wait_for(scheduler.stop(), timeout=1)
        assert scheduler.results == {}
        assert scheduler._inflight == set()

    @pytest.mark.asyncio
    async def test_owned_client_closed_on_stop(self):
        scheduler = ProbeScheduler(SERVICES, interval=60)
        with patch("clusterlens.probes.scheduler.probe_service", AsyncMock(side_effect=lambda *a, **k: _up("x", 0))):
            await scheduler.start()
            client = scheduler._client
            await scheduler.stop()
        assert client is not None and client.is_closed
        assert scheduler._client is None

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        scheduler = ProbeScheduler(SERVICES)
        await scheduler.stop()
        await scheduler.stop()
        assert not scheduler.running
