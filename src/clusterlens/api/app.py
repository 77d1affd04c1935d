"""FastAPI application factory for ClusterLens."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from clusterlens.api.routes import dashboard, probes
from clusterlens.config.loader import load_config_or_default
from clusterlens.config.models import LensConfig
from clusterlens.events.emitter import EventEmitter
from clusterlens.events.log import EventLog
from clusterlens.probes.scheduler import ProbeScheduler
from clusterlens.routing.proxy import ProxyMiddleware, ProxyRouter
from clusterlens.routing.table import RouteTable
from clusterlens.snapshot.poller import SnapshotPoller
from clusterlens.view.live import LiveView

logger = logging.getLogger(__name__)


def create_app(config: LensConfig | None = None) -> FastAPI:
    config = config or load_config_or_default()

    # Event system: the log feeds /api/events, the live view recomputes on every event
    emitter = EventEmitter()
    event_log = EventLog(config.event_log_size)
    emitter.add_listener(event_log)

    scheduler = ProbeScheduler.from_config(config, emitter=emitter)
    poller = SnapshotPoller.from_config(config, emitter=emitter)
    live = LiveView(scheduler, poller)
    emitter.add_listener(live)

    proxy = ProxyRouter(
        RouteTable.from_config(config.router),
        timeout=config.router.timeout,
        follow_redirects=config.router.follow_redirects,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(
            level=getattr(logging, config.log_level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        await proxy.start()
        if config.polling.enabled:
            await scheduler.start()
            await poller.start()
        logger.info("%s started, proxying %d prefixes to %s",
                    config.lens.name, len(config.router.prefixes), config.router.upstream_origin)
        try:
            yield
        finally:
            await poller.stop()
            await scheduler.stop()
            await proxy.stop()
            logger.info("%s stopped", config.lens.name)

    app = FastAPI(
        title=config.lens.name,
        version=config.lens.version,
        description="Live health picture of a microservice cluster",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps everything: proxied responses go back untouched.
    app.add_middleware(ProxyMiddleware, proxy=proxy)

    app.state.config = config
    app.state.emitter = emitter
    app.state.event_log = event_log
    app.state.scheduler = scheduler
    app.state.poller = poller
    app.state.live = live
    app.state.proxy = proxy

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(dashboard.router, prefix="/api")
    app.include_router(probes.router, prefix="/api")

    # App shell last, so it only sees what neither the proxy nor the API claimed
    if config.static_dir:
        static_dir = Path(config.static_dir)
        if static_dir.is_dir():
            app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="shell")
        else:
            logger.warning("static_dir %s does not exist, app shell not served", static_dir)

    return app


app = create_app()
