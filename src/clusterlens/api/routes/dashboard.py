"""Dashboard view, pod list, raw snapshot, and activity endpoints."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Request

from clusterlens.api.auth import require_api_key
from clusterlens.view.builder import filter_pods

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def dashboard(request: Request, search: str = "", problems_only: bool = False) -> dict[str, Any]:
    view = request.app.state.live.current
    return view.with_pod_filter(search, problems_only).to_dict()


@router.get("/pods")
async def list_pods(request: Request, search: str = "", problems_only: bool = False) -> list[dict[str, Any]]:
    view = request.app.state.live.current
    return [pod.model_dump() for pod in filter_pods(view.pods, search, problems_only)]


@router.get("/snapshot")
async def snapshot(request: Request) -> dict[str, Any]:
    return request.app.state.poller.state.to_dict()


@router.post("/snapshot/refresh", dependencies=[Depends(require_api_key)])
async def refresh_snapshot(request: Request) -> dict[str, Any]:
    state = await request.app.state.poller.refresh()
    return state.to_dict()


@router.post("/refresh", dependencies=[Depends(require_api_key)])
async def refresh_all(request: Request) -> dict[str, Any]:
    """Run a probe cycle and a snapshot poll now, then return the rebuilt view."""
    await asyncio.gather(
        request.app.state.scheduler.refresh_all(),
        request.app.state.poller.refresh(),
    )
    return request.app.state.live.current.to_dict()


@router.get("/events")
async def recent_events(
    request: Request,
    limit: int = 20,
    event_type: str | None = None,
    source: str | None = None,
) -> list[dict[str, Any]]:
    event_log = request.app.state.event_log
    events = await event_log.get_recent(limit=limit, event_type=event_type, source=source)
    return [e.to_dict() for e in events]
