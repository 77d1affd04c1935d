"""Per-service probe result endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from clusterlens.api.auth import require_api_key
from clusterlens.probes.models import ProbeResult
from clusterlens.probes.scheduler import ProbeScheduler

router = APIRouter(tags=["probes"])


def _get_scheduler(request: Request) -> ProbeScheduler:
    return request.app.state.scheduler


def _pending(name: str) -> Dict[str, Any]:
    return ProbeResult(service=name).to_dict()


@router.get("/probes")
async def list_probes(request: Request) -> Dict[str, Dict[str, Any]]:
    scheduler = _get_scheduler(request)
    results = scheduler.results
    out = {name: _pending(name) for name in scheduler.service_names}
    out.update({name: result.to_dict() for name, result in results.items()})
    return out


@router.get("/probes/{name}")
async def get_probe(request: Request, name: str) -> Dict[str, Any]:
    scheduler = _get_scheduler(request)
    if name not in scheduler.service_names:
        raise HTTPException(status_code=404, detail=f"Unknown service: {name}")
    result = scheduler.get(name)
    return result.to_dict() if result else _pending(name)


@router.post("/probes/refresh", dependencies=[Depends(require_api_key)])
async def refresh_probes(request: Request) -> Dict[str, Dict[str, Any]]:
    results = await _get_scheduler(request).refresh_all()
    return {name: result.to_dict() for name, result in results.items()}
