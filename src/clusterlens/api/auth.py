"""API key authentication dependency for FastAPI."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request


async def require_api_key(request: Request) -> None:
    """FastAPI dependency that checks the X-API-Key header on refresh endpoints.

    Auth is disabled when no key is configured.
    """
    config = request.app.state.config
    if not config.auth.api_key:
        return
    key = request.headers.get("X-API-Key", "")
    if not hmac.compare_digest(key.encode(), config.auth.api_key.encode()):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
