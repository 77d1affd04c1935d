"""Same-origin forwarding of service-prefixed requests to the upstream origin."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from clusterlens.routing.table import RouteTable, ServiceRoute

logger = logging.getLogger(__name__)

# Connection-scoped headers that must not cross a proxy hop.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

_REWRITTEN_HEADERS = frozenset({"host", "origin", "referer"})


def rewrite_headers(headers: Iterable[tuple[str, str]], route: ServiceRoute) -> list[tuple[str, str]]:
    """Copy request headers, pointing Host/Origin/Referer at the upstream."""
    out = [
        (name, value)
        for name, value in headers
        if name.lower() not in _REWRITTEN_HEADERS
        and name.lower() not in HOP_BY_HOP_HEADERS
        and name.lower() != "content-length"
    ]
    origin = route.upstream_origin.rstrip("/")
    out.append(("host", route.host))
    out.append(("origin", origin))
    out.append(("referer", origin + "/"))
    return out


def _response_headers(headers: httpx.Headers) -> list[tuple[bytes, bytes]]:
    # Raw pairs keep repeated headers such as Set-Cookie intact.
    return [
        (name, value)
        for name, value in headers.raw
        if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]


def _raw_target(scope: Scope) -> tuple[str, str]:
    """Path and query exactly as the client sent them, percent-escapes intact."""
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope["path"]
    return path, scope.get("query_string", b"").decode("latin-1")


class ProxyRouter:
    """Forwards matched requests upstream over a shared httpx client."""

    def __init__(
        self,
        table: RouteTable,
        *,
        timeout: float = 30.0,
        follow_redirects: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.table = table
        self._timeout = timeout
        self._follow_redirects = follow_redirects
        self._client = client
        self._owns_client = client is None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
            )
            self._owns_client = True

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Proxy router is not started")
        return self._client

    async def forward(self, request: Request, route: ServiceRoute) -> Response:
        """Issue the upstream request and stream its response back as-is."""
        client = self._require_client()
        path, query = _raw_target(request.scope)
        try:
            body = await request.body()
            upstream_request = client.build_request(
                request.method,
                route.target_url(path, query),
                headers=rewrite_headers(request.headers.items(), route),
                content=body,
            )
            upstream = await client.send(
                upstream_request,
                stream=True,
                follow_redirects=self._follow_redirects,
            )
        except (httpx.HTTPError, httpx.InvalidURL, ClientDisconnect) as exc:
            reason = str(exc) or type(exc).__name__
            logger.warning("Proxy to %s failed: %s", route.prefix, reason)
            return PlainTextResponse(f"Proxy Error: {reason}", status_code=500)

        response = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = _response_headers(upstream.headers)
        return response


class ProxyMiddleware:
    """ASGI middleware: forward known service prefixes, pass everything else on.

    Unmatched requests reach the wrapped app with their receive channel
    untouched, so the body is never read here.
    """

    def __init__(self, app: ASGIApp, proxy: ProxyRouter) -> None:
        self.app = app
        self.proxy = proxy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        route = self.proxy.table.match(scope["path"])
        if route is None:
            await self.app(scope, receive, send)
            return
        request = Request(scope, receive)
        response = await self.proxy.forward(request, route)
        await response(scope, receive, send)
