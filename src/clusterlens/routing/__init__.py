"""Path-prefix request routing to the upstream origin."""

from clusterlens.routing.proxy import ProxyMiddleware, ProxyRouter, rewrite_headers
from clusterlens.routing.table import RouteTable, ServiceRoute

__all__ = [
    "ProxyMiddleware",
    "ProxyRouter",
    "RouteTable",
    "ServiceRoute",
    "rewrite_headers",
]
