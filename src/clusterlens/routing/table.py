"""Static prefix -> upstream lookup for proxied service paths."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from clusterlens.config.models import RouterConfig


@dataclass(frozen=True)
class ServiceRoute:
    """One forwardable path prefix."""

    prefix: str
    upstream_origin: str

    @property
    def host(self) -> str:
        return urlsplit(self.upstream_origin).netloc

    def target_url(self, path: str, query: str = "") -> str:
        url = self.upstream_origin.rstrip("/") + path
        if query:
            url = f"{url}?{query}"
        return url


class RouteTable:
    """Ordered, immutable set of service routes. First match wins."""

    def __init__(self, routes: list[ServiceRoute]) -> None:
        self._routes = tuple(routes)

    @classmethod
    def from_config(cls, config: RouterConfig) -> RouteTable:
        return cls([ServiceRoute(prefix=p, upstream_origin=config.upstream_origin) for p in config.prefixes])

    @property
    def routes(self) -> tuple[ServiceRoute, ...]:
        return self._routes

    def match(self, path: str) -> ServiceRoute | None:
        for route in self._routes:
            if path.startswith(route.prefix):
                return route
        return None
