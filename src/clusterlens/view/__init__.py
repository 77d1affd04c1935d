"""View-model derivation for the dashboard."""

from clusterlens.view.builder import (
    DashboardView,
    ServiceView,
    average_latency,
    build_view,
    combine_services,
    filter_pods,
    flatten_pods,
)
from clusterlens.view.live import LiveView
from clusterlens.view.status import CRITICAL, HEALTHY, UNKNOWN, WARNING, classify_status

__all__ = [
    "CRITICAL",
    "HEALTHY",
    "UNKNOWN",
    "WARNING",
    "DashboardView",
    "LiveView",
    "ServiceView",
    "average_latency",
    "build_view",
    "classify_status",
    "combine_services",
    "filter_pods",
    "flatten_pods",
]
