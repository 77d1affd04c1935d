"""Client-side liveness and database probing of each service."""

from clusterlens.probes.health import probe_db, probe_ping, probe_service
from clusterlens.probes.models import DOWN, PENDING, UNMEASURED, UP, ProbeOutcome, ProbeResult
from clusterlens.probes.scheduler import ProbeScheduler

__all__ = [
    "DOWN",
    "PENDING",
    "UNMEASURED",
    "UP",
    "ProbeOutcome",
    "ProbeResult",
    "ProbeScheduler",
    "probe_db",
    "probe_ping",
    "probe_service",
]
