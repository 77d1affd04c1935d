"""Status vocabulary shared by every status render point."""

from __future__ import annotations

HEALTHY = "healthy"
WARNING = "warning"
CRITICAL = "critical"
UNKNOWN = "unknown"

_BUCKETS: dict[str, frozenset[str]] = {
    HEALTHY: frozenset({"UP", "HEALTHY", "OK", "ACTIVE", "RUNNING"}),
    CRITICAL: frozenset({"DOWN", "FAILED", "ERROR", "CRITICAL", "CRASHLOOPBACKOFF"}),
    WARNING: frozenset({"WARNING", "DEGRADED", "PENDING"}),
}

# Higher wins when several statuses describe one thing.
SEVERITY: dict[str, int] = {HEALTHY: 0, UNKNOWN: 1, WARNING: 2, CRITICAL: 3}


def classify_status(status: str | None) -> str:
    """Map any status string to healthy / critical / warning / unknown, case-insensitively."""
    if not status:
        return UNKNOWN
    normalized = status.strip().upper()
    for bucket, vocabulary in _BUCKETS.items():
        if normalized in vocabulary:
            return bucket
    return UNKNOWN


def worst_bucket(buckets: list[str]) -> str:
    if not buckets:
        return UNKNOWN
    return max(buckets, key=lambda b: SEVERITY[b])
