"""Data models for per-service liveness and database probes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Optional

UP = "UP"
DOWN = "DOWN"
PENDING = "PENDING"

UNMEASURED = -1


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single bounded-time probe against one endpoint."""

    status: str
    latency_ms: float = UNMEASURED
    error: Optional[str] = None

    @classmethod
    def up(cls, latency_ms: float) -> ProbeOutcome:
        return cls(status=UP, latency_ms=latency_ms)

    @classmethod
    def down(cls, error: str) -> ProbeOutcome:
        return cls(status=DOWN, error=error)


@dataclass(frozen=True)
class ProbeResult:
    """Latest liveness + DB check for one service.

    Latencies are only kept alongside an UP status. Anything else reports
    UNMEASURED, so a DOWN record can never carry a number from an earlier
    cycle.
    """

    service: str
    ping_status: str = PENDING
    ping_latency_ms: float = UNMEASURED
    db_status: str = PENDING
    db_latency_ms: float = UNMEASURED
    ping_error: Optional[str] = None
    db_error: Optional[str] = None
    cycle: int = 0
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.ping_status != UP:
            object.__setattr__(self, "ping_latency_ms", UNMEASURED)
        if self.db_status != UP:
            object.__setattr__(self, "db_latency_ms", UNMEASURED)

    @classmethod
    def from_outcomes(cls, service: str, ping: ProbeOutcome, db: ProbeOutcome, cycle: int) -> ProbeResult:
        return cls(
            service=service,
            ping_status=ping.status,
            ping_latency_ms=ping.latency_ms,
            db_status=db.status,
            db_latency_ms=db.latency_ms,
            ping_error=ping.error,
            db_error=db.error,
            cycle=cycle,
        )

    @classmethod
    def failed(cls, service: str, error: str, cycle: int) -> ProbeResult:
        return cls(
            service=service,
            ping_status=DOWN,
            db_status=DOWN,
            ping_error=error,
            db_error=error,
            cycle=cycle,
        )

    @property
    def healthy(self) -> bool:
        return self.ping_status == UP and self.db_status == UP

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "ping_status": self.ping_status,
            "ping_latency_ms": self.ping_latency_ms,
            "db_status": self.db_status,
            "db_latency_ms": self.db_latency_ms,
            "ping_error": self.ping_error,
            "db_error": self.db_error,
            "cycle": self.cycle,
            "checked_at": self.checked_at.isoformat(),
        }
