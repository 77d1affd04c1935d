"""Failure taxonomy for snapshot polls."""

from __future__ import annotations


class SnapshotError(Exception):
    """Base class for a failed snapshot poll."""

    kind = "unknown"


class SnapshotTransportError(SnapshotError):
    """Timeout, DNS failure, refused connection or aborted request."""

    kind = "transport"


class MarkupResponseError(SnapshotError):
    """The aggregator answered with HTML where JSON was expected.

    Usually a gateway error page or the app shell's fallback route, i.e. the
    request never reached the aggregator.
    """

    kind = "markup"

    def __init__(self, status_code: int, excerpt: str = "") -> None:
        self.status_code = status_code
        self.excerpt = excerpt
        super().__init__(
            f"Received HTML instead of JSON (HTTP {status_code}); "
            "the aggregator is likely unreachable behind a gateway or proxy fallback."
        )


class SnapshotHTTPError(SnapshotError):
    """Non-2xx status with a non-markup body."""

    kind = "http_status"

    def __init__(self, status_code: int, reason: str = "") -> None:
        self.status_code = status_code
        super().__init__(f"Failed to fetch health data: {status_code} {reason}".rstrip())


class SnapshotParseError(SnapshotError):
    """Malformed JSON or a document that does not match the snapshot shape."""

    kind = "parse"
