"""Statistics tracking for the file server.

This module keeps running totals for the server, including:
- Connections handled
- Responses sent per status code
- Bytes written to clients
- Connections that failed with an unexpected error
- Server uptime

The server itself is single-threaded, but the counters are read from other
threads (the CLI summary, tests driving a background server), so updates and
snapshots go through a lock.

Example:
    stats = ServerStats()
    stats.record_response(HTTPStatus.OK, 1024)
    print(stats.snapshot().responses)
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from http import HTTPStatus


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the server statistics."""

    connections: int
    failed_connections: int
    bytes_sent: int
    responses: dict[int, int] = field(default_factory=dict)
    uptime_seconds: float = 0.0


class ServerStats:
    """Thread-safe counters for the file server."""

    def __init__(self) -> None:
        """Initialize zeroed counters and record the start time."""
        self.connections = 0
        self.failed_connections = 0
        self.bytes_sent = 0
        self.responses: Counter[int] = Counter()
        self.start_time = datetime.now(tz=UTC)
        self._lock = threading.Lock()

    def connection_started(self) -> None:
        """Count a newly accepted connection."""
        with self._lock:
            self.connections += 1

    def connection_failed(self) -> None:
        """Count a connection that ended with an unexpected error."""
        with self._lock:
            self.failed_connections += 1

    def record_response(self, status: HTTPStatus | None, bytes_sent: int) -> None:
        """Record the status sent on a connection and the bytes written.

        Args:
            status: Status of the response, None when none was started
            bytes_sent: Bytes written to the client, headers included
        """
        with self._lock:
            if status is not None:
                self.responses[int(status)] += 1
            self.bytes_sent += bytes_sent

    def uptime(self) -> float:
        """Seconds since the statistics were created."""
        return (datetime.now(tz=UTC) - self.start_time).total_seconds()

    def snapshot(self) -> StatsSnapshot:
        """Return a consistent copy of all counters."""
        with self._lock:
            return StatsSnapshot(
                connections=self.connections,
                failed_connections=self.failed_connections,
                bytes_sent=self.bytes_sent,
                responses=dict(self.responses),
                uptime_seconds=self.uptime(),
            )
