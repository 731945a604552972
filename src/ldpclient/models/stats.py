"""Counters collected by the rate-limited client."""

from dataclasses import dataclass

from ..http.protocols import RequestResult


@dataclass
class DispatchStats:
    """
    Cumulative statistics for requests sent through one client.

    ``http_errors`` counts responses with an error status and
    ``transport_errors`` counts requests that got no response at all.
    """

    requests_sent: int = 0
    succeeded: int = 0
    http_errors: int = 0
    transport_errors: int = 0
    bytes_received: int = 0

    def record(self, result: RequestResult) -> None:
        """Update counters from one result."""
        self.requests_sent += 1
        if result.response is not None:
            self.bytes_received += len(result.response.content)
        if result.ok:
            self.succeeded += 1
        elif result.is_http_error:
            self.http_errors += 1
        else:
            self.transport_errors += 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate as a percentage."""
        if self.requests_sent == 0:
            return 0.0
        return (self.succeeded / self.requests_sent) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "requests_sent": self.requests_sent,
            "succeeded": self.succeeded,
            "http_errors": self.http_errors,
            "transport_errors": self.transport_errors,
            "bytes_received": self.bytes_received,
            "success_rate": round(self.success_rate, 1),
        }
