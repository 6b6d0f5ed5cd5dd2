from __future__ import annotations

from typing import List, Optional


class FlightXPError(Exception):
    """Base class for errors raised by flightxp."""


class ProviderError(FlightXPError):
    """Transport-level or protocol failure talking to one provider."""

    def __init__(self, source: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status = status


class RetryableStatus(ProviderError):
    """HTTP 429 / 5xx; retried with backoff before giving up."""


class MalformedResponse(ProviderError):
    """Provider answered, but not in the shape its adapter understands."""


class ResolutionExhausted(FlightXPError):
    """Every adapter and the synthetic fallback failed for a flight."""

    def __init__(self, flight_number: str, flight_date: str, attempted: List[str]) -> None:
        super().__init__(
            f"no usable record for {flight_number} on {flight_date} "
            f"(tried: {', '.join(attempted) or 'nothing'})"
        )
        self.flight_number = flight_number
        self.flight_date = flight_date
        self.attempted = attempted


class StatsApplicationConflict(FlightXPError):
    """The stored UserStats moved on since the caller read it."""

    def __init__(self, user_id: str, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"stale stats for {user_id}: expected v{expected_version}, found v{actual_version}"
        )
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
