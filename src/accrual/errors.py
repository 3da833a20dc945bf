"""Exceptions raised when a caller breaks the estimator's input contract."""

from __future__ import annotations


__all__ = [
    "AccrualError",
    "HeartbeatOrderError",
    "ProbabilityRangeError",
]


class AccrualError(Exception):
    """Base class for every error raised by ``accrual``."""


class HeartbeatOrderError(AccrualError, ValueError):
    """A heartbeat arrived at or before the last accepted one.

    The window is left untouched when this is raised, so a supervisor can
    log and drop the offending heartbeat and keep monitoring.

    Parameters
    ----------
    timestamp : float
        Rejected arrival instant (seconds, monotonic clock).
    last_arrival : float
        Instant of the last accepted heartbeat.
    """

    def __init__(self, timestamp: float, last_arrival: float) -> None:
        self.timestamp = timestamp
        self.last_arrival = last_arrival
        super().__init__(
            f"Heartbeat at {timestamp!r} is not after last arrival {last_arrival!r}"
        )


class ProbabilityRangeError(AccrualError, ValueError):
    """A probability (or suspicion level) fell outside its valid range."""

    def __init__(self, value: float, expected: str) -> None:
        self.value = value
        super().__init__(f"{value!r} is outside the valid range {expected}")
