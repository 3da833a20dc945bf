"""Constant-memory heartbeat interval accumulator for one monitored peer.

Heartbeat intervals are never stored.  The window keeps only the sample
count, the interval sum and the sum of squared deviations, so both memory
and per-heartbeat cost stay constant no matter how long the peer is
monitored.  Once ``max_sample_size`` is reached the statistics are decayed by
``(n - 1) / n`` before each new sample, approximating the eviction of the
oldest interval from a bounded window.
"""

from __future__ import annotations

import logging
import time

from accrual.config import (
    AccrualConfig,
    BisectionConfig,
    DetectorConfig,
    WindowConfig,
)
from accrual.distribution import NormalDistribution
from accrual.errors import HeartbeatOrderError


__all__ = ["PingWindow"]


class PingWindow:
    """Running heartbeat interval statistics (phi accrual, Hayashibara et al.).

    Not thread-safe: confine each window to a single task or guard it
    externally.

    Parameters
    ----------
    config : WindowConfig | None
        Cold-start prior and sample cap.
    now : float | None
        Construction instant on the ``time.monotonic()`` clock (seconds).
        Defaults to the current time.
    bisection : BisectionConfig | None
        Passed on to every distribution snapshot.
    detector : DetectorConfig | None
        Supplies the default threshold for ``is_available``.

    Examples
    --------
    >>> window = PingWindow(now=0.0)
    >>> window.snapshot_distribution().mean()
    5000
    >>> window.record_heartbeat(0.010)
    10.0
    >>> window.sample_count
    2
    """

    def __init__(
        self,
        config: WindowConfig | None = None,
        *,
        now: float | None = None,
        bisection: BisectionConfig | None = None,
        detector: DetectorConfig | None = None,
    ) -> None:
        self._config = config or WindowConfig()
        self._bisection = bisection or BisectionConfig()
        self._detector = detector or DetectorConfig()
        self._logger = logging.getLogger("accrual.window")

        prior = self._config
        self._sample_count = prior.prior_samples
        self._interval_sum = prior.prior_interval_ms * prior.prior_samples
        self._squared_deviation_sum = prior.prior_samples * prior.prior_std_dev_ms**2
        self._last_arrival = time.monotonic() if now is None else now
        self._decaying = False

    @classmethod
    def from_config(
        cls, config: AccrualConfig, *, now: float | None = None
    ) -> PingWindow:
        """Create a window from a loaded ``AccrualConfig``.

        Examples
        --------
        >>> window = PingWindow.from_config(load_config(Path("accrual.toml")))
        """
        return cls(
            config.window,
            now=now,
            bisection=config.bisection,
            detector=config.detector,
        )

    @property
    def sample_count(self) -> int:
        return self._sample_count

    @property
    def last_arrival(self) -> float:
        return self._last_arrival

    @property
    def interval_sum(self) -> float:
        return self._interval_sum

    @property
    def squared_deviation_sum(self) -> float:
        return self._squared_deviation_sum

    def record_heartbeat(self, timestamp: float | None = None) -> float:
        """Fold the interval since the previous heartbeat into the statistics.

        Parameters
        ----------
        timestamp : float | None
            Arrival instant (seconds, monotonic clock).  Defaults to now.

        Returns
        -------
        float
            The interval that was recorded, in milliseconds.

        Raises
        ------
        HeartbeatOrderError
            If *timestamp* is not strictly after ``last_arrival``.  The window
            is unchanged.
        """
        if timestamp is None:
            timestamp = time.monotonic()
        if not timestamp > self._last_arrival:
            raise HeartbeatOrderError(timestamp, self._last_arrival)

        n = self._sample_count
        if n >= self._config.max_sample_size:
            if not self._decaying:
                self._decaying = True
                self._logger.debug(
                    "Ping window reached %d samples, decaying statistics", n
                )
            # Each sample is assumed to contribute equally to both sums.
            self._interval_sum = self._interval_sum / n * (n - 1)
            self._squared_deviation_sum = self._squared_deviation_sum / n * (n - 1)
            self._sample_count = n - 1

        interval = (timestamp - self._last_arrival) * 1000.0
        self._last_arrival = timestamp
        self._interval_sum += interval
        self._sample_count += 1
        mean = self._interval_sum / self._sample_count
        self._squared_deviation_sum += (interval - mean) ** 2
        return interval

    def time_since_last_heartbeat(self, now: float | None = None) -> float:
        """Milliseconds elapsed between the last heartbeat and *now*.

        Clamped to ``0.0`` if *now* precedes the last heartbeat, so the
        window's own ``phi`` never sees a negative elapsed time (which
        ``NormalDistribution.phi`` rejects).
        """
        if now is None:
            now = time.monotonic()
        return max(0.0, (now - self._last_arrival) * 1000.0)

    def snapshot_distribution(self) -> NormalDistribution:
        """Fit a ``NormalDistribution`` to the current statistics."""
        return NormalDistribution.from_statistics(
            self._sample_count,
            self._interval_sum,
            self._squared_deviation_sum,
            bisection=self._bisection,
        )

    def phi(self, now: float | None = None) -> float:
        """Current suspicion level for this peer."""
        elapsed = self.time_since_last_heartbeat(now)
        return self.snapshot_distribution().phi(elapsed)

    def is_available(
        self, threshold: float | None = None, now: float | None = None
    ) -> bool:
        """Check if the peer is considered available (phi below threshold).

        Parameters
        ----------
        threshold : float | None
            Suspicion level to compare against.  Defaults to the configured
            ``DetectorConfig.threshold``.
        now : float | None
            Reference instant; defaults to now.

        Returns
        -------
        bool
            ``True`` if ``phi(now) < threshold``.
        """
        if threshold is None:
            threshold = self._detector.threshold
        return self.phi(now) < threshold

    def __repr__(self) -> str:
        return (
            f"PingWindow(sample_count={self._sample_count}, "
            f"last_arrival={self._last_arrival!r})"
        )
