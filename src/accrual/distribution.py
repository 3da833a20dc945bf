"""Normal distribution snapshots and the phi suspicion transform.

A ``NormalDistribution`` is fitted from a ping window at one instant and then
answers two questions: how suspicious a given silence is (``phi``), and how
long a silence must last to reach a given suspicion level
(``deadline_for_phi``).

The right tail of the Gaussian is approximated with the logistic closed form
``e / (1 + e)`` where ``e = exp(-y * (1.5976 + 0.070566 * y**2))``, which is
cheap and accurate to roughly 1e-4 over the useful range.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from accrual.config import BisectionConfig
from accrual.errors import ProbabilityRangeError


__all__ = [
    "MIN_STD_DEV_MS",
    "NormalDistribution",
    "phi_from_probability",
    "probability_from_phi",
]

logger = logging.getLogger("accrual.distribution")

# Sub-millisecond spread is not meaningful for heartbeat latency.
MIN_STD_DEV_MS = 1.0

# math.exp overflows just above 709.78.
_MAX_EXPONENT = 709.0


def phi_from_probability(probability: float) -> float:
    """Convert a tail probability into a suspicion level.

    Parameters
    ----------
    probability : float
        Probability in ``[0, 1]``.

    Returns
    -------
    float
        ``-log10(probability)``; ``inf`` for a probability of zero.

    Raises
    ------
    ProbabilityRangeError
        If *probability* is outside ``[0, 1]``.

    Examples
    --------
    >>> phi_from_probability(0.001)
    3.0
    """
    if not 0.0 <= probability <= 1.0:
        raise ProbabilityRangeError(probability, "[0, 1]")
    if probability == 0.0:
        return math.inf
    return -math.log10(probability)


def probability_from_phi(phi: float) -> float:
    """Inverse of ``phi_from_probability``: ``10 ** -phi``.

    Raises
    ------
    ProbabilityRangeError
        If *phi* is negative (the probability would exceed 1).
    """
    if not phi >= 0.0:
        raise ProbabilityRangeError(phi, "[0, inf]")
    return 10.0 ** -phi


@dataclass(frozen=True)
class NormalDistribution:
    """Heartbeat interval distribution fitted at one instant.

    Immutable and detached from the window it came from; later heartbeats do
    not affect an existing snapshot.

    Parameters
    ----------
    mu : float
        Mean interval (ms).
    sigma : float
        Standard deviation of the interval (ms).
    bisection : BisectionConfig
        Tuning for ``inverse_tail_probability``.

    Examples
    --------
    >>> dist = NormalDistribution(mu=1000.0, sigma=100.0)
    >>> dist.phi(1000.0) < 1.0
    True
    >>> round(dist.phi(dist.deadline_for_phi(3.0)), 3)
    3.0
    """

    mu: float
    sigma: float
    bisection: BisectionConfig = field(default_factory=BisectionConfig)

    @classmethod
    def from_statistics(
        cls,
        sample_count: int,
        interval_sum: float,
        squared_deviation_sum: float,
        bisection: BisectionConfig | None = None,
    ) -> NormalDistribution:
        return cls(
            mu=interval_sum / sample_count,
            sigma=math.sqrt(squared_deviation_sum / sample_count),
            bisection=bisection or BisectionConfig(),
        )

    def mean(self) -> int:
        """Mean interval in whole milliseconds."""
        return int(self.mu)

    def std_dev(self) -> int:
        """Standard deviation in whole milliseconds."""
        return int(self.sigma)

    def tail_probability(self, x: float) -> float:
        """Probability that an interval is at least *x* ms long.

        Strictly decreasing in *x*, with ``tail_probability(mu) == 0.5``.
        """
        sigma = max(self.sigma, MIN_STD_DEV_MS)
        y = (x - self.mu) / sigma
        exponent = -y * (1.5976 + 0.070566 * y * y)
        if x > self.mu:
            e = math.exp(exponent)
            return e / (1.0 + e)
        if exponent > _MAX_EXPONENT:
            return 1.0
        e = math.exp(exponent)
        return 1.0 - 1.0 / (1.0 + e)

    def phi(self, elapsed: float) -> float:
        """Suspicion level for a silence of *elapsed* ms.

        ``phi == k`` means the silence is as unlikely as a 1 in ``10**k``
        event under this distribution.

        Parameters
        ----------
        elapsed : float
            Milliseconds since the last heartbeat.

        Returns
        -------
        float
            Non-negative phi; ``inf`` once the tail probability underflows.

        Raises
        ------
        ValueError
            If *elapsed* is negative.
        """
        if elapsed < 0:
            msg = f"elapsed must be >= 0, got {elapsed!r}"
            raise ValueError(msg)
        return phi_from_probability(self.tail_probability(elapsed))

    def is_suspect(self, elapsed: float, threshold: float) -> bool:
        return self.phi(elapsed) >= threshold

    def inverse_tail_probability(self, target: float) -> float:
        """Find *x* (ms) with ``tail_probability(x) == target`` by bisection.

        The bracket starts at ``[-bound, bound]`` and is halved until the tail
        probability at the midpoint is within a relative error of ``epsilon``
        of *target*, so tiny targets (high phi) are resolved as precisely as
        moderate ones.  If floating point cannot reach that precision the
        search stops after ``max_iterations`` halvings, or as soon as the
        bracket cannot shrink further, and returns the last midpoint as a
        best-effort answer.

        Parameters
        ----------
        target : float
            Right-tail probability in ``(0, 1]``.

        Returns
        -------
        float
            Interval length in milliseconds.

        Raises
        ------
        ProbabilityRangeError
            If *target* is outside ``(0, 1]``.
        """
        if not 0.0 < target <= 1.0:
            raise ProbabilityRangeError(target, "(0, 1]")

        epsilon = self.bisection.epsilon
        low, high = -self.bisection.bound, self.bisection.bound
        mid = 0.0
        for _ in range(self.bisection.max_iterations):
            mid = (low + high) / 2.0
            p = self.tail_probability(mid)
            if abs(p - target) <= epsilon * target:
                return mid
            if mid == low or mid == high:
                break
            if p > target:
                low = mid
            else:
                high = mid

        logger.debug(
            "Bisection for tail probability %r did not converge; returning %r",
            target,
            mid,
        )
        return mid

    def deadline_for_phi(self, phi: float) -> float:
        """Silence (ms) after which ``phi`` reaches the given level.

        Examples
        --------
        >>> dist = NormalDistribution(mu=1000.0, sigma=100.0)
        >>> 1000.0 < dist.deadline_for_phi(8.0) < 2000.0
        True
        """
        return self.inverse_tail_probability(probability_from_phi(phi))
