"""TOML-based configuration for the accrual estimator.

Provides ``load_config`` / ``discover_config`` for loading ``accrual.toml`` and
a small hierarchy of frozen dataclasses for the cold-start prior, the
bisection search, and the default suspicion threshold.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, TypeVar


__all__ = [
    "AccrualConfig",
    "BisectionConfig",
    "DetectorConfig",
    "WindowConfig",
    "discover_config",
    "load_config",
]


CONFIG_FILENAME = "accrual.toml"


@dataclass(frozen=True)
class WindowConfig:
    """Ping window sizing and cold-start prior.

    The prior is a handful of synthetic heartbeat intervals folded in at
    construction so that a distribution exists before the first real
    heartbeat.  Real heartbeats are usually far shorter and dilute it quickly.

    Parameters
    ----------
    prior_interval_ms : float
        Assumed heartbeat interval of each synthetic sample (ms).
    prior_deviation_fraction : float
        Standard deviation of the prior, as a fraction of
        ``prior_interval_ms``.
    prior_samples : int
        Number of synthetic samples seeded at construction (at least 1).
    max_sample_size : int
        Sample count at which the statistics start decaying instead of
        growing.

    Examples
    --------
    >>> WindowConfig(prior_interval_ms=10000.0, prior_samples=2)
    WindowConfig(prior_interval_ms=10000.0, prior_deviation_fraction=0.2, prior_samples=2, max_sample_size=10000)
    """

    prior_interval_ms: float = 5000.0
    prior_deviation_fraction: float = 0.2
    prior_samples: int = 1
    max_sample_size: int = 10_000

    def __post_init__(self) -> None:
        if self.prior_interval_ms <= 0:
            msg = "prior_interval_ms must be > 0"
            raise ValueError(msg)
        if self.prior_deviation_fraction < 0:
            msg = "prior_deviation_fraction must be >= 0"
            raise ValueError(msg)
        if self.prior_samples < 1:
            msg = "prior_samples must be >= 1"
            raise ValueError(msg)
        if self.max_sample_size <= self.prior_samples:
            msg = "max_sample_size must be greater than prior_samples"
            raise ValueError(msg)

    @property
    def prior_std_dev_ms(self) -> float:
        return self.prior_interval_ms * self.prior_deviation_fraction


@dataclass(frozen=True)
class BisectionConfig:
    """Tuning for the inverse tail-probability search.

    Parameters
    ----------
    epsilon : float
        Accepted relative error on the tail probability.
    bound : float
        Half-width of the initial bracket ``[-bound, bound]`` (ms).
    max_iterations : int
        Hard cap on halvings; the last midpoint is returned when reached.

    Examples
    --------
    >>> BisectionConfig(max_iterations=64)
    BisectionConfig(epsilon=1e-10, bound=1e+18, max_iterations=64)
    """

    epsilon: float = 1e-10
    bound: float = 1e18
    max_iterations: int = 200

    def __post_init__(self) -> None:
        if self.epsilon <= 0:
            msg = "epsilon must be > 0"
            raise ValueError(msg)
        if self.bound <= 0:
            msg = "bound must be > 0"
            raise ValueError(msg)
        if self.max_iterations < 1:
            msg = "max_iterations must be >= 1"
            raise ValueError(msg)


@dataclass(frozen=True)
class DetectorConfig:
    """Default suspicion threshold used by ``PingWindow.is_available``.

    Parameters
    ----------
    threshold : float
        Phi value at or above which the peer is suspected.

    Examples
    --------
    >>> DetectorConfig(threshold=12.0)
    DetectorConfig(threshold=12.0)
    """

    threshold: float = 8.0


@dataclass(frozen=True)
class AccrualConfig:
    """Top-level configuration container.

    Typically created via ``load_config()`` but can be constructed manually.

    Parameters
    ----------
    window : WindowConfig
        Ping window sizing and cold-start prior.
    bisection : BisectionConfig
        Inverse lookup tuning.
    detector : DetectorConfig
        Default suspicion threshold.

    Examples
    --------
    >>> config = AccrualConfig()
    >>> config.window.prior_interval_ms
    5000.0
    """

    window: WindowConfig = field(default_factory=WindowConfig)
    bisection: BisectionConfig = field(default_factory=BisectionConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)


def discover_config(
    start: Path | None = None, filename: str = CONFIG_FILENAME
) -> Path | None:
    """Return the nearest *filename* in *start* (default: cwd) or its parents."""
    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / filename
        if candidate.is_file():
            return candidate
    return None


T = TypeVar("T")


def _section(raw: dict[str, Any], name: str, cls: type[T]) -> T:
    table = raw.get(name, {})
    if not isinstance(table, dict):
        msg = f"[{name}] must be a table, got {type(table).__name__}"
        raise ValueError(msg)
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(table) - known)
    if unknown:
        msg = f"Unknown keys in [{name}]: {', '.join(unknown)}"
        raise ValueError(msg)
    return cls(**table)


def load_config(path: Path | None = None) -> AccrualConfig:
    """Build an ``AccrualConfig`` from ``accrual.toml``.

    Each of the ``[window]``, ``[bisection]`` and ``[detector]`` tables is
    optional; omitted tables and keys keep their defaults.  Without *path*
    the file is discovered from the working directory upward, and defaults
    are returned when none exists.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* does not exist.
    ValueError
        If a table holds unknown keys or a value fails validation.

    Examples
    --------
    >>> load_config(Path("accrual.toml")).detector.threshold
    8.0
    """
    if path is None:
        path = discover_config()
        if path is None:
            return AccrualConfig()
    elif not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    return AccrualConfig(
        window=_section(raw, "window", WindowConfig),
        bisection=_section(raw, "bisection", BisectionConfig),
        detector=_section(raw, "detector", DetectorConfig),
    )
