"""Constant-memory phi accrual failure detection for a single peer."""

from accrual.config import (
    AccrualConfig,
    BisectionConfig,
    DetectorConfig,
    WindowConfig,
    discover_config,
    load_config,
)
from accrual.distribution import (
    MIN_STD_DEV_MS,
    NormalDistribution,
    phi_from_probability,
    probability_from_phi,
)
from accrual.errors import AccrualError, HeartbeatOrderError, ProbabilityRangeError
from accrual.window import PingWindow

__all__ = [
    "AccrualConfig",
    "AccrualError",
    "BisectionConfig",
    "DetectorConfig",
    "HeartbeatOrderError",
    "MIN_STD_DEV_MS",
    "NormalDistribution",
    "PingWindow",
    "ProbabilityRangeError",
    "WindowConfig",
    "discover_config",
    "load_config",
    "phi_from_probability",
    "probability_from_phi",
]
