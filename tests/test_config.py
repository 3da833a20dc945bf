from __future__ import annotations

from pathlib import Path

import pytest

from accrual.config import (
    AccrualConfig,
    BisectionConfig,
    DetectorConfig,
    WindowConfig,
    discover_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Config dataclass defaults
# ---------------------------------------------------------------------------


class TestWindowConfig:
    def test_defaults(self) -> None:
        cfg = WindowConfig()
        assert cfg.prior_interval_ms == 5000.0
        assert cfg.prior_deviation_fraction == 0.2
        assert cfg.prior_samples == 1
        assert cfg.max_sample_size == 10_000
        assert cfg.prior_std_dev_ms == pytest.approx(1000.0)

    def test_custom(self) -> None:
        cfg = WindowConfig(prior_interval_ms=10000.0, prior_samples=2)
        assert cfg.prior_interval_ms == 10000.0
        assert cfg.prior_samples == 2
        assert cfg.prior_std_dev_ms == pytest.approx(2000.0)

    def test_frozen(self) -> None:
        cfg = WindowConfig()
        with pytest.raises(AttributeError):
            cfg.prior_samples = 3  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"prior_interval_ms": 0.0},
            {"prior_deviation_fraction": -0.1},
            {"prior_samples": 0},
            {"prior_samples": 5, "max_sample_size": 5},
        ],
    )
    def test_rejects_invalid_values(self, kwargs: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            WindowConfig(**kwargs)  # type: ignore[arg-type]


class TestBisectionConfig:
    def test_defaults(self) -> None:
        cfg = BisectionConfig()
        assert cfg.epsilon == 1e-10
        assert cfg.bound == 1e18
        assert cfg.max_iterations == 200

    def test_rejects_zero_iterations(self) -> None:
        with pytest.raises(ValueError, match="max_iterations"):
            BisectionConfig(max_iterations=0)

    def test_rejects_non_positive_epsilon(self) -> None:
        with pytest.raises(ValueError, match="epsilon"):
            BisectionConfig(epsilon=0.0)


class TestDetectorConfig:
    def test_defaults(self) -> None:
        assert DetectorConfig().threshold == 8.0


class TestAccrualConfigDefaults:
    def test_all_defaults(self) -> None:
        cfg = AccrualConfig()
        assert cfg.window == WindowConfig()
        assert cfg.bisection == BisectionConfig()
        assert cfg.detector == DetectorConfig()


# ---------------------------------------------------------------------------
# TOML loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("""\
[window]
prior_interval_ms = 10000.0
prior_deviation_fraction = 0.25
prior_samples = 2
max_sample_size = 1000

[bisection]
epsilon = 1e-9
bound = 1e12
max_iterations = 80

[detector]
threshold = 12.0
""")
        cfg = load_config(toml_file)

        assert cfg.window.prior_interval_ms == 10000.0
        assert cfg.window.prior_deviation_fraction == 0.25
        assert cfg.window.prior_samples == 2
        assert cfg.window.max_sample_size == 1000
        assert cfg.bisection.epsilon == 1e-9
        assert cfg.bisection.bound == 1e12
        assert cfg.bisection.max_iterations == 80
        assert cfg.detector.threshold == 12.0

    def test_minimal_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("")
        cfg = load_config(toml_file)
        assert cfg == AccrualConfig()

    def test_partial_table_keeps_other_defaults(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[window]\nprior_interval_ms = 2000.0\n")
        cfg = load_config(toml_file)
        assert cfg.window.prior_interval_ms == 2000.0
        assert cfg.window.prior_samples == 1
        assert cfg.detector.threshold == 8.0

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[window]\nprior_samples = 0\n")
        with pytest.raises(ValueError, match="prior_samples"):
            load_config(toml_file)

    def test_unknown_key_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[window]\nprior_interval = 2000.0\n")
        with pytest.raises(
            ValueError, match=r"Unknown keys in \[window\]: prior_interval"
        ):
            load_config(toml_file)

    def test_non_table_section_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("detector = 9.0\n")
        with pytest.raises(ValueError, match=r"\[detector\] must be a table"):
            load_config(toml_file)

    def test_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.toml")


# ---------------------------------------------------------------------------
# Auto-discovery
# ---------------------------------------------------------------------------


class TestDiscoverConfig:
    def test_finds_in_cwd(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[detector]\nthreshold = 9.0")
        result = discover_config(tmp_path)
        assert result == toml_file

    def test_walks_up(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[detector]\nthreshold = 9.0")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        result = discover_config(child)
        assert result == toml_file

    def test_custom_filename(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "peer-a.toml"
        toml_file.write_text("[detector]\nthreshold = 9.0")
        child = tmp_path / "nested"
        child.mkdir()
        assert discover_config(child, filename="peer-a.toml") == toml_file
        assert discover_config(child) is None

    def test_not_found_returns_none(self, tmp_path: Path) -> None:
        child = tmp_path / "isolated"
        child.mkdir()
        result = discover_config(child)
        assert result is None

    def test_load_config_no_args_auto_discovery(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        toml_file = tmp_path / "accrual.toml"
        toml_file.write_text("[detector]\nthreshold = 11.0")
        monkeypatch.chdir(tmp_path)
        cfg = load_config()
        assert cfg.detector.threshold == 11.0

    def test_load_config_no_args_no_file_returns_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cfg = load_config()
        assert cfg == AccrualConfig()
