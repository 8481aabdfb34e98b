"""Configuration loading and validation for the sector allocation model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from typing import Any

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config"

#: A per-period input: one value for every period, or one value per period.
PerPeriod = float | tuple[float, ...]


@dataclass(frozen=True)
class ModelTimeConfig:
    """The fixed sequence of model periods."""

    start_year: int = 1975
    time_step: int = 15
    periods: int = 9

    def period_to_year(self, period: int) -> int:
        """Return the calendar year of *period*."""
        return self.start_year + period * self.time_step

    def year_to_period(self, year: int) -> int:
        """Return the period containing *year*.

        Raises:
            ValueError: If *year* is not a model year.
        """
        offset = year - self.start_year
        if offset < 0 or offset % self.time_step != 0:
            msg = f"Year {year} is not a model year"
            raise ValueError(msg)
        period = offset // self.time_step
        if period >= self.periods:
            msg = f"Year {year} is after the last model period"
            raise ValueError(msg)
        return period


@dataclass(frozen=True)
class CalibrationConfig:
    """Calibration settings."""

    active: bool = True
    accuracy: float = 0.01
    iterations: int = 3


@dataclass(frozen=True)
class DebugConfig:
    """Consistency checks run during every supply pass."""

    debug_checking: bool = False
    supply_tolerance: float = 0.01


@dataclass(frozen=True)
class SubsectorConfig:
    """Input data for one subsector.

    Per-period fields take either a scalar applied to every period or a
    sequence with one value per period (shorter sequences are padded).
    ``share_weights`` of ``None`` means 1.0 in the first period, carried
    forward afterwards.
    """

    name: str
    share_weights: PerPeriod | None = None
    prices: PerPeriod = 1.0
    logit_exponent: PerPeriod = -6.0
    fuel_pref_elasticity: PerPeriod = 0.0
    fixed_output: PerPeriod = 0.0
    capacity_limit: PerPeriod = 1.0
    calibrated_output: PerPeriod = 0.0
    co2_coefficient: PerPeriod = 0.0
    fuel: str = ""
    input_output_ratio: PerPeriod = 1.0
    carbon_tax: PerPeriod = 0.0


@dataclass(frozen=True)
class SectorConfig:
    """Input data for one sector and its competing subsectors."""

    name: str
    unit: str = ""
    market: str | None = None
    demand: PerPeriod = 0.0
    subsectors: tuple[SubsectorConfig, ...] = ()


@dataclass(frozen=True)
class RegionConfig:
    """The region whose sectors are simulated."""

    name: str = "region"
    gdp_per_capita: PerPeriod = 1.0
    sectors: tuple[SectorConfig, ...] = ()


@dataclass(frozen=True)
class ModelConfig:
    """Complete model configuration."""

    model_time: ModelTimeConfig = field(default_factory=ModelTimeConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)
    region: RegionConfig = field(default_factory=RegionConfig)


def _tuplify(raw: dict[str, Any]) -> dict[str, Any]:
    """Convert YAML lists to tuples so they fit the frozen dataclasses."""
    return {k: tuple(v) if isinstance(v, list) else v for k, v in raw.items()}


def _parse_sector(raw: dict[str, Any]) -> SectorConfig:
    subsectors = tuple(
        SubsectorConfig(**_tuplify(sub)) for sub in raw.get("subsectors", []) or []
    )
    rest = {k: v for k, v in raw.items() if k != "subsectors"}
    return SectorConfig(**_tuplify(rest), subsectors=subsectors)


def _parse_region(raw: dict[str, Any]) -> RegionConfig:
    sectors = tuple(_parse_sector(s) for s in raw.get("sectors", []) or [])
    rest = {k: v for k, v in raw.items() if k != "sectors"}
    return RegionConfig(**_tuplify(rest), sectors=sectors)


def load_config(path: Path | None = None) -> ModelConfig:
    """Load model configuration from a YAML file.

    Args:
        path: Path to a YAML config file.  When *None* the default
              ``config/scenario.yml`` shipped with the repository is used.

    Returns:
        A fully-populated :class:`ModelConfig` instance.
    """
    if path is None:
        path = _DEFAULT_CONFIG_PATH / "scenario.yml"

    raw: dict[str, Any] = {}
    if path.exists():
        with path.open() as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                raw = loaded

    return ModelConfig(
        model_time=ModelTimeConfig(**raw.get("model_time", {})),
        calibration=CalibrationConfig(**raw.get("calibration", {})),
        debug=DebugConfig(**raw.get("debug", {})),
        region=_parse_region(raw.get("region", {}) or {}),
    )
