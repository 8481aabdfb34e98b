"""Period driver for the sector allocation model.

The :class:`Simulation` class owns one region's sectors, the marketplace
and the economic context, and steps through the model periods in strictly
increasing order: later periods read share weights calibrated in earlier
ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sector_allocation.sectors.config import ModelConfig, load_config
from sector_allocation.sectors.constants import CO2_KEY
from sector_allocation.sectors.context import EconomicContext
from sector_allocation.sectors.markets.marketplace import Marketplace
from sector_allocation.sectors.periods import as_period_array
from sector_allocation.sectors.sector import Sector

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import numpy as np

    from sector_allocation.sectors.errors import Diagnostic

logger = logging.getLogger(__name__)


@dataclass
class PeriodRecord:
    """Results recorded for one sector in one period."""

    period: int = 0
    year: int = 0
    sector: str = ""
    demand: float = 0.0
    price: float = 0.0
    output: float = 0.0
    shares: dict[str, float] = field(default_factory=dict)
    calibrated: bool = True
    co2: float = 0.0


@dataclass
class SimulationResult:
    """Container for the full simulation output."""

    records: list[PeriodRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def sectors(self) -> list[str]:
        """Names of the recorded sectors, in first-seen order."""
        return list(dict.fromkeys(r.sector for r in self.records))

    def for_sector(self, name: str) -> list[PeriodRecord]:
        """Records of sector *name*, in period order."""
        return [r for r in self.records if r.sector == name]

    def output_series(self, name: str) -> list[float]:
        """Output of sector *name* across all recorded periods."""
        return [r.output for r in self.for_sector(name)]

    def price_series(self, name: str) -> list[float]:
        """Price of sector *name* across all recorded periods."""
        return [r.price for r in self.for_sector(name)]


class Simulation:
    """The top-level period driver.

    Usage::

        sim = Simulation.from_config()
        result = sim.run()

    Attributes:
        config: The model configuration.
        n_periods: Number of model periods.
        marketplace: The market registry shared by all sectors.
        context: GDP per capita of the region.
        sectors: Sectors of the region, in configuration order.
        current_period: The next period to be run.
    """

    def __init__(self, config: ModelConfig | None = None) -> None:
        self.config = config or ModelConfig()
        self.n_periods = self.config.model_time.periods
        self.marketplace = Marketplace(self.n_periods)
        self.context = EconomicContext.from_series(
            self.config.region.gdp_per_capita, self.n_periods
        )
        self.sectors: list[Sector] = []
        self._demand: dict[str, np.ndarray] = {}
        self.current_period: int = 0

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, path: Path | None = None) -> Simulation:
        """Create a simulation from a YAML configuration file.

        Args:
            path: Path to configuration YAML.  Uses defaults when *None*.

        Returns:
            A configured :class:`Simulation` with its sectors created.
        """
        config = load_config(path)
        sim = cls(config)
        sim.initialize_sectors()
        return sim

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize_sectors(self) -> None:
        """Create the region's sectors from configuration."""
        region = self.config.region
        for sector_config in region.sectors:
            sector = Sector.from_config(
                sector_config,
                region.name,
                self.n_periods,
                self.marketplace,
                calibration=self.config.calibration,
                debug=self.config.debug,
            )
            self.add_sector(sector, sector_config.demand)

    def add_sector(self, sector: Sector, demand: float | Sequence[float]) -> None:
        """Register *sector* with its exogenous demand per period.

        Raises:
            ValueError: If a sector of the same name is already registered.
        """
        if sector.name in self._demand:
            msg = f"Duplicate sector '{sector.name}'"
            raise ValueError(msg)
        self._demand[sector.name] = as_period_array(
            demand, self.n_periods, name=f"demand of {sector.name}"
        )
        sector.complete_init()
        self.sectors.append(sector)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, periods: int | None = None) -> SimulationResult:
        """Run the remaining model periods.

        Args:
            periods: Number of periods to run.  Defaults to all periods
                not yet run.

        Returns:
            A :class:`SimulationResult` with one record per sector and
            period, and the diagnostics recorded in those periods.

        Raises:
            ValueError: If more periods are requested than remain.
        """
        remaining = self.n_periods - self.current_period
        n = remaining if periods is None else periods
        if n > remaining:
            msg = f"Requested {n} periods but only {remaining} remain"
            raise ValueError(msg)

        result = SimulationResult()
        seen = {sector.name: len(sector.diagnostics) for sector in self.sectors}
        for _ in range(n):
            result.records.extend(self.step())
        for sector in self.sectors:
            result.diagnostics.extend(sector.diagnostics[seen[sector.name] :])
        return result

    def step(self) -> list[PeriodRecord]:
        """Execute the next period.

        The within-period sequence is:

        1. Post each sector's demand to the marketplace.
        2. Initialise the period (share-weight normalisation, flags).
        3. Make the configured number of calibration passes, each computing
           shares and price, supplying demand and calibrating share weights.
        4. Make a final pass with the calibrated share weights.
        5. Tally input, fuel consumption and emissions.
        6. Check calibration and record results.

        Returns:
            One :class:`PeriodRecord` per sector.
        """
        period = self.current_period
        calibration = self.config.calibration
        logger.debug("Running period %d", period)

        for sector in self.sectors:
            self.marketplace.set_demand(
                sector.name,
                sector.region_name,
                float(self._demand[sector.name][period]),
                period,
            )
        for sector in self.sectors:
            sector.init_calc(period)

        for _ in range(calibration.iterations):
            self._supply_pass(period, calibrate=calibration.active)
        self._supply_pass(period, calibrate=False)

        records = []
        for sector in self.sectors:
            sector.sum_input(period)
            sector.update_summary(period)
            sector.emission(period)
            calibrated = sector.is_all_calibrated(
                period, calibration.accuracy, verbose=True
            )
            records.append(
                PeriodRecord(
                    period=period,
                    year=self.config.model_time.period_to_year(period),
                    sector=sector.name,
                    demand=float(self._demand[sector.name][period]),
                    price=float(sector.price[period]),
                    output=sector.get_output(period),
                    shares={s.name: s.get_share(period) for s in sector.subsectors},
                    calibrated=calibrated,
                    co2=sector.get_emissions(period).get(CO2_KEY, 0.0),
                )
            )

        self.current_period += 1
        return records

    def _supply_pass(self, period: int, *, calibrate: bool) -> None:
        self.marketplace.clear_supply(period)
        for sector in self.sectors:
            sector.calc_final_supply_price(self.context, period)
            sector.supply(period, self.context)
            sector.set_final_supply(period)
            if calibrate:
                sector.calibrate_sector(period)
