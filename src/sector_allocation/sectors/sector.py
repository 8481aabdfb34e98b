"""Sector: the market for one good within a region.

A sector apportions the demand for its good among competing subsectors.
Every period runs through the same strictly ordered sequence::

    normalize share weights -> compute shares -> adjust for fixed output
    -> resolve capacity limits -> validate shares -> compute price
    -> emit supply

Recoverable problems found along the way are logged and appended to
:attr:`Sector.diagnostics`; only a fatal arithmetic error is raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from sector_allocation.sectors.calibration import (
    check_calibration,
    outputs_all_fixed,
)
from sector_allocation.sectors.capacity import resolve_capacity_limits
from sector_allocation.sectors.config import CalibrationConfig, DebugConfig
from sector_allocation.sectors.constants import (
    BOOTSTRAP_DEMAND,
    CO2_FACTOR_KEY,
    CO2_KEY,
    SMALL_NUM,
    TINY_NUM,
    TOTAL_FUEL_KEY,
)
from sector_allocation.sectors.errors import Diagnostic, DiagnosticKind
from sector_allocation.sectors.fixed_output import adjust_for_fixed_output
from sector_allocation.sectors.subsector import Subsector

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from sector_allocation.sectors.calibration import CalibrationCheck
    from sector_allocation.sectors.capacity import CapacityLimitResult
    from sector_allocation.sectors.config import SectorConfig
    from sector_allocation.sectors.context import EconomicContext
    from sector_allocation.sectors.markets.base import BaseMarketplace

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    DiagnosticKind.CONSISTENCY: logging.WARNING,
    DiagnosticKind.INFEASIBILITY: logging.ERROR,
    DiagnosticKind.CONFIGURATION: logging.WARNING,
}


class Sector:
    """A sector and its competing subsectors.

    Attributes:
        name: Sector name, also the name of the good it supplies.
        region_name: Name of the owning region.
        n_periods: Number of model periods every array is sized for.
        marketplace: Registry the sector reads demand from and supplies to.
        market_name: Market serving the sector (the region name if unset).
        unit: Unit of the sector's output.
        subsectors: Subsectors in model input order.
        price: Share-weighted price per period.
        input: Total input per period.
        output: Total output per period.
        co2_em_factor: Share-weighted CO2 emissions factor per period.
        fixed_capacity_present: Whether any subsector has fixed output.
        capacity_limits_present: Whether any subsector has a capacity limit.
        fuel_consumption: Fuel name to consumption, per period.
        emissions: Gas name to emitted quantity, per period.
        diagnostics: Recoverable problems found so far.
    """

    def __init__(
        self,
        name: str,
        region_name: str,
        n_periods: int,
        marketplace: BaseMarketplace,
        *,
        subsectors: Iterable[Subsector] = (),
        market_name: str | None = None,
        calibration: CalibrationConfig | None = None,
        debug: DebugConfig | None = None,
        unit: str = "",
    ) -> None:
        self.name = name
        self.region_name = region_name
        self.n_periods = n_periods
        self.marketplace = marketplace
        self.market_name = market_name
        self.unit = unit
        self._calibration = calibration or CalibrationConfig()
        self._debug = debug or DebugConfig()

        self.subsectors: list[Subsector] = []
        for sub in subsectors:
            self.add_subsector(sub)

        self.price = np.zeros(n_periods)
        self.input = np.zeros(n_periods)
        self.output = np.zeros(n_periods)
        self.co2_em_factor = np.zeros(n_periods)
        self.fixed_capacity_present = np.zeros(n_periods, dtype=bool)
        self.capacity_limits_present = np.zeros(n_periods, dtype=bool)
        self.fuel_consumption: list[dict[str, float]] = [
            {} for _ in range(n_periods)
        ]
        self.emissions: list[dict[str, float]] = [{} for _ in range(n_periods)]
        self.diagnostics: list[Diagnostic] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: SectorConfig,
        region_name: str,
        n_periods: int,
        marketplace: BaseMarketplace,
        *,
        calibration: CalibrationConfig | None = None,
        debug: DebugConfig | None = None,
    ) -> Sector:
        """Create a sector and its subsectors from configuration."""
        return cls(
            config.name,
            region_name,
            n_periods,
            marketplace,
            subsectors=[Subsector.from_config(s, n_periods) for s in config.subsectors],
            market_name=config.market,
            calibration=calibration,
            debug=debug,
            unit=config.unit,
        )

    def add_subsector(self, subsector: Subsector) -> None:
        """Append *subsector* after the existing ones.

        Raises:
            ValueError: If a subsector with the same name already exists or
                it is sized for a different number of periods.
        """
        if any(sub.name == subsector.name for sub in self.subsectors):
            msg = f"Duplicate subsector '{subsector.name}' in sector '{self.name}'"
            raise ValueError(msg)
        if subsector.n_periods != self.n_periods:
            msg = (
                f"Subsector '{subsector.name}' has {subsector.n_periods} periods, "
                f"sector '{self.name}' has {self.n_periods}"
            )
            raise ValueError(msg)
        self.subsectors.append(subsector)

    def complete_init(self) -> None:
        """Finish initialization once all subsectors have been added.

        Registers the sector's market, defaulting it to the region, and
        checks the calibration data of every period.
        """
        if not self.market_name:
            logger.info(
                "Defaulting market of sector %s to region %s",
                self.name,
                self.region_name,
            )
            self.market_name = self.region_name
        self.marketplace.create_market(self.region_name, self.market_name, self.name)
        for period in range(self.n_periods):
            self.check_sector_cal_data(period)

    def check_sector_cal_data(self, period: int) -> None:
        """Report subsectors whose output is both calibrated and fixed."""
        for sub in self.subsectors:
            if sub.get_calibration_status(period) and sub.get_fixed_output(period) > 0:
                self._diagnose(
                    DiagnosticKind.CONFIGURATION,
                    period,
                    f"Subsector {sub.name} of sector {self.name} in "
                    f"{self.region_name} has both calibrated and fixed output",
                )

    def _diagnose(
        self,
        kind: DiagnosticKind,
        period: int,
        message: str,
        level: int | None = None,
    ) -> None:
        # Repeated supply passes within a period report a problem once.
        diagnostic = Diagnostic(kind, period, message)
        if diagnostic in self.diagnostics:
            return
        logger.log(_LOG_LEVELS[kind] if level is None else level, message)
        self.diagnostics.append(diagnostic)

    # ------------------------------------------------------------------
    # Period initialisation
    # ------------------------------------------------------------------

    def init_calc(self, period: int) -> None:
        """Prepare *period*: normalize share weights and set period flags.

        Share weights must be normalized before the subsectors carry them
        forward.
        """
        self.normalize_share_weights(period)
        for sub in self.subsectors:
            sub.init_calc(period)
        self.fixed_capacity_present[period] = self.get_fixed_output(period) > 0
        self.capacity_limits_present[period] = self.is_capacity_limits_in_sector(
            period
        )

    def normalize_share_weights(self, period: int) -> None:
        """Rescale last period's share weights to sum to the nonzero count.

        Only done when calibration is active and the previous period was
        entirely fixed or calibrated with some calibrated output, so that a
        weight of 1.0 stays interpretable as average preference.
        """
        if period <= 0 or not self._calibration.active:
            return
        previous = period - 1
        if not (self.inputs_all_fixed(previous) and self.get_cal_output(previous) > 0):
            return

        weights = [sub.get_share_weight(previous) for sub in self.subsectors]
        total = sum(weights)
        n_nonzero = sum(1 for w in weights if w > 0)
        if total < TINY_NUM:
            self._diagnose(
                DiagnosticKind.CONSISTENCY,
                period,
                f"Share weights of sector {self.name} in {self.region_name} "
                f"sum to zero",
                level=logging.ERROR,
            )
            return
        for sub in self.subsectors:
            sub.scale_share_weight(n_nonzero / total, previous)
        logger.debug("Share weights normalized for sector %s", self.name)

    def is_capacity_limits_in_sector(self, period: int) -> bool:
        """Return whether any subsector has a capacity limit below 1."""
        if period < 0:
            return False
        return any(sub.get_capacity_limit(period) != 1 for sub in self.subsectors)

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    def get_fixed_share(self, index: int, period: int) -> float:
        """Return the share implied by subsector *index*'s fixed output.

        The current market demand is used when it is positive; otherwise
        the share recorded during the last fixed-output adjustment.
        """
        if not 0 <= index < len(self.subsectors):
            self._diagnose(
                DiagnosticKind.CONFIGURATION,
                period,
                f"Illegal subsector index {index} in sector {self.name}",
            )
            return 0.0
        sub = self.subsectors[index]
        fixed_share = sub.get_fixed_share(period)
        if sub.get_fixed_output(period) > 0:
            demand = self.marketplace.get_demand(self.name, self.region_name, period)
            if demand > 0:
                fixed_share = sub.get_fixed_output(period) / demand
        return fixed_share

    def calc_share(self, period: int, context: EconomicContext) -> None:
        """Compute normalized subsector shares for *period*.

        Variable shares are scaled to fill whatever fixed-output shares
        leave over, fixed shares summing over 1 are scaled back to 1, and
        capacity limits are then enforced.

        Args:
            period: Model period.
            context: Economic context of the region.
        """
        fixed_shares = []
        fixed_sum = 0.0
        variable_sum = 0.0
        for index, sub in enumerate(self.subsectors):
            sub.calc_share(period, context)
            fixed_share = 0.0
            if self.fixed_capacity_present[period]:
                fixed_share = self.get_fixed_share(index, period)
            if fixed_share < TINY_NUM:
                fixed_share = 0.0
                variable_sum += sub.get_share(period)
            fixed_sum += fixed_share
            fixed_shares.append(fixed_share)
            sub.set_cap_limit_status(False, period)

        fixed_scale = 1.0
        if fixed_sum > 1:
            fixed_scale = 1 / fixed_sum
            fixed_sum = 1.0

        # Fixed output covering all demand leaves nothing for competition.
        if fixed_sum < 1 and variable_sum > 0:
            variable_factor = (1 - fixed_sum) / variable_sum
        else:
            variable_factor = 0.0

        for sub, fixed_share in zip(self.subsectors, fixed_shares, strict=True):
            if fixed_share == 0:
                sub.set_fixed_share(period, 0.0)
                sub.norm_share(variable_factor, period)
                continue
            new_share = fixed_share * fixed_scale
            current = sub.get_fixed_share(period)
            if current > 0:
                sub.scale_fixed_output(new_share / current, period)
            sub.set_fixed_share(period, new_share)
            sub.set_share_to_fixed_value(period)

        if self.capacity_limits_present[period]:
            self.adj_shares_cap_limit(period)

        if self._debug.debug_checking and self.subsectors:
            self.check_share_sum(period)

    def adj_shares_cap_limit(self, period: int) -> CapacityLimitResult:
        """Enforce capacity limits and report any that cannot be met."""
        result = resolve_capacity_limits(self.subsectors, period)
        if result.infeasible:
            self._diagnose(
                DiagnosticKind.INFEASIBILITY,
                period,
                f"{self.region_name}: Insufficient capacity to meet demand in "
                f"sector {self.name} (share over limits: {result.over_limit:.6g})",
            )
        elif not result.converged:
            self._diagnose(
                DiagnosticKind.INFEASIBILITY,
                period,
                f"Capacity limit not resolved in sector {self.name} after "
                f"{result.iterations} iterations",
            )
        return result

    def check_share_sum(self, period: int) -> bool:
        """Return whether shares sum to 1, recording a diagnostic if not."""
        shares = [sub.get_share(period) for sub in self.subsectors]
        total = sum(shares)
        if abs(total - 1) > SMALL_NUM:
            formatted = ", ".join(f"{s:.6g}" for s in shares)
            self._diagnose(
                DiagnosticKind.CONSISTENCY,
                period,
                f"Shares do not sum to 1. Sum = {total:.12g} in sector "
                f"{self.name}, region {self.region_name}. Shares: {formatted}",
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Price
    # ------------------------------------------------------------------

    def calc_price(self, period: int) -> None:
        """Compute the share-weighted price and CO2 emissions factor.

        The emissions factor is published to the market when one exists.
        """
        price = 0.0
        co2_factor = 0.0
        for sub in self.subsectors:
            price += sub.get_share(period) * sub.get_price(period)
            co2_factor += sub.get_share(period) * sub.get_co2_em_factor(period)
        self.price[period] = price
        self.co2_em_factor[period] = co2_factor
        if self.marketplace.does_market_exist(self.name, self.region_name, period):
            self.marketplace.set_market_info(
                self.name, self.region_name, period, CO2_FACTOR_KEY, co2_factor
            )

    def get_price(self, period: int) -> float:
        """Recompute and return the sector price."""
        self.calc_price(period)
        return float(self.price[period])

    def get_co2_emissions_factor(self, period: int) -> float:
        return float(self.co2_em_factor[period])

    def calc_final_supply_price(self, context: EconomicContext, period: int) -> None:
        """Compute shares and price, and set the price in the marketplace."""
        self.calc_share(period, context)
        self.calc_price(period)
        self.marketplace.set_price(
            self.name, self.region_name, float(self.price[period]), period
        )

    # ------------------------------------------------------------------
    # Supply
    # ------------------------------------------------------------------

    def supply(self, period: int, context: EconomicContext | None = None) -> None:
        """Distribute market demand to the subsectors.

        Args:
            period: Model period.
            context: Economic context of the region (not needed to share
                out demand once shares are known).

        Raises:
            FatalArithmeticError: If there is fixed output but market
                demand is zero.
        """
        demand = self.marketplace.get_demand(self.name, self.region_name, period)
        if demand < 0:
            self._diagnose(
                DiagnosticKind.CONSISTENCY,
                period,
                f"Demand value < 0 for good {self.name} in region "
                f"{self.region_name}: {demand:.6g}",
            )
            demand = 0.0
        elif self.fixed_capacity_present[period]:
            adjust_for_fixed_output(self.subsectors, demand, period)

        self.set_output(demand, period)

        if self._debug.debug_checking and period > 0:
            supplied = self.sum_output(period)
            mismatch = supplied - demand
            if (
                abs(mismatch) > self._debug.supply_tolerance
                and demand != BOOTSTRAP_DEMAND
            ):
                self._diagnose(
                    DiagnosticKind.CONSISTENCY,
                    period,
                    f"Supply and demand do not match in sector {self.name} of "
                    f"{self.region_name}: supply {supplied:.6g}, demand "
                    f"{demand:.6g}, difference {mismatch:.6g}",
                )

    def set_output(self, demand: float, period: int) -> None:
        """Give every subsector its share of *demand*."""
        for sub in self.subsectors:
            sub.set_output(demand, period)

    def set_final_supply(self, period: int) -> None:
        """Add the sector's output to the supply of its market."""
        self.marketplace.add_to_supply(
            self.name, self.region_name, self.update_and_get_output(period), period
        )

    # ------------------------------------------------------------------
    # Output and calibration totals
    # ------------------------------------------------------------------

    def sum_output(self, period: int) -> float:
        """Sum subsector outputs into :attr:`output` and return the total."""
        self.output[period] = sum(sub.get_output(period) for sub in self.subsectors)
        return float(self.output[period])

    def update_and_get_output(self, period: int) -> float:
        return self.sum_output(period)

    def get_output(self, period: int) -> float:
        return float(self.output[period])

    def sum_input(self, period: int) -> float:
        """Sum subsector inputs into :attr:`input` and return the total."""
        self.input[period] = sum(sub.get_input(period) for sub in self.subsectors)
        return float(self.input[period])

    def get_input(self, period: int) -> float:
        return float(self.input[period])

    def get_fixed_output(self, period: int) -> float:
        return sum(sub.get_fixed_output(period) for sub in self.subsectors)

    def get_cal_output(self, period: int) -> float:
        """Total calibrated output, excluding fixed output."""
        return sum(sub.get_total_cal_outputs(period) for sub in self.subsectors)

    def get_cal_and_fixed_outputs(self, period: int, both: bool = True) -> float:
        return sum(
            sub.get_cal_and_fixed_outputs(period, both) for sub in self.subsectors
        )

    def inputs_all_fixed(self, period: int) -> bool:
        """Return whether every subsector's input is fixed in *period*."""
        if period < 0:
            return False
        return all(sub.inputs_all_fixed(period) for sub in self.subsectors)

    def outputs_all_fixed(self, period: int) -> bool:
        """Return whether every subsector's output is fixed or calibrated."""
        if period < 0:
            return False
        return outputs_all_fixed(self.subsectors, period)

    def scale_calibrated_values(self, period: int, scale: float) -> None:
        for sub in self.subsectors:
            sub.scale_calibrated_values(period, scale)

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def calibrate_sector(self, period: int) -> None:
        """Move calibrated subsectors' share weights toward their targets."""
        total_fixed_output = self.get_fixed_output(period)
        demand = self.marketplace.get_demand(self.name, self.region_name, period)
        total_cal_outputs = self.get_cal_output(period)
        all_fixed = self.outputs_all_fixed(period)
        for sub in self.subsectors:
            if sub.get_calibration_status(period):
                sub.adjust_for_calibration(
                    demand, total_fixed_output, total_cal_outputs, all_fixed, period
                )

    def check_calibration(self, period: int, tolerance: float) -> CalibrationCheck:
        """Compare calibrated plus fixed output with actual output."""
        return check_calibration(
            self.subsectors, self.get_output(period), period, tolerance
        )

    def is_all_calibrated(
        self, period: int, tolerance: float, verbose: bool = False
    ) -> bool:
        """Return whether output matches calibrated plus fixed output.

        Always ``True`` in the base period or when calibration is inactive.

        Args:
            period: Model period.
            tolerance: Allowed absolute or relative mismatch.
            verbose: Log and record a diagnostic for a mismatch.

        Returns:
            ``False`` if the mismatch is beyond *tolerance*.
        """
        if period <= 0 or not self._calibration.active:
            return True
        check = self.check_calibration(period, tolerance)
        if not check.consistent and verbose:
            self._diagnose(
                DiagnosticKind.CONSISTENCY,
                period,
                f"{self.name} in {self.region_name} != cal+fixed vals "
                f"({check.total_fixed:.6g}) in period {period} by: "
                f"{check.diff:.6g} ({check.diff_fraction * 100:.3g}%)",
            )
        return check.consistent

    # ------------------------------------------------------------------
    # Fuel consumption and emissions
    # ------------------------------------------------------------------

    def update_summary(self, period: int) -> None:
        """Tally fuel consumption by fuel, plus a total entry."""
        summary: dict[str, float] = {}
        for sub in self.subsectors:
            for fuel, quantity in sub.get_fuel_consumption(period).items():
                summary[fuel] = summary.get(fuel, 0.0) + quantity
        summary[TOTAL_FUEL_KEY] = sum(summary.values())
        self.fuel_consumption[period] = summary

    def get_fuel_consumption(self, period: int) -> dict[str, float]:
        return dict(self.fuel_consumption[period])

    def emission(self, period: int) -> None:
        """Tally emissions by gas over all subsectors."""
        totals: dict[str, float] = {CO2_KEY: 0.0}
        for sub in self.subsectors:
            for gas, quantity in sub.get_emissions(period).items():
                totals[gas] = totals.get(gas, 0.0) + quantity
        self.emissions[period] = totals

    def get_emissions(self, period: int) -> dict[str, float]:
        return dict(self.emissions[period])

    def get_total_carbon_tax_paid(self, period: int) -> float:
        return sum(sub.get_total_carbon_tax_paid(period) for sub in self.subsectors)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_state(self, period: int) -> dict[str, Any]:
        """Return the sector's state in *period*."""
        return {
            "name": self.name,
            "region": self.region_name,
            "market": self.market_name,
            "price": float(self.price[period]),
            "output": float(self.output[period]),
            "input": float(self.input[period]),
            "fixed_capacity": bool(self.fixed_capacity_present[period]),
            "capacity_limits": bool(self.capacity_limits_present[period]),
            "subsectors": [sub.get_state(period) for sub in self.subsectors],
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"region={self.region_name!r}, subsectors={len(self.subsectors)})"
        )
