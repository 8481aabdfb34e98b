"""Subsector: one technology class competing for a sector's output.

A subsector computes an unnormalized logit share from its share weight and
price, and carries the per-period state the sector relies on while
allocating demand: the normalized share, fixed (must-run) output and the
share it implies, the capacity limit and whether it is currently binding,
and calibration data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sector_allocation.sectors.capacity import cap_limit_transform
from sector_allocation.sectors.constants import CO2_KEY, TINY_NUM
from sector_allocation.sectors.periods import as_period_array

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Any

    from sector_allocation.sectors.config import SubsectorConfig
    from sector_allocation.sectors.context import EconomicContext


class Subsector:
    """A subsector competing for share within a sector.

    Attributes:
        name: Subsector name, unique within its sector.
        n_periods: Number of model periods.
        fuel: Name of the fuel consumed, empty if none is tracked.
        share_weights: Preference weight per period.
        prices: Cost per unit of output per period, before carbon tax.
        logit_exponent: Price exponent of the share equation per period.
        fuel_pref_elasticity: Exponent on scaled GDP per capita per period.
        capacity_limit: Maximum share per period (1 means unlimited).
        calibrated_output: Calibrated output per period (0 if none).
        co2_coefficient: CO2 emitted per unit of output per period.
        input_output_ratio: Fuel input per unit of output per period.
        carbon_tax: Carbon price per unit of CO2 per period.
    """

    def __init__(
        self,
        name: str,
        n_periods: int,
        *,
        share_weights: float | Sequence[float] | None = None,
        prices: float | Sequence[float] = 1.0,
        logit_exponent: float | Sequence[float] = -6.0,
        fuel_pref_elasticity: float | Sequence[float] = 0.0,
        fixed_output: float | Sequence[float] = 0.0,
        capacity_limit: float | Sequence[float] = 1.0,
        calibrated_output: float | Sequence[float] = 0.0,
        co2_coefficient: float | Sequence[float] = 0.0,
        fuel: str = "",
        input_output_ratio: float | Sequence[float] = 1.0,
        carbon_tax: float | Sequence[float] = 0.0,
    ) -> None:
        self.name = name
        self.n_periods = n_periods
        self.fuel = fuel

        weights = as_period_array(
            share_weights, n_periods, default=np.nan, name="share_weights"
        )
        self._share_weight_given = ~np.isnan(weights)
        if np.isnan(weights[0]):
            weights[0] = 1.0
        for period in range(1, n_periods):
            if np.isnan(weights[period]):
                weights[period] = weights[period - 1]
        self.share_weights = weights

        self.prices = as_period_array(prices, n_periods, name="prices")
        self.logit_exponent = as_period_array(
            logit_exponent, n_periods, name="logit_exponent"
        )
        self.fuel_pref_elasticity = as_period_array(
            fuel_pref_elasticity, n_periods, name="fuel_pref_elasticity"
        )
        self._fixed_output_input = as_period_array(
            fixed_output, n_periods, name="fixed_output"
        )
        self.capacity_limit = as_period_array(
            capacity_limit, n_periods, default=1.0, name="capacity_limit"
        )
        self.calibrated_output = as_period_array(
            calibrated_output, n_periods, name="calibrated_output"
        )
        self.co2_coefficient = as_period_array(
            co2_coefficient, n_periods, name="co2_coefficient"
        )
        self.input_output_ratio = as_period_array(
            input_output_ratio, n_periods, default=1.0, name="input_output_ratio"
        )
        self.carbon_tax = as_period_array(carbon_tax, n_periods, name="carbon_tax")
        self._validate()

        # Per-period state written during the supply pass
        self.share = np.zeros(n_periods)
        self.fixed_share = np.zeros(n_periods)
        self.output = np.zeros(n_periods)
        self.fixed_output = self._fixed_output_input.copy()
        self.cap_limited = np.zeros(n_periods, dtype=bool)

    @classmethod
    def from_config(cls, config: SubsectorConfig, n_periods: int) -> Subsector:
        """Create a subsector from its configuration entry."""
        return cls(
            config.name,
            n_periods,
            share_weights=config.share_weights,
            prices=config.prices,
            logit_exponent=config.logit_exponent,
            fuel_pref_elasticity=config.fuel_pref_elasticity,
            fixed_output=config.fixed_output,
            capacity_limit=config.capacity_limit,
            calibrated_output=config.calibrated_output,
            co2_coefficient=config.co2_coefficient,
            fuel=config.fuel,
            input_output_ratio=config.input_output_ratio,
            carbon_tax=config.carbon_tax,
        )

    def _validate(self) -> None:
        if np.any(self.capacity_limit <= 0) or np.any(self.capacity_limit > 1):
            msg = f"Capacity limits of subsector '{self.name}' must lie in (0, 1]"
            raise ValueError(msg)
        if np.any(self._fixed_output_input < 0):
            msg = f"Fixed output of subsector '{self.name}' must not be negative"
            raise ValueError(msg)
        if np.any(self.calibrated_output < 0):
            msg = f"Calibrated output of subsector '{self.name}' must not be negative"
            raise ValueError(msg)
        if np.any(self.share_weights < 0):
            msg = f"Share weights of subsector '{self.name}' must not be negative"
            raise ValueError(msg)

    # ------------------------------------------------------------------
    # Period initialisation
    # ------------------------------------------------------------------

    def init_calc(self, period: int) -> None:
        """Prepare *period* for a new round of share calculations.

        Restores the input fixed output and carries an unspecified share
        weight forward from the previous period, which may have been
        rescaled by the sector since construction.
        """
        self.reset_fixed_output(period)
        if period > 0 and not self._share_weight_given[period]:
            self.share_weights[period] = self.share_weights[period - 1]

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    def calc_share(self, period: int, context: EconomicContext) -> None:
        """Compute the unnormalized share for *period*."""
        weight = self.share_weights[period]
        price = self.get_price(period)
        if weight <= 0 or price <= 0:
            self.share[period] = 0.0
            return
        share = weight * price ** self.logit_exponent[period]
        elasticity = self.fuel_pref_elasticity[period]
        if elasticity != 0:
            share *= context.scaled_gdp_per_capita(period) ** elasticity
        self.share[period] = share

    def get_share(self, period: int) -> float:
        return float(self.share[period])

    def set_share(self, share: float, period: int) -> None:
        self.share[period] = share

    def norm_share(self, factor: float, period: int) -> None:
        """Multiply the share by *factor*."""
        self.share[period] *= factor

    def set_share_to_fixed_value(self, period: int) -> None:
        self.share[period] = self.fixed_share[period]

    # ------------------------------------------------------------------
    # Fixed output
    # ------------------------------------------------------------------

    def get_fixed_output(self, period: int) -> float:
        return float(self.fixed_output[period])

    def reset_fixed_output(self, period: int) -> None:
        """Restore the fixed output of *period* to its input value."""
        self.fixed_output[period] = self._fixed_output_input[period]

    def scale_fixed_output(self, factor: float, period: int) -> None:
        """Scale fixed output, and the share it implies, by *factor*."""
        self.fixed_output[period] *= factor
        self.fixed_share[period] *= factor

    def get_fixed_share(self, period: int) -> float:
        return float(self.fixed_share[period])

    def set_fixed_share(self, period: int, share: float) -> None:
        self.fixed_share[period] = share

    def adj_shares(
        self,
        demand: float,
        share_ratio: float,
        total_fixed_output: float,
        period: int,
    ) -> None:
        """Make the share consistent with the sector's fixed output.

        A fixed-output subsector takes the share its fixed output implies;
        a variable one is scaled by *share_ratio*.  Nothing changes when
        the sector has no fixed output.
        """
        if total_fixed_output <= 0:
            return
        if demand <= 0:
            self.share[period] = 0.0
        elif self.fixed_output[period] > 0:
            self.share[period] = self.fixed_output[period] / demand
        else:
            self.share[period] *= share_ratio

    # ------------------------------------------------------------------
    # Capacity limits
    # ------------------------------------------------------------------

    def get_capacity_limit(self, period: int) -> float:
        return float(self.capacity_limit[period])

    def get_cap_limit_status(self, period: int) -> bool:
        return bool(self.cap_limited[period])

    def set_cap_limit_status(self, status: bool, period: int) -> None:
        self.cap_limited[period] = status

    def limit_shares(self, multiplier: float, period: int) -> None:
        """Cap the share at its transformed limit or scale it up.

        A subsector at or over its ceiling is cut to the ceiling and marked
        as limited; this happens only once per pass since the transform
        cannot be applied twice.  Any other non-fixed subsector has its
        share multiplied by *multiplier* to absorb the excess.
        """
        share = self.share[period]
        ceiling = cap_limit_transform(self.capacity_limit[period], share)
        if share >= ceiling:
            if not self.cap_limited[period]:
                self.share[period] = ceiling
                self.cap_limited[period] = True
        else:
            if self.fixed_share[period] == 0:
                self.share[period] = share * multiplier
            self.cap_limited[period] = False

    # ------------------------------------------------------------------
    # Share weights and calibration
    # ------------------------------------------------------------------

    def get_share_weight(self, period: int) -> float:
        return float(self.share_weights[period])

    def scale_share_weight(self, factor: float, period: int) -> None:
        self.share_weights[period] *= factor

    def get_calibration_status(self, period: int) -> bool:
        """Return whether *period* has calibrated output."""
        return bool(self.calibrated_output[period] > 0)

    def get_total_cal_outputs(self, period: int) -> float:
        return float(self.calibrated_output[period])

    def get_cal_and_fixed_outputs(self, period: int, both: bool = True) -> float:
        """Calibrated output, plus fixed output unless *both* is false."""
        total = self.get_total_cal_outputs(period)
        if both:
            total += self.get_fixed_output(period)
        return total

    def scale_calibrated_values(self, period: int, scale: float) -> None:
        self.calibrated_output[period] *= scale

    def all_output_fixed(self, period: int) -> bool:
        """Return whether output cannot respond to prices in *period*.

        That is the case when output is calibrated, fixed, or suppressed by
        a zero share weight.
        """
        return (
            self.get_calibration_status(period)
            or self.fixed_output[period] > 0
            or self.share_weights[period] == 0
        )

    def inputs_all_fixed(self, period: int) -> bool:
        """Return whether the subsector's input is fixed in *period*.

        Input follows output one-for-one through the input-output ratio, so
        this is the same test as :meth:`all_output_fixed`.
        """
        return self.all_output_fixed(period)

    def adjust_for_calibration(
        self,
        sector_demand: float,
        total_fixed_output: float,
        total_cal_outputs: float,
        all_fixed: bool,
        period: int,
    ) -> None:
        """Rescale the share weight so the share meets calibrated output.

        Args:
            sector_demand: Demand for the sector's good.
            total_fixed_output: Fixed output of the whole sector.
            total_cal_outputs: Calibrated output of the whole sector.
            all_fixed: Whether every subsector's output is fixed or
                calibrated, in which case calibrated outputs are scaled to
                fill the demand left over by fixed output.
            period: Model period.
        """
        cal_output = self.get_total_cal_outputs(period)
        if cal_output <= 0:
            return
        # A zero share weight could never be calibrated.
        if self.share_weights[period] == 0:
            self.share_weights[period] = 1.0
        available = sector_demand - total_fixed_output
        if sector_demand <= 0 or available <= 0:
            return
        target = cal_output / sector_demand
        if all_fixed and total_cal_outputs > 0:
            target = cal_output / total_cal_outputs * available / sector_demand
        share = self.share[period]
        if share > TINY_NUM:
            self.share_weights[period] *= target / share

    # ------------------------------------------------------------------
    # Output, input and emissions
    # ------------------------------------------------------------------

    def set_output(self, demand: float, period: int) -> None:
        """Set output to the subsector's share of sector *demand*."""
        self.output[period] = self.share[period] * demand

    def get_output(self, period: int) -> float:
        return float(self.output[period])

    def get_price(self, period: int) -> float:
        """Unit cost including the carbon tax on direct emissions."""
        return float(
            self.prices[period]
            + self.carbon_tax[period] * self.co2_coefficient[period]
        )

    def get_co2_em_factor(self, period: int) -> float:
        return float(self.co2_coefficient[period])

    def get_input(self, period: int) -> float:
        return float(self.output[period] * self.input_output_ratio[period])

    def get_fuel_consumption(self, period: int) -> dict[str, float]:
        """Return fuel name to input quantity for *period*."""
        if not self.fuel:
            return {}
        return {self.fuel: self.get_input(period)}

    def get_emissions(self, period: int) -> dict[str, float]:
        """Return gas name to emitted quantity for *period*."""
        return {CO2_KEY: float(self.output[period] * self.co2_coefficient[period])}

    def get_total_carbon_tax_paid(self, period: int) -> float:
        return self.get_emissions(period)[CO2_KEY] * float(self.carbon_tax[period])

    def get_state(self, period: int) -> dict[str, Any]:
        """Return the subsector's state in *period*."""
        return {
            "name": self.name,
            "share": self.get_share(period),
            "output": self.get_output(period),
            "fixed_output": self.get_fixed_output(period),
            "fixed_share": self.get_fixed_share(period),
            "capacity_limit": self.get_capacity_limit(period),
            "cap_limited": self.get_cap_limit_status(period),
            "share_weight": self.get_share_weight(period),
            "price": self.get_price(period),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
