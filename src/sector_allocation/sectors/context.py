"""Economic context handed to every share calculation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sector_allocation.sectors.periods import as_period_array

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np


@dataclass
class EconomicContext:
    """Regional macroeconomic drivers for one model run.

    Attributes:
        gdp_per_capita: GDP per capita of the region, one value per period.
    """

    gdp_per_capita: np.ndarray

    @classmethod
    def from_series(
        cls, gdp_per_capita: float | Sequence[float], n_periods: int
    ) -> EconomicContext:
        """Build a context from a scalar or per-period GDP per capita input."""
        return cls(
            gdp_per_capita=as_period_array(
                gdp_per_capita, n_periods, default=1.0, name="gdp_per_capita"
            )
        )

    @property
    def n_periods(self) -> int:
        """Number of periods covered by the context."""
        return len(self.gdp_per_capita)

    def scaled_gdp_per_capita(self, period: int) -> float:
        """GDP per capita in *period* relative to the base period.

        Returns 1.0 when either value is unavailable or not positive.
        """
        if not 0 <= period < self.n_periods:
            return 1.0
        base = float(self.gdp_per_capita[0])
        current = float(self.gdp_per_capita[period])
        if base <= 0 or current <= 0:
            return 1.0
        return current / base
