"""In-memory marketplace.

Each :class:`Market` trades one good in one named market and holds
per-period demand, supply, price and free-form market information.
Several regions may be mapped onto the same market, in which case their
supplies and demands are pooled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from sector_allocation.sectors.markets.base import BaseMarketplace

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Market:
    """State of a single market.

    Attributes:
        good: Name of the traded good (the supplying sector's name).
        name: Market name.
        demand: Demand per period.
        supply: Supply per period.
        price: Price per period.
        info: Named market values per period.
    """

    good: str
    name: str
    demand: np.ndarray
    supply: np.ndarray
    price: np.ndarray
    info: list[dict[str, float]] = field(default_factory=list)

    @classmethod
    def empty(cls, good: str, name: str, n_periods: int) -> Market:
        """Create a market with all per-period values at zero."""
        return cls(
            good=good,
            name=name,
            demand=np.zeros(n_periods),
            supply=np.zeros(n_periods),
            price=np.zeros(n_periods),
            info=[{} for _ in range(n_periods)],
        )


class Marketplace(BaseMarketplace):
    """Registry of markets keyed by good and region.

    Attributes:
        n_periods: Number of model periods every market is sized for.
    """

    def __init__(self, n_periods: int) -> None:
        self.n_periods = n_periods
        self._markets: dict[tuple[str, str], Market] = {}
        self._region_to_market: dict[tuple[str, str], str] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def create_market(self, region: str, market: str, good: str) -> bool:
        """Register *good* in *market* and map *region* onto it.

        Args:
            region: Region that supplies or demands the good.
            market: Name of the market serving the region.
            good: Name of the traded good.

        Returns:
            ``True`` if a new market was created, ``False`` if the region
            was mapped onto an existing one.
        """
        key = (good, market)
        created = key not in self._markets
        if created:
            self._markets[key] = Market.empty(good, market, self.n_periods)
        self._region_to_market[(good, region)] = market
        return created

    def _find(self, good: str, region: str) -> Market | None:
        market = self._region_to_market.get((good, region))
        if market is None:
            return None
        return self._markets[(good, market)]

    def _lookup(self, good: str, region: str, period: int) -> Market | None:
        market = self._find(good, region)
        if market is None:
            logger.warning("No market for %s in region %s", good, region)
            return None
        if not 0 <= period < self.n_periods:
            logger.warning(
                "Period %d out of range for market %s in %s", period, good, region
            )
            return None
        return market

    # ------------------------------------------------------------------
    # BaseMarketplace interface
    # ------------------------------------------------------------------

    def get_demand(self, good: str, region: str, period: int) -> float:
        market = self._lookup(good, region, period)
        return float(market.demand[period]) if market else 0.0

    def set_price(self, good: str, region: str, price: float, period: int) -> None:
        market = self._lookup(good, region, period)
        if market:
            market.price[period] = price

    def add_to_supply(
        self, good: str, region: str, quantity: float, period: int
    ) -> None:
        market = self._lookup(good, region, period)
        if market:
            market.supply[period] += quantity

    def set_market_info(
        self, good: str, region: str, period: int, key: str, value: float
    ) -> None:
        market = self._lookup(good, region, period)
        if market:
            market.info[period][key] = value

    def does_market_exist(self, good: str, region: str, period: int) -> bool:
        return self._find(good, region) is not None and 0 <= period < self.n_periods

    # ------------------------------------------------------------------
    # Additional accessors
    # ------------------------------------------------------------------

    def set_demand(self, good: str, region: str, demand: float, period: int) -> None:
        """Overwrite the demand for *good* in the market serving *region*."""
        market = self._lookup(good, region, period)
        if market:
            market.demand[period] = demand

    def add_to_demand(
        self, good: str, region: str, demand: float, period: int
    ) -> None:
        """Add to the demand for *good* in the market serving *region*."""
        market = self._lookup(good, region, period)
        if market:
            market.demand[period] += demand

    def get_supply(self, good: str, region: str, period: int) -> float:
        """Return the supply of *good* in the market serving *region*."""
        market = self._lookup(good, region, period)
        return float(market.supply[period]) if market else 0.0

    def get_price(self, good: str, region: str, period: int) -> float:
        """Return the price of *good* in the market serving *region*."""
        market = self._lookup(good, region, period)
        return float(market.price[period]) if market else 0.0

    def get_market_info(
        self, good: str, region: str, period: int, key: str
    ) -> float:
        """Return a named market value, or 0.0 when it was never set."""
        market = self._lookup(good, region, period)
        if not market:
            return 0.0
        return market.info[period].get(key, 0.0)

    def clear_supply(self, period: int) -> None:
        """Reset the supply of every market for a new supply pass."""
        for market in self._markets.values():
            market.supply[period] = 0.0

    def get_state(self) -> dict[str, Any]:
        """Return a summary of the registered markets."""
        return {
            "n_markets": len(self._markets),
            "markets": sorted(f"{good}:{name}" for good, name in self._markets),
        }
