"""Base marketplace class for the allocation core."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseMarketplace(ABC):
    """Abstract registry of supply, demand and price per good and region.

    Sectors read their demand from the marketplace and publish their price,
    supply and market information back to it.  The registry is opaque to
    the allocation core: only the operations below are relied upon.
    """

    @abstractmethod
    def create_market(self, region: str, market: str, good: str) -> bool:
        """Register *good* in *market* and map *region* onto it."""

    @abstractmethod
    def get_demand(self, good: str, region: str, period: int) -> float:
        """Return the demand for *good* in the market serving *region*."""

    @abstractmethod
    def set_price(self, good: str, region: str, price: float, period: int) -> None:
        """Set the price of *good* in the market serving *region*."""

    @abstractmethod
    def add_to_supply(
        self, good: str, region: str, quantity: float, period: int
    ) -> None:
        """Add *quantity* to the supply of *good* in the market serving *region*."""

    @abstractmethod
    def set_market_info(
        self, good: str, region: str, period: int, key: str, value: float
    ) -> None:
        """Attach a named value to the market for *good* serving *region*."""

    @abstractmethod
    def does_market_exist(self, good: str, region: str, period: int) -> bool:
        """Return whether a market for *good* serves *region*."""
