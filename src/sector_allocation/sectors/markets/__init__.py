"""Marketplace collaborators for the allocation core."""

from __future__ import annotations

from sector_allocation.sectors.markets.base import BaseMarketplace
from sector_allocation.sectors.markets.marketplace import Market, Marketplace

__all__ = [
    "BaseMarketplace",
    "Market",
    "Marketplace",
]
