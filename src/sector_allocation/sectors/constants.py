"""Numerical constants shared by the share allocation routines."""

from __future__ import annotations

#: Tolerance on the partition of unity and on capacity-limit excesses.
SMALL_NUM: float = 1e-10

#: Threshold below which a share or share-weight sum is treated as zero.
TINY_NUM: float = 1e-16

#: Demand value the marketplace reports before the first real solution.
#: Supply/demand mismatches at exactly this value are not reported.
BOOTSTRAP_DEMAND: float = 1.0

#: Gas key used for the per-sector emissions summary.
CO2_KEY: str = "CO2"

#: Market information key under which the CO2 emissions factor is published.
CO2_FACTOR_KEY: str = "CO2EmFactor"

#: Key of the total entry in a fuel consumption map.
TOTAL_FUEL_KEY: str = "zTotal"
