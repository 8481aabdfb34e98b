"""Sector share allocation core.

Apportions each sector's demand among competing subsectors, honouring
calibration targets, fixed (must-run) output and capacity limits.
"""

from __future__ import annotations

from sector_allocation.sectors.calibration import CalibrationCheck, check_calibration
from sector_allocation.sectors.capacity import (
    CapacityLimitResult,
    cap_limit_transform,
    resolve_capacity_limits,
)
from sector_allocation.sectors.config import ModelConfig, load_config
from sector_allocation.sectors.context import EconomicContext
from sector_allocation.sectors.errors import (
    Diagnostic,
    DiagnosticKind,
    FatalArithmeticError,
    SectorAllocationError,
)
from sector_allocation.sectors.fixed_output import (
    FixedOutputResult,
    adjust_for_fixed_output,
)
from sector_allocation.sectors.markets import BaseMarketplace, Marketplace
from sector_allocation.sectors.model import PeriodRecord, Simulation, SimulationResult
from sector_allocation.sectors.sector import Sector
from sector_allocation.sectors.subsector import Subsector

__all__ = [
    "BaseMarketplace",
    "CalibrationCheck",
    "CapacityLimitResult",
    "Diagnostic",
    "DiagnosticKind",
    "EconomicContext",
    "FatalArithmeticError",
    "FixedOutputResult",
    "Marketplace",
    "ModelConfig",
    "PeriodRecord",
    "Sector",
    "SectorAllocationError",
    "Simulation",
    "SimulationResult",
    "Subsector",
    "adjust_for_fixed_output",
    "cap_limit_transform",
    "check_calibration",
    "load_config",
    "resolve_capacity_limits",
]
