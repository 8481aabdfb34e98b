"""Pytest configuration and fixtures."""

import sys
from collections.abc import Callable, Generator

import pytest

from sector_allocation.sectors.config import CalibrationConfig, DebugConfig
from sector_allocation.sectors.context import EconomicContext
from sector_allocation.sectors.markets.marketplace import Marketplace
from sector_allocation.sectors.sector import Sector
from sector_allocation.sectors.subsector import Subsector

N_PERIODS = 3
REGION = "usa"


@pytest.fixture(autouse=True)
def reset_typer_force_terminal() -> Generator[None]:
    """Reset typer.rich_utils.FORCE_TERMINAL before each test.

    When FORCE_COLOR=1 is set in CI, the first CLI ``--help`` invocation
    imports ``typer.rich_utils`` which sets the module-level constant
    ``FORCE_TERMINAL = True`` at import time.  The cached value would make
    Rich inject ANSI escape codes into later CLI output, so it is reset to
    ``None`` before every test.
    """
    ru = sys.modules.get("typer.rich_utils")
    old = ru.FORCE_TERMINAL if ru is not None else None
    if ru is not None:
        ru.FORCE_TERMINAL = None
    yield
    if ru is not None:
        ru.FORCE_TERMINAL = old


@pytest.fixture
def context() -> EconomicContext:
    """A context with flat GDP per capita."""
    return EconomicContext.from_series(1.0, N_PERIODS)


@pytest.fixture
def marketplace() -> Marketplace:
    return Marketplace(N_PERIODS)


@pytest.fixture
def make_sector(
    marketplace: Marketplace,
) -> Callable[..., Sector]:
    """Factory for a registered sector with demand posted in every period."""

    def _make(
        subsectors: list[Subsector],
        demand: float = 100.0,
        *,
        name: str = "electricity",
        calibration: CalibrationConfig | None = None,
        debug: DebugConfig | None = None,
    ) -> Sector:
        sector = Sector(
            name,
            REGION,
            N_PERIODS,
            marketplace,
            subsectors=subsectors,
            calibration=calibration,
            debug=debug or DebugConfig(debug_checking=True),
        )
        sector.complete_init()
        for period in range(N_PERIODS):
            marketplace.set_demand(name, REGION, demand, period)
        return sector

    return _make
