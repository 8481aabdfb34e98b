"""Adjustment of shares for fixed (must-run) output.

Fixed output is an absolute quantity, not a share.  Once market demand is
known it implies a share ``fixed_output / demand``; the remaining demand is
shared out among the variable subsectors in proportion to their current
shares.  Fixed output larger than demand is scaled back so supply never
exceeds demand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sector_allocation.sectors.errors import FatalArithmeticError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sector_allocation.sectors.subsector import Subsector


@dataclass
class FixedOutputResult:
    """Outcome of a fixed-output adjustment.

    Attributes:
        total_fixed_output: Fixed output after any scaling (never above
            demand).
        variable_shares: Sum of the variable shares before adjustment.
        variable_shares_new: Share of demand left for variable subsectors.
        share_ratio: Factor applied to every variable share.
        scaled: ``True`` if fixed output exceeded demand and was scaled.
    """

    total_fixed_output: float = 0.0
    variable_shares: float = 0.0
    variable_shares_new: float = 1.0
    share_ratio: float = 1.0
    scaled: bool = False


def adjust_for_fixed_output(
    subsectors: Sequence[Subsector], market_demand: float, period: int
) -> FixedOutputResult:
    """Make subsector shares consistent with fixed output and demand.

    Args:
        subsectors: The sector's subsectors, in model input order.
        market_demand: Demand for the sector's good.
        period: Model period.

    Returns:
        A :class:`FixedOutputResult` with the quantities used.

    Raises:
        FatalArithmeticError: If there is fixed output but no positive
            demand to express it as a share of.
    """
    result = FixedOutputResult()
    total_fixed_output = 0.0
    for sub in subsectors:
        sub.reset_fixed_output(period)
        fixed_output = sub.get_fixed_output(period)
        sub.set_fixed_share(period, 0.0)
        if fixed_output == 0:
            result.variable_shares += sub.get_share(period)
        elif market_demand > 0:
            sub.set_fixed_share(period, fixed_output / market_demand)
        total_fixed_output += fixed_output

    if total_fixed_output > 0 and market_demand <= 0:
        msg = (
            f"Fixed output of {total_fixed_output} cannot be shared out "
            f"against a market demand of {market_demand} in period {period}"
        )
        raise FatalArithmeticError(msg)

    if total_fixed_output > market_demand:
        scale = market_demand / total_fixed_output
        for sub in subsectors:
            sub.scale_fixed_output(scale, period)
        total_fixed_output = market_demand
        result.scaled = True
    result.total_fixed_output = total_fixed_output

    if total_fixed_output > 0:
        result.variable_shares_new = max(1 - total_fixed_output / market_demand, 0.0)
        if result.variable_shares == 0:
            result.share_ratio = 0.0
        else:
            result.share_ratio = result.variable_shares_new / result.variable_shares
        for sub in subsectors:
            sub.adj_shares(
                market_demand, result.share_ratio, total_fixed_output, period
            )
    return result
