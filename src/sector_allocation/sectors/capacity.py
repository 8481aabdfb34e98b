"""Capacity-limit resolution.

Shares that exceed a subsector's capacity limit are cut back to the limit
and the excess is handed to the subsectors that still have room, in
proportion to their current shares.  Redistribution can push another
subsector over its own limit, so the adjustment repeats until no subsector
is over its ceiling.

For the shares ``S`` of a sector::

    sum_not_limited(S) + sum_limited(S) + over_limit = 1

and scaling every not-limited share by ``a`` gives::

    a = 1 + over_limit / sum_not_limited(S)

Fixed-output subsectors are must-run and take no part in the adjustment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sector_allocation.sectors.constants import SMALL_NUM

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sector_allocation.sectors.subsector import Subsector

#: Multiplier and exponent of the logistic capacity-limit transform.
CAP_LIMIT_MULT: float = 1.4
CAP_LIMIT_EXPONENT: float = 4.0

# exp() overflows a double past ~709.
_MAX_EXP_ARG: float = 700.0


def cap_limit_transform(capacity_limit: float, share: float) -> float:
    """Transform a capacity limit into an effective share ceiling.

    Unlimited subsectors (limit of 1) keep their limit.  Otherwise the
    ceiling follows a logistic curve in ``share / capacity_limit`` that
    approaches the limit from below as the share grows, so a share well
    over its limit is cut to (almost exactly) the limit.

    Args:
        capacity_limit: Maximum fraction of sector output, in (0, 1].
        share: Current normalized share.

    Returns:
        The share ceiling.
    """
    if capacity_limit >= 1 - SMALL_NUM:
        return capacity_limit
    if share <= 0:
        return 0.0
    ratio = share / capacity_limit
    exponent = (CAP_LIMIT_MULT * ratio) ** CAP_LIMIT_EXPONENT
    if exponent > _MAX_EXP_ARG:
        return capacity_limit
    factor = math.exp(exponent)
    return share * factor / (1 + ratio * factor)


@dataclass
class CapacityLimitResult:
    """Outcome of a capacity-limit resolution.

    Attributes:
        converged: ``True`` if no subsector is left over its ceiling.
        iterations: Number of redistribution rounds performed.
        infeasible: ``True`` if excess share remained with no subsector
            left to absorb it.
        over_limit: Share still over ceilings when the resolver stopped.
        fixed_shares: Sum of the shares held by fixed-output subsectors.
    """

    converged: bool = True
    iterations: int = 0
    infeasible: bool = False
    over_limit: float = 0.0
    fixed_shares: float = 0.0


def _ceiling(subsector: Subsector, period: int) -> float:
    share = subsector.get_share(period)
    # The transform can only be applied once per pass.
    if subsector.get_cap_limit_status(period):
        return share
    return cap_limit_transform(subsector.get_capacity_limit(period), share)


def _tally(subsectors: Sequence[Subsector], period: int) -> tuple[float, float, float]:
    """Return the share over ceilings, the share with room, and fixed shares."""
    over_limit = 0.0
    not_limited = 0.0
    fixed_shares = 0.0
    for sub in subsectors:
        if sub.get_fixed_share(period) > 0:
            fixed_shares += sub.get_fixed_share(period)
            continue
        share = sub.get_share(period)
        ceiling = _ceiling(sub, period)
        if share - ceiling > SMALL_NUM:
            over_limit += share - ceiling
        if share < ceiling:
            not_limited += share
    return over_limit, not_limited, fixed_shares


def resolve_capacity_limits(
    subsectors: Sequence[Subsector], period: int
) -> CapacityLimitResult:
    """Redistribute share from over-limit subsectors until none remain.

    Shares must already be normalized.  At most ``len(subsectors)`` rounds
    are made, since each round permanently limits at least one subsector.
    The best-effort allocation is kept when the limits cannot be met.

    Args:
        subsectors: The sector's subsectors, in model input order.
        period: Model period.

    Returns:
        A :class:`CapacityLimitResult` describing the resolution.
    """
    result = CapacityLimitResult()
    over_limit, not_limited, result.fixed_shares = _tally(subsectors, period)

    while over_limit > 0 and result.iterations < len(subsectors):
        if not_limited <= 0:
            result.infeasible = True
            break
        result.iterations += 1
        multiplier = 1 + over_limit / not_limited
        for sub in subsectors:
            if sub.get_fixed_share(period) == 0:
                sub.limit_shares(multiplier, period)
        over_limit, not_limited, _ = _tally(subsectors, period)

    result.over_limit = over_limit
    # Every round caps a subsector, so running out of rounds with share
    # still over limit only happens on degenerate input.
    result.converged = over_limit <= 0
    return result
