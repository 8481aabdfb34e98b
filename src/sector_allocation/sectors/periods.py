"""Helpers for per-period model arrays."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def as_period_array(
    value: float | Sequence[float] | None,
    n_periods: int,
    *,
    default: float = 0.0,
    name: str = "value",
) -> np.ndarray:
    """Expand a scalar or sequence input into a float array of *n_periods*.

    Args:
        value: Scalar applied to every period, a sequence with at most one
            value per period, or *None* for *default*.
        n_periods: Number of model periods.
        default: Fill value for *None* and for periods past the end of a
            short sequence.
        name: Field name used in error messages.

    Returns:
        A new array of length *n_periods*.

    Raises:
        ValueError: If the sequence has more values than there are periods.
    """
    out = np.full(n_periods, default, dtype=float)
    if value is None:
        return out
    if isinstance(value, int | float):
        out[:] = float(value)
        return out
    values = [float(v) for v in value]
    if len(values) > n_periods:
        msg = f"{name} has {len(values)} values but the model has {n_periods} periods"
        raise ValueError(msg)
    out[: len(values)] = values
    return out
