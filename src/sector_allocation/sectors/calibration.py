"""Calibration consistency checks.

A sector is calibrated in a period when the output it actually produced
matches the calibrated plus fixed output of its subsectors.  Mismatches are
a reporting signal for the caller; nothing here raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sector_allocation.sectors.subsector import Subsector


@dataclass
class CalibrationCheck:
    """Result of comparing calibrated and actual output.

    Attributes:
        consistent: ``False`` when the mismatch is beyond tolerance.
        cal_outputs: Sum of calibrated outputs.
        total_fixed: Calibrated plus fixed output.
        actual_output: Output the sector produced.
        diff: ``total_fixed - actual_output``.
        all_fixed: Whether every subsector's output is fixed or calibrated.
    """

    consistent: bool
    cal_outputs: float = 0.0
    total_fixed: float = 0.0
    actual_output: float = 0.0
    diff: float = 0.0
    all_fixed: bool = False

    @property
    def diff_fraction(self) -> float:
        """Mismatch relative to calibrated output (0 without calibration)."""
        if self.cal_outputs == 0:
            return 0.0
        return self.diff / self.cal_outputs


def outputs_all_fixed(subsectors: Sequence[Subsector], period: int) -> bool:
    """Return whether no subsector's output responds to prices in *period*."""
    return all(sub.all_output_fixed(period) for sub in subsectors)


def check_calibration(
    subsectors: Sequence[Subsector],
    actual_output: float,
    period: int,
    tolerance: float,
) -> CalibrationCheck:
    """Compare calibrated plus fixed output with *actual_output*.

    The check fails when there is calibrated output and either the absolute
    difference exceeds *tolerance*, or the relative difference exceeds it
    while every subsector's output is fixed or calibrated.

    Args:
        subsectors: The sector's subsectors.
        actual_output: Output the sector produced in *period*.
        period: Model period.
        tolerance: Allowed absolute or relative mismatch.

    Returns:
        A :class:`CalibrationCheck` with the quantities compared.
    """
    cal_outputs = sum(sub.get_total_cal_outputs(period) for sub in subsectors)
    fixed = sum(sub.get_fixed_output(period) for sub in subsectors)
    total_fixed = cal_outputs + fixed
    check = CalibrationCheck(
        consistent=True,
        cal_outputs=cal_outputs,
        total_fixed=total_fixed,
        actual_output=actual_output,
        diff=total_fixed - actual_output,
        all_fixed=outputs_all_fixed(subsectors, period),
    )
    if cal_outputs > 0 and (
        check.diff > tolerance
        or (abs(check.diff_fraction) > tolerance and check.all_fixed)
    ):
        check.consistent = False
    return check
