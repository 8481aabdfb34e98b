"""Tests for calibration consistency checks."""

from __future__ import annotations

import pytest

from sector_allocation.sectors.calibration import (
    CalibrationCheck,
    check_calibration,
    outputs_all_fixed,
)
from sector_allocation.sectors.subsector import Subsector


def _sub(name, **kwargs):
    return Subsector(name, 2, **kwargs)


class TestOutputsAllFixed:
    def test_all_calibrated_or_fixed(self):
        subs = [_sub("a", calibrated_output=5.0), _sub("b", fixed_output=3.0)]
        assert outputs_all_fixed(subs, 0)

    def test_one_free_subsector(self):
        subs = [_sub("a", calibrated_output=5.0), _sub("b")]
        assert not outputs_all_fixed(subs, 0)


class TestCheckCalibration:
    def test_mismatch_detected_when_all_fixed(self):
        subs = [_sub("a", calibrated_output=95.0)]
        check = check_calibration(subs, 100.0, 1, 0.01)
        assert not check.consistent
        assert check.diff == pytest.approx(-5.0)
        assert check.all_fixed
        assert abs(check.diff_fraction) > 0.01

    def test_relative_mismatch_ignored_when_not_all_fixed(self):
        subs = [_sub("a", calibrated_output=95.0), _sub("b")]
        check = check_calibration(subs, 100.0, 1, 0.01)
        assert check.consistent

    def test_calibrated_above_output_detected(self):
        subs = [_sub("a", calibrated_output=95.0), _sub("b")]
        check = check_calibration(subs, 90.0, 1, 0.01)
        assert not check.consistent
        assert check.diff == pytest.approx(5.0)

    def test_fixed_output_counts_toward_total(self):
        subs = [_sub("a", calibrated_output=80.0), _sub("b", fixed_output=20.0)]
        check = check_calibration(subs, 100.0, 1, 0.01)
        assert check.consistent
        assert check.total_fixed == pytest.approx(100.0)

    def test_no_calibration_is_consistent(self):
        subs = [_sub("a"), _sub("b")]
        check = check_calibration(subs, 0.0, 1, 0.01)
        assert check.consistent
        assert check.diff_fraction == 0.0

    def test_diff_fraction(self):
        check = CalibrationCheck(consistent=False, cal_outputs=50.0, diff=5.0)
        assert check.diff_fraction == pytest.approx(0.1)
