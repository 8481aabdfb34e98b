"""Tests for the subsector share primitives."""

from __future__ import annotations

import numpy as np
import pytest

from sector_allocation.sectors.config import SubsectorConfig
from sector_allocation.sectors.constants import CO2_KEY
from sector_allocation.sectors.context import EconomicContext
from sector_allocation.sectors.subsector import Subsector

N = 3


def _sub(name: str = "coal", **kwargs) -> Subsector:
    return Subsector(name, N, **kwargs)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self):
        s = _sub()
        assert s.get_share_weight(0) == 1.0
        assert s.get_capacity_limit(0) == 1.0
        assert s.get_fixed_output(0) == 0.0
        assert not s.get_calibration_status(0)
        assert not s.get_cap_limit_status(0)

    def test_share_weights_carried_forward(self):
        s = _sub(share_weights=[0.5])
        np.testing.assert_allclose(s.share_weights, [0.5, 0.5, 0.5])

    def test_from_config(self):
        cfg = SubsectorConfig(
            name="gas", prices=(2.0, 3.0), fixed_output=5.0, capacity_limit=0.5
        )
        s = Subsector.from_config(cfg, N)
        assert s.name == "gas"
        assert s.get_price(1) == 3.0
        assert s.get_price(2) == 0.0
        assert s.get_fixed_output(2) == 5.0
        assert s.get_capacity_limit(0) == 0.5

    @pytest.mark.parametrize("limit", [0.0, -0.1, 1.5])
    def test_invalid_capacity_limit(self, limit):
        with pytest.raises(ValueError, match="Capacity limits"):
            _sub(capacity_limit=limit)

    def test_negative_fixed_output(self):
        with pytest.raises(ValueError, match="Fixed output"):
            _sub(fixed_output=-1.0)

    def test_too_many_periods(self):
        with pytest.raises(ValueError, match="periods"):
            _sub(prices=[1.0, 2.0, 3.0, 4.0])

    def test_repr(self):
        assert repr(_sub("wind")) == "Subsector(name='wind')"


# ---------------------------------------------------------------------------
# Share calculation
# ---------------------------------------------------------------------------


class TestCalcShare:
    def test_logit_share(self):
        ctx = EconomicContext.from_series(1.0, N)
        s = _sub(share_weights=2.0, prices=2.0, logit_exponent=-2.0)
        s.calc_share(0, ctx)
        assert s.get_share(0) == pytest.approx(0.5)

    def test_zero_weight_gives_zero_share(self):
        ctx = EconomicContext.from_series(1.0, N)
        s = _sub(share_weights=0.0, prices=2.0)
        s.calc_share(0, ctx)
        assert s.get_share(0) == 0.0

    def test_non_positive_price_gives_zero_share(self):
        ctx = EconomicContext.from_series(1.0, N)
        s = _sub(prices=0.0)
        s.calc_share(0, ctx)
        assert s.get_share(0) == 0.0

    def test_gdp_elasticity(self):
        ctx = EconomicContext.from_series([1.0, 4.0], N)
        s = _sub(prices=1.0, fuel_pref_elasticity=0.5)
        s.calc_share(1, ctx)
        assert s.get_share(1) == pytest.approx(2.0)

    def test_carbon_tax_raises_price(self):
        s = _sub(prices=2.0, co2_coefficient=0.5, carbon_tax=4.0)
        assert s.get_price(0) == pytest.approx(4.0)


class TestNormShare:
    def test_norm_share_multiplies(self):
        s = _sub()
        s.set_share(0.4, 0)
        s.norm_share(0.5, 0)
        assert s.get_share(0) == pytest.approx(0.2)

    def test_norm_share_by_one_is_idempotent(self):
        s = _sub()
        s.set_share(0.37, 0)
        s.norm_share(1.0, 0)
        s.norm_share(1.0, 0)
        assert s.get_share(0) == 0.37


# ---------------------------------------------------------------------------
# Fixed output
# ---------------------------------------------------------------------------


class TestFixedOutput:
    def test_scale_fixed_output_scales_share_too(self):
        s = _sub(fixed_output=10.0)
        s.set_fixed_share(0, 0.5)
        s.scale_fixed_output(0.5, 0)
        assert s.get_fixed_output(0) == pytest.approx(5.0)
        assert s.get_fixed_share(0) == pytest.approx(0.25)

    def test_reset_restores_input(self):
        s = _sub(fixed_output=10.0)
        s.scale_fixed_output(0.1, 0)
        s.reset_fixed_output(0)
        assert s.get_fixed_output(0) == 10.0

    def test_adj_shares_fixed(self):
        s = _sub(fixed_output=10.0)
        s.adj_shares(40.0, 0.0, 10.0, 0)
        assert s.get_share(0) == pytest.approx(0.25)

    def test_adj_shares_variable(self):
        s = _sub()
        s.set_share(0.8, 0)
        s.adj_shares(40.0, 0.5, 10.0, 0)
        assert s.get_share(0) == pytest.approx(0.4)

    def test_adj_shares_noop_without_fixed_output(self):
        s = _sub()
        s.set_share(0.8, 0)
        s.adj_shares(40.0, 0.5, 0.0, 0)
        assert s.get_share(0) == 0.8

    def test_adj_shares_zero_demand(self):
        s = _sub()
        s.set_share(0.8, 0)
        s.adj_shares(0.0, 0.5, 10.0, 0)
        assert s.get_share(0) == 0.0


# ---------------------------------------------------------------------------
# Capacity limits
# ---------------------------------------------------------------------------


class TestLimitShares:
    def test_over_limit_is_capped_once(self):
        s = _sub(capacity_limit=0.4)
        s.set_share(0.6, 0)
        s.limit_shares(1.5, 0)
        capped = s.get_share(0)
        assert capped == pytest.approx(0.4, abs=1e-6)
        assert s.get_cap_limit_status(0)
        s.limit_shares(1.5, 0)
        assert s.get_share(0) == capped

    def test_under_limit_is_scaled(self):
        s = _sub()
        s.set_share(0.3, 0)
        s.limit_shares(1.5, 0)
        assert s.get_share(0) == pytest.approx(0.45)
        assert not s.get_cap_limit_status(0)


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------


class TestCalibration:
    def test_all_output_fixed(self):
        assert _sub(calibrated_output=5.0).all_output_fixed(0)
        assert _sub(fixed_output=5.0).all_output_fixed(0)
        assert _sub(share_weights=0.0).all_output_fixed(0)
        assert not _sub().all_output_fixed(0)

    def test_adjust_for_calibration(self):
        s = _sub(calibrated_output=30.0)
        s.set_share(0.6, 0)
        s.adjust_for_calibration(100.0, 0.0, 30.0, False, 0)
        assert s.get_share_weight(0) == pytest.approx(0.5)

    def test_adjust_for_calibration_all_fixed(self):
        s = _sub(calibrated_output=30.0)
        s.set_share(0.5, 0)
        # 30 of 60 calibrated output fills half of the 80 left by fixed output
        s.adjust_for_calibration(100.0, 20.0, 60.0, True, 0)
        assert s.get_share_weight(0) == pytest.approx(0.8)

    def test_zero_weight_reset_before_calibration(self):
        s = _sub(share_weights=0.0, calibrated_output=10.0)
        s.adjust_for_calibration(100.0, 0.0, 10.0, False, 0)
        assert s.get_share_weight(0) == 1.0

    def test_scale_calibrated_values(self):
        s = _sub(calibrated_output=10.0)
        s.scale_calibrated_values(0, 2.0)
        assert s.get_total_cal_outputs(0) == 20.0
        assert s.get_cal_and_fixed_outputs(0, both=False) == 20.0


# ---------------------------------------------------------------------------
# Output and emissions
# ---------------------------------------------------------------------------


class TestOutput:
    def test_output_input_emissions(self):
        s = _sub(
            fuel="coal", input_output_ratio=2.5, co2_coefficient=0.2, carbon_tax=3.0
        )
        s.set_share(0.5, 0)
        s.set_output(100.0, 0)
        assert s.get_output(0) == pytest.approx(50.0)
        assert s.get_fuel_consumption(0) == {"coal": pytest.approx(125.0)}
        assert s.get_emissions(0) == {CO2_KEY: pytest.approx(10.0)}
        assert s.get_total_carbon_tax_paid(0) == pytest.approx(30.0)

    def test_no_fuel_no_consumption(self):
        assert _sub().get_fuel_consumption(0) == {}

    def test_get_state(self):
        state = _sub("wind", capacity_limit=0.2).get_state(0)
        assert state["name"] == "wind"
        assert state["capacity_limit"] == 0.2
        assert state["cap_limited"] is False
