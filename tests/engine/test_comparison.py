"""Tests for engine.economics.comparison: savings, NPV, payback and IRR."""

from __future__ import annotations

import math
from dataclasses import replace

import pytest

from engine.cooling.equipment import AirCooling, ImmersionCooling, ImmersionUnitCosts
from engine.economics.comparison import (
    compare,
    internal_rate_of_return,
    payback_period,
)
from engine.economics.errors import (
    CalculationError,
    ConfigurationError,
    ValidationError,
)
from engine.economics.opex import CostCategory


# ======================================================================
# Payback period
# ======================================================================


class TestPaybackPeriod:
    """Linear interpolation on the cumulative value."""

    def test_immediate(self):
        """Non-negative year 0 pays back at 0."""
        assert payback_period([0.0, 5.0], [0.0, 5.0]) == 0.0

    def test_interpolated(self):
        """-100, then +40/year: crosses at 2.5 years."""
        savings = [-100.0, 40.0, 40.0, 40.0]
        cumulative = [-100.0, -60.0, -20.0, 20.0]
        assert payback_period(cumulative, savings) == pytest.approx(2.5)

    def test_exact_boundary(self):
        savings = [-100.0, 50.0, 50.0]
        cumulative = [-100.0, -50.0, 0.0]
        assert payback_period(cumulative, savings) == pytest.approx(2.0)

    def test_never(self):
        assert payback_period([-100.0, -90.0, -80.0], [-100.0, 10.0, 10.0]) is None


# ======================================================================
# IRR
# ======================================================================


class TestIRR:
    """Brent's-method IRR of the savings series."""

    def test_known_value(self):
        """-100 then 110 yields 10%."""
        assert internal_rate_of_return([-100.0, 110.0]) == pytest.approx(0.10, abs=1e-8)

    def test_no_sign_change(self):
        assert internal_rate_of_return([100.0, 10.0]) is None
        assert internal_rate_of_return([0.0, 0.0, 0.0]) is None

    def test_npv_zero_at_irr(self):
        flows = [-1000.0, 300.0, 400.0, 500.0]
        irr = internal_rate_of_return(flows)
        npv = sum(cf / (1 + irr) ** i for i, cf in enumerate(flows))
        assert abs(npv) < 1e-6


# ======================================================================
# Reference scenario
# ======================================================================


class TestReferenceScenario:
    """1.5 MW hall: air vs immersion at $95k per tank over five years."""

    @pytest.fixture
    def result(self, air_cooling, immersion_cooling, financials):
        return compare(air_cooling, immersion_cooling, financials)

    def test_pue(self, result):
        assert 1.2 <= result.baseline.resolved.pue.pue <= 2.0
        assert result.alternative.resolved.pue.pue == pytest.approx(1.03, abs=0.01)

    def test_capex_premium_in_year_zero(self, result):
        """Immersion costs more up front."""
        assert result.savings[0] < 0
        assert result.capex_savings == pytest.approx(result.savings[0])

    def test_payback_inside_horizon(self, result):
        assert result.payback_years is not None
        assert 2.0 <= result.payback_years <= 3.0
        assert result.breakeven is True

    def test_positive_npv(self, result):
        assert result.npv_savings > 0

    def test_irr_positive(self, result):
        assert result.irr is not None
        assert result.irr > result.discount_rate

    def test_series_lengths(self, result):
        n = result.analysis_years + 1
        assert len(result.savings) == n
        assert len(result.cumulative_savings) == n
        assert len(result.discounted_savings) == n
        assert len(result.baseline.cash_flows) == n

    def test_cumulative_is_running_sum(self, result):
        running = 0.0
        for s, c in zip(result.savings, result.cumulative_savings):
            running += s
            assert c == pytest.approx(running)

    def test_npv_identity(self, result):
        expected = result.baseline.npv_cost - result.alternative.npv_cost
        assert result.npv_savings == pytest.approx(expected, rel=1e-9)

    def test_coolant_replacement_in_year_two(self, result):
        """The 24-month replacement makes year 2 the costliest consumables year."""
        consumables = [
            cf.cost(CostCategory.CONSUMABLES) for cf in result.alternative.cash_flows
        ]
        assert consumables[2] > consumables[1]
        assert consumables[2] > consumables[3]

    def test_tco_savings(self, result):
        assert result.tco_savings == pytest.approx(
            result.baseline.total_cost - result.alternative.total_cost
        )

    def test_environmental(self, result):
        env = result.environmental
        assert env.energy_savings_kwh_annual > 0
        assert env.carbon_savings_kg_co2_annual == pytest.approx(
            env.energy_savings_kwh_annual * 0.4
        )

    def test_as_dict(self, result):
        data = result.as_dict()
        assert data["currency"] == "USD"
        assert len(data["yearly"]) == 6
        assert data["summary"]["payback_years"] == result.payback_years
        assert data["baseline"]["kind"] == "air_cooling"
        assert data["alternative"]["kind"] == "immersion_cooling"
        assert len(data["configuration_hash"]) == 64


# ======================================================================
# Properties
# ======================================================================


class TestComparisonProperties:
    """Determinism, degeneracy and monotonicity."""

    def test_deterministic(self, air_cooling, immersion_cooling, financials):
        """Identical inputs give identical results."""
        a = compare(air_cooling, immersion_cooling, financials)
        b = compare(air_cooling, immersion_cooling, financials)
        assert a.as_dict() == b.as_dict()

    def test_self_comparison(self, air_cooling, financials):
        """A configuration compared with itself saves nothing."""
        result = compare(air_cooling, air_cooling, financials)
        assert all(s == 0.0 for s in result.savings)
        assert result.npv_savings == 0.0
        assert result.payback_years == 0.0
        assert result.breakeven is True
        assert result.irr is None

    def test_payback_monotone_in_tank_cost(self, air_cooling, financials):
        """Pricier tanks never pay back sooner."""
        paybacks = []
        for price in (20_000.0, 35_000.0, 60_000.0, 95_000.0, 150_000.0, 250_000.0):
            immersion = ImmersionCooling(
                input_method="auto_optimize",
                target_power_kw=1500.0,
                unit_costs=ImmersionUnitCosts(tank_unit_cost=price),
            )
            p = compare(air_cooling, immersion, financials).payback_years
            paybacks.append(math.inf if p is None else p)
        assert paybacks == sorted(paybacks)
        assert paybacks[0] == 0.0
        assert paybacks[-1] == math.inf

    def test_higher_discount_lowers_npv(self, air_cooling, immersion_cooling, financials):
        """Savings arrive after the outlay, so discounting erodes them."""
        low = compare(air_cooling, immersion_cooling, replace(financials, discount_rate=0.04))
        high = compare(air_cooling, immersion_cooling, replace(financials, discount_rate=0.15))
        assert high.npv_savings < low.npv_savings

    def test_zero_escalation_flat_savings(self, air_cooling, financials):
        """Air vs air with different COP: constant yearly savings."""
        efficient = replace(air_cooling, hvac_cop=4.0)
        fin = replace(
            financials,
            energy_escalation_rate=0.0,
            maintenance_escalation_rate=0.0,
            labor_escalation_rate=0.0,
        )
        savings = compare(air_cooling, efficient, fin).savings[1:]
        assert all(s == pytest.approx(savings[0], rel=1e-12) for s in savings)

    def test_currency_scales_results(self, air_cooling, immersion_cooling, financials):
        usd = compare(air_cooling, immersion_cooling, financials)
        eur = compare(air_cooling, immersion_cooling, replace(financials, currency="EUR"))
        assert eur.currency == "EUR"
        assert eur.npv_savings == pytest.approx(usd.npv_savings * 0.92)
        assert eur.payback_years == pytest.approx(usd.payback_years)


# ======================================================================
# Errors and warnings
# ======================================================================


class TestComparisonErrors:
    """Each failure mode surfaces as its own error kind."""

    def test_validation_error(self, immersion_cooling, financials):
        with pytest.raises(ValidationError):
            compare(AirCooling(rack_count=0, power_per_rack_kw=15.0), immersion_cooling, financials)

    def test_configuration_error(self, immersion_cooling, financials, assumptions):
        """Loosened bounds let an impossible efficiency through to the PUE model."""
        loose = assumptions.with_limits(efficiency=(0.1, 1.5))
        air = AirCooling(
            rack_count=10,
            power_per_rack_kw=10.0,
            hvac_cop=10.0,
            hvac_efficiency=1.0,
            ups_efficiency=1.5,
        )
        with pytest.raises(ConfigurationError):
            compare(air, immersion_cooling, financials, loose)

    def test_calculation_error(self, air_cooling, immersion_cooling, financials, assumptions):
        """Escalation that overflows a float is a calculation error."""
        loose = assumptions.with_limits(escalation_rate=(0.0, 1e200))
        fin = replace(financials, energy_escalation_rate=1e200)
        with pytest.raises(CalculationError):
            compare(air_cooling, immersion_cooling, fin, loose)

    def test_pue_warning(self, immersion_cooling, financials):
        air = AirCooling(
            rack_count=10, power_per_rack_kw=10.0, hvac_cop=1.0, hvac_efficiency=0.3
        )
        result = compare(air, immersion_cooling, financials)
        assert any("PUE" in w and w.startswith("baseline") for w in result.warnings)
