"""Tests for engine.cooling.capex: sizing and capital cost resolution."""

from __future__ import annotations

import math

import pytest

from engine.cooling.capex import reference_tanks, resolve_equipment
from engine.cooling.equipment import (
    AirCooling,
    AirUnitCosts,
    ImmersionCooling,
    ImmersionUnitCosts,
    TankConfiguration,
)
from engine.economics.errors import ConfigurationError


# ======================================================================
# Air cooling
# ======================================================================


class TestAirCapex:
    """Racks, HVAC units and electrical infrastructure."""

    def test_rack_count_sizing(self, air_cooling):
        """100 racks x 15 kW is 1.5 MW of IT load."""
        resolved = resolve_equipment(air_cooling)
        assert resolved.unit_count == 100
        assert resolved.it_power_kw == pytest.approx(1500.0)

    def test_hvac_units_from_overhead(self, air_cooling):
        """HVAC units cover the cooling overhead at 30 kW each."""
        resolved = resolve_equipment(air_cooling)
        overhead = 1500.0 / (2.5 * 0.85)
        assert resolved.hvac_units == math.ceil(overhead / 30.0) == 24

    def test_breakdown(self, air_cooling):
        """Equipment, installation and infrastructure follow the unit costs."""
        resolved = resolve_equipment(air_cooling)
        capex = resolved.capex
        assert capex.equipment == pytest.approx(100 * 2500 + 24 * 25_000)
        assert capex.installation == pytest.approx(100 * 1000 + 24 * 8000)
        assert capex.infrastructure == pytest.approx(resolved.pue.total_facility_kw * 500)
        assert capex.total == pytest.approx(
            capex.equipment + capex.installation + capex.infrastructure
        )

    def test_total_power_sizing(self):
        """Total-power input rounds racks up at the default capacity."""
        resolved = resolve_equipment(AirCooling(input_method="total_power", total_power_kw=1000.0))
        assert resolved.unit_count == math.ceil(1000.0 / 15.0)
        assert resolved.it_power_kw == pytest.approx(1000.0)

    def test_labor_hours(self, air_cooling):
        """24 technician hours per rack per year."""
        assert resolve_equipment(air_cooling).labor_hours == pytest.approx(2400.0)

    def test_no_consumables(self, air_cooling):
        resolved = resolve_equipment(air_cooling)
        assert resolved.coolant_volume_liters == 0.0
        assert resolved.replacement_cycle_months is None

    def test_custom_unit_costs(self):
        """Injected unit costs replace the defaults."""
        air = AirCooling(
            rack_count=10,
            power_per_rack_kw=10.0,
            unit_costs=AirUnitCosts(rack_unit_cost=0.0, hvac_unit_cost=0.0),
        )
        assert resolve_equipment(air).capex.equipment == 0.0

    def test_exchange_rate_scales_costs(self, air_cooling):
        """Every monetary figure is multiplied by the exchange rate."""
        usd = resolve_equipment(air_cooling).capex
        eur = resolve_equipment(air_cooling, exchange_rate=0.92).capex
        assert eur.total == pytest.approx(usd.total * 0.92)

    def test_cost_per_kw(self, air_cooling):
        resolved = resolve_equipment(air_cooling)
        assert resolved.cost_per_kw == pytest.approx(resolved.capex.total / 1500.0)


# ======================================================================
# Immersion cooling
# ======================================================================


class TestImmersionCapex:
    """Tanks, coolant loop, fluid fill and infrastructure."""

    def test_reference_tanks(self, assumptions):
        """46 kW per 23U tank at 2 kW/U, rounded up."""
        tanks = reference_tanks(1500.0, assumptions)
        assert tanks.size_u == 23
        assert tanks.quantity == 33

    def test_auto_optimize_keeps_target_power(self, immersion_cooling):
        """IT load is the target, not the rounded-up tank capacity."""
        resolved = resolve_equipment(immersion_cooling)
        assert resolved.unit_count == 33
        assert resolved.it_power_kw == pytest.approx(1500.0)

    def test_manual_config(self, manual_immersion):
        """Tank groups add up."""
        resolved = resolve_equipment(manual_immersion)
        assert resolved.unit_count == 12
        assert resolved.it_power_kw == pytest.approx(8 * 46.0 + 4 * 24.0)
        assert resolved.coolant_volume_liters == pytest.approx((8 * 23 + 4 * 12) * 12.0)

    def test_tank_cost_scales_per_u(self):
        """A 12U tank costs 12/23 of the reference price."""
        immersion = ImmersionCooling(
            tanks=(TankConfiguration(size_u=12, quantity=1),),
            unit_costs=ImmersionUnitCosts(
                tank_unit_cost=23_000.0,
                pump_system_cost_per_tank=0.0,
                heat_exchanger_cost_per_tank=0.0,
                coolant_cost_per_liter=1.0,
            ),
        )
        capex = resolve_equipment(immersion).capex
        assert capex.installation == pytest.approx(12_000.0 * 0.25)
        assert capex.equipment == pytest.approx(12_000.0 + 12 * 12.0)

    def test_breakdown(self, immersion_cooling):
        """Reference scenario at $95k per tank."""
        resolved = resolve_equipment(immersion_cooling)
        tank_cost = 33 * 95_000.0
        loop = 33 * (800.0 + 5000.0 / 15.0)
        fill = 33 * 23 * 12.0 * 25.0
        assert resolved.capex.equipment == pytest.approx(tank_cost + loop + fill)
        assert resolved.capex.installation == pytest.approx(tank_cost * 0.25)
        assert resolved.capex.infrastructure == pytest.approx(
            resolved.pue.total_facility_kw * 200.0
        )

    def test_consumable_parameters(self, immersion_cooling):
        resolved = resolve_equipment(immersion_cooling, exchange_rate=2.0)
        assert resolved.replacement_cycle_months == 24
        assert resolved.filtration_cycle_months == 6
        assert resolved.coolant_cost_per_liter == pytest.approx(50.0)
        assert resolved.filtration_cost_per_liter == pytest.approx(1.0)

    def test_labor_hours(self, immersion_cooling):
        """Eight technician hours per tank per year."""
        assert resolve_equipment(immersion_cooling).labor_hours == pytest.approx(33 * 8.0)


# ======================================================================
# Errors
# ======================================================================


class TestResolverErrors:
    """Configurations resolving to no IT load are impossible."""

    def test_zero_power_racks(self):
        air = AirCooling(rack_count=0, power_per_rack_kw=10.0)
        with pytest.raises(ConfigurationError):
            resolve_equipment(air)

    def test_zero_density_tanks(self):
        immersion = ImmersionCooling(
            tanks=(TankConfiguration(size_u=23, quantity=2, power_density_kw_per_u=0.0),)
        )
        with pytest.raises(ConfigurationError):
            resolve_equipment(immersion)
