"""Shared test fixtures for CoolCost engine and API tests."""

from __future__ import annotations

import pytest

from engine.cooling.equipment import (
    AirCooling,
    ImmersionCooling,
    ImmersionUnitCosts,
    TankConfiguration,
)
from engine.economics.assumptions import CostAssumptions
from engine.economics.parameters import FinancialParameters


# ======================================================================
# Equipment fixtures
# ======================================================================

@pytest.fixture
def air_cooling() -> AirCooling:
    """100 racks at 15 kW each, 1.5 MW of IT load."""
    return AirCooling(rack_count=100, power_per_rack_kw=15.0)


@pytest.fixture
def immersion_cooling() -> ImmersionCooling:
    """Reference tanks auto-sized for 1.5 MW, priced at $95k per tank."""
    return ImmersionCooling(
        input_method="auto_optimize",
        target_power_kw=1500.0,
        unit_costs=ImmersionUnitCosts(tank_unit_cost=95_000.0),
    )


@pytest.fixture
def manual_immersion() -> ImmersionCooling:
    """Two tank groups entered by hand, 464 kW total."""
    return ImmersionCooling(
        input_method="manual_config",
        tanks=(
            TankConfiguration(size_u=23, quantity=8, power_density_kw_per_u=2.0),
            TankConfiguration(size_u=12, quantity=4, power_density_kw_per_u=2.0),
        ),
    )


# ======================================================================
# Financial fixtures
# ======================================================================

@pytest.fixture
def financials() -> FinancialParameters:
    """Five years at 8%, US rates, USD."""
    return FinancialParameters(
        analysis_years=5,
        discount_rate=0.08,
        energy_escalation_rate=0.03,
        maintenance_escalation_rate=0.025,
        labor_escalation_rate=0.04,
        region="US",
        currency="USD",
    )


@pytest.fixture
def assumptions() -> CostAssumptions:
    """A fresh default assumption set."""
    return CostAssumptions()
