"""Equipment configurations for the two cooling paths.

``EquipmentConfiguration`` is a tagged union of :class:`AirCooling` and
:class:`ImmersionCooling`.  The variants share almost no fields, so they
are independent frozen dataclasses distinguished by their ``kind`` tag and
dispatched with ``match`` in the resolver and the PUE estimator.

Unit costs are inputs carried on each variant (:class:`AirUnitCosts`,
:class:`ImmersionUnitCosts`) and are quoted in USD; the resolver converts
them into the target currency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

AIR_COOLING = "air_cooling"
IMMERSION_COOLING = "immersion_cooling"

AIR_INPUT_METHODS = ("rack_count", "total_power")
IMMERSION_INPUT_METHODS = ("manual_config", "auto_optimize")


# ======================================================================
# Air cooling
# ======================================================================

@dataclass(frozen=True)
class AirUnitCosts:
    """Capital unit costs for an air-cooled hall (USD).

    Parameters
    ----------
    rack_unit_cost : float
        Purchase price of one 42U rack.
    rack_installation_cost : float
        Installation labour and materials per rack.
    hvac_unit_cost : float
        Purchase price of one CRAC/CRAH unit.
    hvac_installation_cost : float
        Installation cost per HVAC unit.
    infrastructure_cost_per_kw : float
        UPS, PDU and switchgear cost per kW of facility power.
    """

    rack_unit_cost: float = 2500.0
    rack_installation_cost: float = 1000.0
    hvac_unit_cost: float = 25_000.0
    hvac_installation_cost: float = 8000.0
    infrastructure_cost_per_kw: float = 500.0


@dataclass(frozen=True)
class AirCooling:
    """Air-cooled rack deployment.

    Sized either by ``rack_count`` x ``power_per_rack_kw`` (input method
    ``"rack_count"``) or from ``total_power_kw`` at the default rack
    capacity (input method ``"total_power"``).

    Parameters
    ----------
    hvac_cop : float
        Coefficient of performance of the HVAC plant.
    hvac_efficiency : float
        Fraction of rated COP achieved in service.
    power_distribution_efficiency, ups_efficiency : float
        Electrical path efficiencies between utility feed and IT load.
    hvac_unit_capacity_kw : float
        Electrical rating of one HVAC unit, used to count units.
    annual_maintenance_pct : float
        Yearly maintenance cost as a fraction of total CAPEX.
    labor_hours_per_rack : float
        Technician hours per rack per year.
    """

    input_method: str = "rack_count"
    rack_count: int | None = None
    power_per_rack_kw: float | None = None
    total_power_kw: float | None = None
    hvac_cop: float = 2.5
    hvac_efficiency: float = 0.85
    power_distribution_efficiency: float = 0.95
    ups_efficiency: float = 0.94
    hvac_unit_capacity_kw: float = 30.0
    annual_maintenance_pct: float = 0.08
    labor_hours_per_rack: float = 24.0
    unit_costs: AirUnitCosts = field(default_factory=AirUnitCosts)
    kind: Literal["air_cooling"] = field(default=AIR_COOLING, init=False)


# ======================================================================
# Immersion cooling
# ======================================================================

@dataclass(frozen=True)
class TankConfiguration:
    """A group of identical immersion tanks.

    ``size_u`` is the tank height in rack units; each U slot holds one
    server and one server's worth of coolant.
    """

    size_u: int
    quantity: int
    power_density_kw_per_u: float = 2.0

    @property
    def power_kw(self) -> float:
        return self.size_u * self.power_density_kw_per_u * self.quantity

    @property
    def server_slots(self) -> int:
        return self.size_u * self.quantity


@dataclass(frozen=True)
class ImmersionUnitCosts:
    """Capital and consumable unit costs for immersion tanks (USD).

    Parameters
    ----------
    tank_unit_cost : float
        Price of one reference-height (23U) tank; other sizes scale per U.
    installation_fraction : float
        Installation cost as a fraction of tank cost.
    pump_system_cost_per_tank, heat_exchanger_cost_per_tank : float
        Pump skid and dry-cooler/heat-exchanger cost, prorated per tank.
    infrastructure_cost_per_kw : float
        Electrical infrastructure per kW of facility power.
    coolant_cost_per_liter : float
        Dielectric fluid price.
    filtration_cost_per_liter : float
        Filter media and fluid loss per liter at each filtration service.
    """

    tank_unit_cost: float = 35_000.0
    installation_fraction: float = 0.25
    pump_system_cost_per_tank: float = 800.0
    heat_exchanger_cost_per_tank: float = 5000.0 / 15.0
    infrastructure_cost_per_kw: float = 200.0
    coolant_cost_per_liter: float = 25.0
    filtration_cost_per_liter: float = 0.5


@dataclass(frozen=True)
class ImmersionCooling:
    """Single-phase immersion tank deployment.

    Either an explicit list of ``tanks`` (input method ``"manual_config"``)
    or a ``target_power_kw`` covered with reference tanks (input method
    ``"auto_optimize"``).

    Parameters
    ----------
    pump_efficiency, heat_exchanger_efficiency : float
        Efficiencies of the coolant loop components.
    pump_load_fraction, heat_exchanger_load_fraction : float
        Ideal loop power draw as a fraction of IT load.
    power_distribution_efficiency : float
        Electrical path efficiency.
    coolant_volume_per_server_liters : float
        Fluid volume per server slot.
    coolant_replacement_cycle_months, filtration_cycle_months : int
        Service intervals for full fluid replacement and filtration.
    annual_maintenance_pct : float
        Yearly maintenance cost as a fraction of total CAPEX.
    labor_hours_per_tank : float
        Technician hours per tank per year.
    """

    input_method: str = "manual_config"
    tanks: tuple[TankConfiguration, ...] = ()
    target_power_kw: float | None = None
    pump_efficiency: float = 0.92
    heat_exchanger_efficiency: float = 0.95
    pump_load_fraction: float = 0.015
    heat_exchanger_load_fraction: float = 0.005
    power_distribution_efficiency: float = 0.99
    coolant_volume_per_server_liters: float = 12.0
    coolant_replacement_cycle_months: int = 24
    filtration_cycle_months: int = 6
    annual_maintenance_pct: float = 0.03
    labor_hours_per_tank: float = 8.0
    unit_costs: ImmersionUnitCosts = field(default_factory=ImmersionUnitCosts)
    kind: Literal["immersion_cooling"] = field(default=IMMERSION_COOLING, init=False)


EquipmentConfiguration = AirCooling | ImmersionCooling
