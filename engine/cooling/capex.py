"""Equipment cost resolver.

Maps an equipment selection to nameplate IT power, a CAPEX breakdown
({equipment, installation, infrastructure}) and the recurring quantities
the OPEX projector needs (labour hours, coolant volume, service cycles).

Sizing rules
------------
Air cooling
    racks       = rack_count, or ceil(total_power / default rack capacity)
    HVAC units  = ceil(HVAC electrical load / unit capacity)
    equipment   = racks x rack cost + HVAC units x HVAC cost
    install     = racks x rack install + HVAC units x HVAC install
    infra       = facility kW x infrastructure cost per kW

Immersion cooling
    tanks       = explicit groups, or ceil(target / reference tank kW)
    equipment   = tank cost (scaled per U) + pump + heat exchanger + coolant fill
    install     = tank cost x installation fraction
    infra       = facility kW x infrastructure cost per kW

Unit costs are USD inputs and are multiplied by ``exchange_rate``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import assert_never

from engine.economics.assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from engine.economics.errors import ConfigurationError

from .equipment import (
    AirCooling,
    EquipmentConfiguration,
    ImmersionCooling,
    TankConfiguration,
)
from .pue import PUEEstimate, estimate_pue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapexBreakdown:
    """Capital expenditure split, in the target currency."""

    equipment: float
    installation: float
    infrastructure: float

    @property
    def total(self) -> float:
        return self.equipment + self.installation + self.infrastructure

    def as_dict(self) -> dict[str, float]:
        return {
            "equipment": self.equipment,
            "installation": self.installation,
            "infrastructure": self.infrastructure,
            "total": self.total,
        }


@dataclass(frozen=True)
class ResolvedEquipment:
    """Everything downstream components need to know about one scenario.

    Parameters
    ----------
    kind : str
        ``"air_cooling"`` or ``"immersion_cooling"``.
    unit_count : int
        Racks (air) or tanks (immersion).
    it_power_kw : float
        Nameplate IT load.
    capex : CapexBreakdown
        Year-0 capital cost.
    pue : PUEEstimate
        Facility power model for this configuration.
    annual_maintenance_pct : float
        Fraction of total CAPEX spent on maintenance each year.
    labor_hours : float
        Base technician hours per year.
    coolant_volume_liters : float
        Installed dielectric fluid (zero for air).
    coolant_cost_per_liter, filtration_cost_per_liter : float
        Consumable prices in the target currency (zero for air).
    replacement_cycle_months, filtration_cycle_months : int or None
        Consumable service intervals; ``None`` for air.
    hvac_units : int
        CRAC/CRAH units installed (zero for immersion).
    """

    kind: str
    unit_count: int
    it_power_kw: float
    capex: CapexBreakdown
    pue: PUEEstimate
    annual_maintenance_pct: float
    labor_hours: float
    coolant_volume_liters: float = 0.0
    coolant_cost_per_liter: float = 0.0
    filtration_cost_per_liter: float = 0.0
    replacement_cycle_months: int | None = None
    filtration_cycle_months: int | None = None
    hvac_units: int = 0

    @property
    def cost_per_kw(self) -> float:
        return self.capex.total / self.it_power_kw

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "unit_count": self.unit_count,
            "it_power_kw": self.it_power_kw,
            "hvac_units": self.hvac_units,
            "coolant_volume_liters": self.coolant_volume_liters,
            "labor_hours": self.labor_hours,
            "capex": self.capex.as_dict(),
            "pue": self.pue.as_dict(),
            "cost_per_kw": self.cost_per_kw,
        }


def _require_power(kind: str, it_power_kw: float) -> None:
    if not it_power_kw > 0:
        raise ConfigurationError(
            f"{kind} configuration resolves to {it_power_kw} kW of IT power"
        )


# ======================================================================
# Air cooling
# ======================================================================

def _air_sizing(eq: AirCooling, assumptions: CostAssumptions) -> tuple[int, float]:
    """Return ``(racks, it_power_kw)``."""
    if eq.input_method == "rack_count":
        racks = int(eq.rack_count)
        return racks, racks * float(eq.power_per_rack_kw)
    total = float(eq.total_power_kw)
    racks = math.ceil(total / assumptions.default_rack_capacity_kw)
    return racks, total


def _resolve_air(
    eq: AirCooling, assumptions: CostAssumptions, exchange_rate: float
) -> ResolvedEquipment:
    racks, it_power_kw = _air_sizing(eq, assumptions)
    _require_power(eq.kind, it_power_kw)
    pue = estimate_pue(eq, it_power_kw, assumptions.pue_warning_threshold)

    costs = eq.unit_costs
    hvac_units = math.ceil(pue.cooling_overhead_kw / eq.hvac_unit_capacity_kw)

    equipment = racks * costs.rack_unit_cost + hvac_units * costs.hvac_unit_cost
    installation = (
        racks * costs.rack_installation_cost
        + hvac_units * costs.hvac_installation_cost
    )
    infrastructure = pue.total_facility_kw * costs.infrastructure_cost_per_kw

    return ResolvedEquipment(
        kind=eq.kind,
        unit_count=racks,
        it_power_kw=it_power_kw,
        capex=CapexBreakdown(
            equipment=equipment * exchange_rate,
            installation=installation * exchange_rate,
            infrastructure=infrastructure * exchange_rate,
        ),
        pue=pue,
        annual_maintenance_pct=eq.annual_maintenance_pct,
        labor_hours=racks * eq.labor_hours_per_rack,
        hvac_units=hvac_units,
    )


# ======================================================================
# Immersion cooling
# ======================================================================

def reference_tanks(target_power_kw: float, assumptions: CostAssumptions) -> TankConfiguration:
    """Reference tanks needed to carry *target_power_kw*."""
    size_u = assumptions.reference_tank_size_u
    density = assumptions.reference_tank_density_kw_per_u
    quantity = math.ceil(target_power_kw / (size_u * density))
    return TankConfiguration(size_u=size_u, quantity=quantity, power_density_kw_per_u=density)


def _immersion_sizing(
    eq: ImmersionCooling, assumptions: CostAssumptions
) -> tuple[tuple[TankConfiguration, ...], float]:
    """Return ``(tank groups, it_power_kw)``."""
    if eq.input_method == "manual_config":
        tanks = tuple(eq.tanks)
        return tanks, sum(t.power_kw for t in tanks)
    # Auto-sized tanks are rounded up; the IT load stays at the target.
    target = float(eq.target_power_kw)
    return (reference_tanks(target, assumptions),), target


def _resolve_immersion(
    eq: ImmersionCooling, assumptions: CostAssumptions, exchange_rate: float
) -> ResolvedEquipment:
    tanks, it_power_kw = _immersion_sizing(eq, assumptions)
    _require_power(eq.kind, it_power_kw)
    pue = estimate_pue(eq, it_power_kw, assumptions.pue_warning_threshold)

    costs = eq.unit_costs
    tank_count = sum(t.quantity for t in tanks)
    slots = sum(t.server_slots for t in tanks)

    # Tank price is quoted for the reference height and scales per U.
    per_u = costs.tank_unit_cost / assumptions.reference_tank_size_u
    tank_cost = sum(per_u * t.size_u * t.quantity for t in tanks)
    loop_cost = tank_count * (
        costs.pump_system_cost_per_tank + costs.heat_exchanger_cost_per_tank
    )
    coolant_volume = slots * eq.coolant_volume_per_server_liters
    coolant_fill = coolant_volume * costs.coolant_cost_per_liter

    equipment = tank_cost + loop_cost + coolant_fill
    installation = tank_cost * costs.installation_fraction
    infrastructure = pue.total_facility_kw * costs.infrastructure_cost_per_kw

    return ResolvedEquipment(
        kind=eq.kind,
        unit_count=tank_count,
        it_power_kw=it_power_kw,
        capex=CapexBreakdown(
            equipment=equipment * exchange_rate,
            installation=installation * exchange_rate,
            infrastructure=infrastructure * exchange_rate,
        ),
        pue=pue,
        annual_maintenance_pct=eq.annual_maintenance_pct,
        labor_hours=tank_count * eq.labor_hours_per_tank,
        coolant_volume_liters=coolant_volume,
        coolant_cost_per_liter=costs.coolant_cost_per_liter * exchange_rate,
        filtration_cost_per_liter=costs.filtration_cost_per_liter * exchange_rate,
        replacement_cycle_months=int(eq.coolant_replacement_cycle_months),
        filtration_cycle_months=int(eq.filtration_cycle_months),
    )


# ======================================================================
# Entry point
# ======================================================================

def resolve_equipment(
    equipment: EquipmentConfiguration,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
    exchange_rate: float = 1.0,
) -> ResolvedEquipment:
    """Size a validated configuration and price its CAPEX.

    Parameters
    ----------
    equipment : AirCooling or ImmersionCooling
        Configuration that has already passed validation.
    assumptions : CostAssumptions
        Reference sizing constants.
    exchange_rate : float
        Units of target currency per USD.

    Returns
    -------
    ResolvedEquipment

    Raises
    ------
    ConfigurationError
        If the configuration resolves to no IT power.
    """
    match equipment:
        case AirCooling():
            resolved = _resolve_air(equipment, assumptions, exchange_rate)
        case ImmersionCooling():
            resolved = _resolve_immersion(equipment, assumptions, exchange_rate)
        case _:
            assert_never(equipment)

    logger.debug(
        "%s: %d units, %.1f kW IT, CAPEX %.2f",
        resolved.kind, resolved.unit_count, resolved.it_power_kw, resolved.capex.total,
    )
    return resolved
