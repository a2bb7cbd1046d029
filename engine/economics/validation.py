"""Parameter validation for TCO comparisons.

Runs before any arithmetic.  Every numeric field is checked against the
``(min, max)`` pair registered for it in ``CostAssumptions.limits``;
missing required fields, out-of-range values and structurally invalid
values are reported as distinct violation kinds.  Downstream components
assume their inputs passed through here and do not re-check them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from numbers import Real
from typing import Any

from engine.cooling.equipment import (
    AIR_INPUT_METHODS,
    IMMERSION_INPUT_METHODS,
    AirCooling,
    AirUnitCosts,
    EquipmentConfiguration,
    ImmersionCooling,
    ImmersionUnitCosts,
    TankConfiguration,
)

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from .currency import convert_currency, usd_pair_rates
from .errors import INVALID, MISSING, OUT_OF_RANGE, ValidationError, Violation
from .parameters import FinancialParameters, NormalizedFinancials


# ======================================================================
# Field -> bound tables
# ======================================================================

# (attribute, limit key) pairs for always-present numeric fields.
_AIR_FIELDS: tuple[tuple[str, str], ...] = (
    ("hvac_cop", "hvac_cop"),
    ("hvac_efficiency", "efficiency"),
    ("power_distribution_efficiency", "efficiency"),
    ("ups_efficiency", "efficiency"),
    ("hvac_unit_capacity_kw", "hvac_unit_capacity_kw"),
    ("annual_maintenance_pct", "maintenance_pct"),
    ("labor_hours_per_rack", "labor_hours_per_unit"),
)

_IMMERSION_FIELDS: tuple[tuple[str, str], ...] = (
    ("pump_efficiency", "efficiency"),
    ("heat_exchanger_efficiency", "efficiency"),
    ("pump_load_fraction", "load_fraction"),
    ("heat_exchanger_load_fraction", "load_fraction"),
    ("power_distribution_efficiency", "efficiency"),
    ("coolant_volume_per_server_liters", "coolant_volume_per_server_liters"),
    ("coolant_replacement_cycle_months", "cycle_months"),
    ("filtration_cycle_months", "cycle_months"),
    ("annual_maintenance_pct", "maintenance_pct"),
    ("labor_hours_per_tank", "labor_hours_per_unit"),
)

_INTEGER_FIELDS = {
    "rack_count",
    "quantity",
    "size_u",
    "analysis_years",
    "coolant_replacement_cycle_months",
    "filtration_cycle_months",
}

# Unit-cost fields that use a bound other than the generic "unit_cost".
_UNIT_COST_BOUNDS = {
    "installation_fraction": "fraction",
    "coolant_cost_per_liter": "coolant_cost_per_liter",
}


@dataclass(frozen=True)
class ValidatedInputs:
    """Inputs that passed validation, with financials normalized."""

    baseline: EquipmentConfiguration
    alternative: EquipmentConfiguration
    financials: NormalizedFinancials
    warnings: tuple[str, ...] = ()


# ======================================================================
# Helpers
# ======================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _check(
    violations: list[Violation],
    path: str,
    value: Any,
    bound: tuple[float, float],
    required: bool = True,
) -> None:
    """Append a violation for *value* at *path* if it fails *bound*."""
    if value is None:
        if required:
            violations.append(Violation(path, MISSING, bound, None))
        return

    if not _is_number(value):
        violations.append(Violation(path, INVALID, bound, value))
        return

    name = path.rsplit(".", 1)[-1]
    number = float(value)
    if (
        name in _INTEGER_FIELDS
        and math.isfinite(number)
        and number != math.floor(number)
    ):
        violations.append(Violation(path, INVALID, bound, value))
        return

    lo, hi = bound
    # NaN fails both comparisons and lands here too.
    if not (lo <= number <= hi):
        violations.append(Violation(path, OUT_OF_RANGE, bound, value))


def _check_unit_costs(
    violations: list[Violation],
    prefix: str,
    unit_costs: Any,
    expected: type,
    limits: CostAssumptions,
) -> None:
    if not isinstance(unit_costs, expected):
        violations.append(
            Violation(f"{prefix}.unit_costs", INVALID, None, type(unit_costs).__name__)
        )
        return
    for f in fields(unit_costs):
        key = _UNIT_COST_BOUNDS.get(f.name, "unit_cost")
        _check(
            violations,
            f"{prefix}.unit_costs.{f.name}",
            getattr(unit_costs, f.name),
            limits.bound(key),
        )


# ======================================================================
# Equipment
# ======================================================================

def _tank_groups(
    violations: list[Violation], prefix: str, tanks: Any
) -> list[tuple[int, TankConfiguration]]:
    """Well-formed tank groups; malformed entries are reported as invalid."""
    if tanks is None:
        return []
    if not isinstance(tanks, (tuple, list)):
        violations.append(Violation(f"{prefix}.tanks", INVALID, None, type(tanks).__name__))
        return []
    groups = []
    for i, tank in enumerate(tanks):
        if isinstance(tank, TankConfiguration):
            groups.append((i, tank))
        else:
            violations.append(
                Violation(f"{prefix}.tanks[{i}]", INVALID, None, type(tank).__name__)
            )
    return groups


def _air_violations(
    prefix: str, eq: AirCooling, assumptions: CostAssumptions
) -> list[Violation]:
    out: list[Violation] = []

    if eq.input_method not in AIR_INPUT_METHODS:
        out.append(Violation(f"{prefix}.input_method", INVALID, None, eq.input_method))
    elif eq.input_method == "rack_count":
        _check(out, f"{prefix}.rack_count", eq.rack_count, assumptions.bound("rack_count"))
        _check(
            out,
            f"{prefix}.power_per_rack_kw",
            eq.power_per_rack_kw,
            assumptions.bound("power_per_rack_kw"),
        )
    else:
        _check(
            out,
            f"{prefix}.total_power_kw",
            eq.total_power_kw,
            assumptions.bound("total_power_kw"),
        )

    for attr, key in _AIR_FIELDS:
        _check(out, f"{prefix}.{attr}", getattr(eq, attr), assumptions.bound(key))

    _check_unit_costs(out, prefix, eq.unit_costs, AirUnitCosts, assumptions)
    return out


def _immersion_violations(
    prefix: str, eq: ImmersionCooling, assumptions: CostAssumptions
) -> list[Violation]:
    out: list[Violation] = []

    if eq.input_method not in IMMERSION_INPUT_METHODS:
        out.append(Violation(f"{prefix}.input_method", INVALID, None, eq.input_method))
    elif eq.input_method == "manual_config":
        if eq.tanks is None or (isinstance(eq.tanks, (tuple, list)) and not eq.tanks):
            out.append(Violation(f"{prefix}.tanks", MISSING, None, None))
        for i, tank in _tank_groups(out, prefix, eq.tanks):
            tp = f"{prefix}.tanks[{i}]"
            _check(out, f"{tp}.size_u", tank.size_u, assumptions.bound("tank_size_u"))
            _check(out, f"{tp}.quantity", tank.quantity, assumptions.bound("tank_quantity"))
            _check(
                out,
                f"{tp}.power_density_kw_per_u",
                tank.power_density_kw_per_u,
                assumptions.bound("power_density_kw_per_u"),
            )
    else:
        _check(
            out,
            f"{prefix}.target_power_kw",
            eq.target_power_kw,
            assumptions.bound("total_power_kw"),
        )
        _tank_groups(out, prefix, eq.tanks)

    for attr, key in _IMMERSION_FIELDS:
        _check(out, f"{prefix}.{attr}", getattr(eq, attr), assumptions.bound(key))

    _check_unit_costs(out, prefix, eq.unit_costs, ImmersionUnitCosts, assumptions)
    return out


def equipment_violations(
    prefix: str,
    equipment: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> list[Violation]:
    """Violations for one equipment configuration, paths under *prefix*."""
    match equipment:
        case AirCooling():
            return _air_violations(prefix, equipment, assumptions)
        case ImmersionCooling():
            return _immersion_violations(prefix, equipment, assumptions)
        case None:
            return [Violation(prefix, MISSING, None, None)]
        case _:
            return [Violation(prefix, INVALID, None, type(equipment).__name__)]


# ======================================================================
# Financials
# ======================================================================

def financial_violations(
    financials: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
    prefix: str = "financials",
) -> list[Violation]:
    """Violations for a :class:`FinancialParameters` instance."""
    if financials is None:
        return [Violation(prefix, MISSING, None, None)]
    if not isinstance(financials, FinancialParameters):
        return [Violation(prefix, INVALID, None, type(financials).__name__)]

    out: list[Violation] = []
    fp = financials

    _check(out, f"{prefix}.analysis_years", fp.analysis_years, assumptions.bound("analysis_years"))
    _check(out, f"{prefix}.discount_rate", fp.discount_rate, assumptions.bound("discount_rate"))

    esc = assumptions.bound("escalation_rate")
    _check(out, f"{prefix}.energy_escalation_rate", fp.energy_escalation_rate, esc)
    _check(out, f"{prefix}.maintenance_escalation_rate", fp.maintenance_escalation_rate, esc)
    _check(out, f"{prefix}.labor_escalation_rate", fp.labor_escalation_rate, esc)

    if fp.region not in assumptions.energy_costs or fp.region not in assumptions.labor_costs:
        out.append(Violation(f"{prefix}.region", INVALID, None, fp.region))
    if fp.currency not in assumptions.exchange_rates:
        out.append(Violation(f"{prefix}.currency", INVALID, None, fp.currency))

    _check(
        out,
        f"{prefix}.energy_cost_per_kwh",
        fp.energy_cost_per_kwh,
        assumptions.bound("energy_cost_per_kwh"),
        required=False,
    )
    _check(
        out,
        f"{prefix}.labor_rate_per_hour",
        fp.labor_rate_per_hour,
        assumptions.bound("labor_rate_per_hour"),
        required=False,
    )
    _check(
        out,
        f"{prefix}.exchange_rate",
        fp.exchange_rate,
        assumptions.bound("exchange_rate"),
        required=False,
    )
    return out


def normalize_financials(
    financials: FinancialParameters,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> NormalizedFinancials:
    """Resolve regional defaults and the exchange rate.

    Regional defaults are USD figures and are converted; caller overrides
    are taken as already being in the target currency.  An explicit
    ``exchange_rate`` replaces the table rate for the target currency.
    """
    currency = financials.currency
    pairs = usd_pair_rates(assumptions.exchange_rates)
    if financials.exchange_rate is not None and currency != "USD":
        pairs[f"USD_{currency}"] = financials.exchange_rate
    rate = convert_currency(1.0, "USD", currency, pairs)

    energy = (
        financials.energy_cost_per_kwh
        if financials.energy_cost_per_kwh is not None
        else convert_currency(assumptions.energy_costs[financials.region], "USD", currency, pairs)
    )
    labor = (
        financials.labor_rate_per_hour
        if financials.labor_rate_per_hour is not None
        else convert_currency(assumptions.labor_costs[financials.region], "USD", currency, pairs)
    )
    return NormalizedFinancials(
        analysis_years=int(financials.analysis_years),
        discount_rate=float(financials.discount_rate),
        energy_escalation_rate=float(financials.energy_escalation_rate),
        maintenance_escalation_rate=float(financials.maintenance_escalation_rate),
        labor_escalation_rate=float(financials.labor_escalation_rate),
        region=financials.region,
        energy_cost_per_kwh=float(energy),
        labor_rate_per_hour=float(labor),
        currency=financials.currency,
        exchange_rate=float(rate),
    )


# ======================================================================
# Entry points
# ======================================================================

def collect_violations(
    baseline: Any,
    alternative: Any,
    financials: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> list[Violation]:
    """Every violation across both scenarios and the financials."""
    return (
        equipment_violations("baseline", baseline, assumptions)
        + equipment_violations("alternative", alternative, assumptions)
        + financial_violations(financials, assumptions)
    )


def _advisory_warnings(
    baseline: EquipmentConfiguration,
    alternative: EquipmentConfiguration,
    financials: FinancialParameters,
    assumptions: CostAssumptions,
) -> list[str]:
    warnings: list[str] = []
    for label, eq in (("baseline", baseline), ("alternative", alternative)):
        if isinstance(eq, AirCooling) and eq.rack_count is not None:
            if eq.rack_count > assumptions.high_rack_count_warning:
                warnings.append(
                    f"{label}.rack_count: high rack count may result in less accurate estimates"
                )
    if financials.analysis_years > assumptions.long_horizon_warning:
        warnings.append(
            "financials.analysis_years: long-term projections have higher uncertainty"
        )
    return warnings


def validate(
    baseline: Any,
    alternative: Any,
    financials: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> ValidatedInputs:
    """Validate and normalize a comparison request.

    Raises
    ------
    ValidationError
        Carrying every violation found, if there is at least one.
    """
    violations = collect_violations(baseline, alternative, financials, assumptions)
    if violations:
        raise ValidationError(violations)

    return ValidatedInputs(
        baseline=baseline,
        alternative=alternative,
        financials=normalize_financials(financials, assumptions),
        warnings=tuple(_advisory_warnings(baseline, alternative, financials, assumptions)),
    )
