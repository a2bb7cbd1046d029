"""Year-indexed operating cost projection.

Year 0 carries the capital outlay only.  Recurring costs start in year 1
and escalate year-over-year from there:

    energy(i)       = IT kW x PUE x hours/year x rate x (1 + e_energy) ** (i - 1)
    maintenance(i)  = CAPEX x maintenance pct x (1 + e_maint) ** (i - 1)
    labor(i)        = labour hours x labour rate x (1 + e_labor) ** (i - 1)
    consumables(i)  = coolant service events falling in months (12(i-1), 12i]

Consumables are not escalated and are charged as spikes in the year the
service month falls in.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import numpy as np

from engine.cooling.capex import CapexBreakdown, ResolvedEquipment

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from .errors import CalculationError
from .parameters import NormalizedFinancials

MONTHS_PER_YEAR = 12


class CostCategory(str, enum.Enum):
    """Tag attached to every cost line."""

    CAPITAL = "capital"
    ENERGY = "energy"
    MAINTENANCE = "maintenance"
    LABOR = "labor"
    CONSUMABLES = "consumables"


OPERATING_CATEGORIES: tuple[CostCategory, ...] = (
    CostCategory.ENERGY,
    CostCategory.MAINTENANCE,
    CostCategory.LABOR,
    CostCategory.CONSUMABLES,
)


@dataclass(frozen=True)
class YearlyCashFlow:
    """Undiscounted costs for one scenario-year, by category.

    ``discounted_total`` is filled in by :meth:`discounted` once a discount
    factor is known; the instance itself is never mutated.
    """

    year: int
    costs: Mapping[CostCategory, float]
    discounted_total: float | None = None

    def __post_init__(self) -> None:
        full = {c: float(self.costs.get(c, 0.0)) for c in CostCategory}
        object.__setattr__(self, "costs", MappingProxyType(full))

    @property
    def total(self) -> float:
        return math.fsum(self.costs.values())

    @property
    def operating_total(self) -> float:
        return math.fsum(self.costs[c] for c in OPERATING_CATEGORIES)

    def cost(self, category: CostCategory) -> float:
        return self.costs[category]

    def discounted(self, factor: float) -> YearlyCashFlow:
        """Copy carrying ``total x factor`` as the discounted amount."""
        return YearlyCashFlow(self.year, self.costs, self.total * factor)

    def as_dict(self) -> dict:
        out = {"year": self.year}
        out.update({c.value: v for c, v in self.costs.items()})
        out["total"] = self.total
        out["discounted_total"] = self.discounted_total
        return out


# ======================================================================
# Escalation
# ======================================================================

def escalation_factor(rate: float, year: int) -> float:
    """Compounding multiplier for a recurring cost in *year*.

    Year 1 is the base year (factor 1.0); each later year compounds once
    more.  Year 0 holds capital only and has no escalation factor.

    Raises
    ------
    ValueError
        If *year* is less than 1.
    CalculationError
        If compounding overflows.
    """
    if year < 1:
        raise ValueError(f"escalation applies from year 1, got year {year}")
    try:
        return (1.0 + rate) ** (year - 1)
    except OverflowError as exc:
        raise CalculationError(
            f"escalation at rate {rate} overflowed in year {year}"
        ) from exc


def _escalation_series(rate: float, years: int) -> np.ndarray:
    """Vector of :func:`escalation_factor` for years 1..*years*."""
    return np.array([escalation_factor(rate, y) for y in range(1, years + 1)])


# ======================================================================
# Consumables
# ======================================================================

def consumables_cost(resolved: ResolvedEquipment, year: int) -> float:
    """Coolant replacement and filtration charges falling in *year*.

    A month that is both a replacement and a filtration boundary is
    charged as a replacement only.
    """
    replace_every = resolved.replacement_cycle_months
    filter_every = resolved.filtration_cycle_months
    if not replace_every and not filter_every:
        return 0.0

    volume = resolved.coolant_volume_liters
    replacement = volume * resolved.coolant_cost_per_liter
    filtration = volume * resolved.filtration_cost_per_liter

    total = 0.0
    first = MONTHS_PER_YEAR * (year - 1) + 1
    for month in range(first, first + MONTHS_PER_YEAR):
        if replace_every and month % replace_every == 0:
            total += replacement
        elif filter_every and month % filter_every == 0:
            total += filtration
    return total


# ======================================================================
# Projection
# ======================================================================

def capital_cash_flow(capex: CapexBreakdown) -> YearlyCashFlow:
    """Year-0 cash flow holding the capital outlay."""
    return YearlyCashFlow(year=0, costs={CostCategory.CAPITAL: capex.total})


def project_opex(
    resolved: ResolvedEquipment,
    financials: NormalizedFinancials,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> tuple[YearlyCashFlow, ...]:
    """Operating cash flows for years 1..N of one scenario.

    Parameters
    ----------
    resolved : ResolvedEquipment
        Sized configuration with CAPEX and PUE.
    financials : NormalizedFinancials
        Rates already expressed in the target currency.
    assumptions : CostAssumptions
        Supplies operating hours per year.

    Returns
    -------
    tuple[YearlyCashFlow, ...]
        One entry per analysis year, in order.

    Raises
    ------
    CalculationError
        If any projected amount is not finite.
    """
    years = financials.analysis_years

    # 1. Base (year-1) amounts
    base_energy = (
        resolved.it_power_kw
        * resolved.pue.pue
        * assumptions.hours_per_year
        * financials.energy_cost_per_kwh
    )
    base_maintenance = resolved.capex.total * resolved.annual_maintenance_pct
    base_labor = resolved.labor_hours * financials.labor_rate_per_hour

    # 2. Escalated series
    energy = base_energy * _escalation_series(financials.energy_escalation_rate, years)
    maintenance = base_maintenance * _escalation_series(
        financials.maintenance_escalation_rate, years
    )
    labor = base_labor * _escalation_series(financials.labor_escalation_rate, years)
    consumables = np.array([consumables_cost(resolved, y) for y in range(1, years + 1)])

    stacked = np.vstack([energy, maintenance, labor, consumables])
    if not np.all(np.isfinite(stacked)):
        raise CalculationError(
            f"non-finite operating cost projected for {resolved.kind}"
        )

    # 3. Cash flows
    return tuple(
        YearlyCashFlow(
            year=i + 1,
            costs={
                CostCategory.ENERGY: float(energy[i]),
                CostCategory.MAINTENANCE: float(maintenance[i]),
                CostCategory.LABOR: float(labor[i]),
                CostCategory.CONSUMABLES: float(consumables[i]),
            },
        )
        for i in range(years)
    )
