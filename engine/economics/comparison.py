"""Comparison engine: two cooling scenarios to one TCO verdict.

For each year ``i`` in ``0..N``::

    savings(i)    = baseline cost(i) - alternative cost(i)
    cumulative(i) = cumulative(i - 1) + savings(i)

Payback is the first point where the cumulative savings become
non-negative, interpolated linearly on the cumulative value inside the
crossing year.  NPV of savings discounts the savings series directly and is
cross-checked against NPV(baseline) - NPV(alternative).

All monetary results are unrounded floats in ``ComparisonResult.currency``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from scipy.optimize import brentq

from engine.cooling.capex import ResolvedEquipment, resolve_equipment

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions
from .discount import discount_factors, discount_series, npv_matches
from .environmental import EnvironmentalImpact, environmental_impact
from .errors import CalculationError
from .fingerprint import input_fingerprint
from .opex import CostCategory, YearlyCashFlow, capital_cash_flow, project_opex
from .parameters import NormalizedFinancials
from .validation import validate

logger = logging.getLogger(__name__)

BASELINE = "baseline"
ALTERNATIVE = "alternative"


# ======================================================================
# Result types
# ======================================================================

@dataclass(frozen=True)
class ScenarioResult:
    """Cash flows and totals for one cooling path.

    ``cash_flows[0]`` is the capital year; ``cash_flows[i]`` for ``i >= 1``
    are operating years.  Each carries its discounted total.
    """

    label: str
    resolved: ResolvedEquipment
    cash_flows: tuple[YearlyCashFlow, ...]
    npv_cost: float

    @property
    def kind(self) -> str:
        return self.resolved.kind

    @property
    def capex_total(self) -> float:
        return self.resolved.capex.total

    @property
    def yearly_totals(self) -> tuple[float, ...]:
        return tuple(cf.total for cf in self.cash_flows)

    @property
    def total_opex(self) -> float:
        return math.fsum(cf.operating_total for cf in self.cash_flows[1:])

    @property
    def total_cost(self) -> float:
        return math.fsum(self.yearly_totals)

    def category_totals(self) -> dict[CostCategory, float]:
        """Undiscounted horizon total per cost category."""
        return {
            c: math.fsum(cf.costs[c] for cf in self.cash_flows)
            for c in CostCategory
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "kind": self.kind,
            "equipment": self.resolved.as_dict(),
            "capex_total": self.capex_total,
            "total_opex": self.total_opex,
            "total_cost": self.total_cost,
            "npv_cost": self.npv_cost,
            "category_totals": {c.value: v for c, v in self.category_totals().items()},
            "cash_flows": [cf.as_dict() for cf in self.cash_flows],
        }


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of :func:`compare`.

    Parameters
    ----------
    baseline, alternative : ScenarioResult
        The two scenarios, savings are measured as baseline minus
        alternative.
    savings, cumulative_savings, discounted_savings : tuple[float, ...]
        Year-0-based series of length ``analysis_years + 1``.
    npv_savings : float
        Sum of ``discounted_savings``.
    payback_years : float or None
        Fractional years until cumulative savings reach zero, ``None`` if
        not achieved within the horizon.
    breakeven : bool
        Whether payback falls within the horizon.
    irr : float or None
        Internal rate of return of the savings series.
    """

    currency: str
    analysis_years: int
    discount_rate: float
    baseline: ScenarioResult
    alternative: ScenarioResult
    savings: tuple[float, ...]
    cumulative_savings: tuple[float, ...]
    discounted_savings: tuple[float, ...]
    npv_savings: float
    payback_years: float | None
    breakeven: bool
    irr: float | None
    environmental: EnvironmentalImpact
    warnings: tuple[str, ...]
    configuration_hash: str

    @property
    def capex_savings(self) -> float:
        return self.baseline.capex_total - self.alternative.capex_total

    @property
    def opex_savings(self) -> float:
        return self.baseline.total_opex - self.alternative.total_opex

    @property
    def tco_savings(self) -> float:
        return self.cumulative_savings[-1]

    @property
    def roi_percent(self) -> float | None:
        capex = self.alternative.capex_total
        if capex <= 0:
            return None
        return self.tco_savings / capex * 100.0

    @property
    def pue_improvement_percent(self) -> float:
        base = self.baseline.resolved.pue.pue
        return (base - self.alternative.resolved.pue.pue) / base * 100.0

    def summary(self) -> dict[str, Any]:
        return {
            "capex_savings": self.capex_savings,
            "opex_savings": self.opex_savings,
            "tco_savings": self.tco_savings,
            "npv_savings": self.npv_savings,
            "payback_years": self.payback_years,
            "breakeven": self.breakeven,
            "roi_percent": self.roi_percent,
            "irr": self.irr,
            "pue_baseline": self.baseline.resolved.pue.pue,
            "pue_alternative": self.alternative.resolved.pue.pue,
            "pue_improvement_percent": self.pue_improvement_percent,
            "energy_savings_kwh_annual": self.environmental.energy_savings_kwh_annual,
            "cost_per_kw_baseline": self.baseline.resolved.cost_per_kw,
            "cost_per_kw_alternative": self.alternative.resolved.cost_per_kw,
        }

    def as_dict(self) -> dict[str, Any]:
        """Plain, JSON-ready representation with unrounded values."""
        base = self.baseline.yearly_totals
        alt = self.alternative.yearly_totals
        yearly = [
            {
                "year": i,
                "baseline_cost": base[i],
                "alternative_cost": alt[i],
                "savings": self.savings[i],
                "cumulative_savings": self.cumulative_savings[i],
                "discounted_savings": self.discounted_savings[i],
            }
            for i in range(self.analysis_years + 1)
        ]
        return {
            "currency": self.currency,
            "analysis_years": self.analysis_years,
            "discount_rate": self.discount_rate,
            "summary": self.summary(),
            "baseline": self.baseline.as_dict(),
            "alternative": self.alternative.as_dict(),
            "yearly": yearly,
            "environmental": self.environmental.as_dict(),
            "warnings": list(self.warnings),
            "configuration_hash": self.configuration_hash,
        }


# ======================================================================
# Payback and IRR
# ======================================================================

def payback_period(
    cumulative: Sequence[float], savings: Sequence[float]
) -> float | None:
    """Fractional years until *cumulative* first becomes non-negative.

    Returns ``0.0`` when year 0 already breaks even and ``None`` when the
    series never crosses zero.  Within the crossing year ``i`` the result
    is ``(i - 1) + (-cumulative[i - 1] / savings[i])``.
    """
    if cumulative[0] >= 0:
        return 0.0
    for i in range(1, len(cumulative)):
        if cumulative[i] >= 0:
            return (i - 1) + (-cumulative[i - 1] / savings[i])
    return None


def internal_rate_of_return(cash_flows: Sequence[float]) -> float | None:
    """IRR of a year-0-based series via Brent's method.

    ``None`` when the series has no sign change or no root lies in the
    search bracket.
    """
    flows = np.asarray(cash_flows, dtype=float)
    if not (np.any(flows < 0) and np.any(flows > 0)):
        return None

    years = np.arange(len(flows), dtype=float)

    def npv_at_rate(r: float) -> float:
        return float(np.sum(flows / np.power(1.0 + r, years)))

    try:
        return float(brentq(npv_at_rate, -0.50, 5.0, xtol=1e-10, maxiter=500))
    except (ValueError, RuntimeError):
        return None


# ======================================================================
# Scenario construction
# ======================================================================

def _build_scenario(
    label: str,
    resolved: ResolvedEquipment,
    financials: NormalizedFinancials,
    assumptions: CostAssumptions,
) -> ScenarioResult:
    flows = (capital_cash_flow(resolved.capex),) + project_opex(
        resolved, financials, assumptions
    )
    factors = discount_factors(financials.discount_rate, financials.analysis_years)
    discounted = discount_series([cf.total for cf in flows], financials.discount_rate)

    return ScenarioResult(
        label=label,
        resolved=resolved,
        cash_flows=tuple(cf.discounted(float(factors[cf.year])) for cf in flows),
        npv_cost=discounted.npv,
    )


def _pue_warnings(
    scenarios: Sequence[ScenarioResult], assumptions: CostAssumptions
) -> list[str]:
    out = []
    for s in scenarios:
        pue = s.resolved.pue.pue
        if pue > assumptions.pue_warning_threshold:
            out.append(
                f"{s.label}: PUE {pue:.2f} exceeds plausibility threshold "
                f"{assumptions.pue_warning_threshold:.2f}"
            )
    return out


def _require_finite(name: str, values: Sequence[float]) -> None:
    if not np.all(np.isfinite(np.asarray(values, dtype=float))):
        raise CalculationError(f"non-finite values in {name}")


# ======================================================================
# Entry point
# ======================================================================

def compare(
    baseline: Any,
    alternative: Any,
    financials: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> ComparisonResult:
    """Compare the TCO of two cooling configurations.

    Parameters
    ----------
    baseline : AirCooling or ImmersionCooling
        Reference deployment, usually air cooling.
    alternative : AirCooling or ImmersionCooling
        Candidate deployment, usually immersion cooling.
    financials : FinancialParameters
        Horizon, discount and escalation rates, region and currency.
    assumptions : CostAssumptions
        Bounds and reference tables for this run.

    Returns
    -------
    ComparisonResult

    Raises
    ------
    ValidationError
        If any input is missing or out of bounds.
    ConfigurationError
        If a scenario is physically impossible.
    CalculationError
        If a non-finite number appears or the NPV cross-check fails.
    """
    # 1. Validate
    validated = validate(baseline, alternative, financials, assumptions)
    fin = validated.financials

    # 2. Resolve and project both scenarios
    scenarios = []
    for label, equipment in ((BASELINE, validated.baseline), (ALTERNATIVE, validated.alternative)):
        resolved = resolve_equipment(equipment, assumptions, fin.exchange_rate)
        scenarios.append(_build_scenario(label, resolved, fin, assumptions))
    base, alt = scenarios

    # 3. Differential savings
    savings = np.asarray(base.yearly_totals) - np.asarray(alt.yearly_totals)
    cumulative = np.cumsum(savings)
    _require_finite("savings", savings)
    _require_finite("cumulative savings", cumulative)

    # 4. NPV of savings, cross-checked
    discounted = discount_series(savings, fin.discount_rate)
    if not npv_matches(discounted.npv, base.npv_cost, alt.npv_cost):
        raise CalculationError(
            f"NPV of savings {discounted.npv!r} disagrees with "
            f"NPV(baseline) - NPV(alternative) = {base.npv_cost - alt.npv_cost!r}"
        )

    # 5. Payback and breakeven
    savings_t = tuple(float(v) for v in savings)
    cumulative_t = tuple(float(v) for v in cumulative)
    payback = payback_period(cumulative_t, savings_t)
    breakeven = payback is not None and payback <= fin.analysis_years

    result = ComparisonResult(
        currency=fin.currency,
        analysis_years=fin.analysis_years,
        discount_rate=fin.discount_rate,
        baseline=base,
        alternative=alt,
        savings=savings_t,
        cumulative_savings=cumulative_t,
        discounted_savings=discounted.present_values,
        npv_savings=discounted.npv,
        payback_years=payback,
        breakeven=breakeven,
        irr=internal_rate_of_return(savings_t),
        environmental=environmental_impact(
            base.resolved.pue, alt.resolved.pue, fin.region, assumptions
        ),
        warnings=validated.warnings + tuple(_pue_warnings(scenarios, assumptions)),
        configuration_hash=input_fingerprint(baseline, alternative, financials, assumptions),
    )

    logger.info(
        "Compared %s vs %s over %d years: NPV savings %.2f %s, payback %s",
        base.kind, alt.kind, fin.analysis_years, result.npv_savings,
        fin.currency, "n/a" if payback is None else f"{payback:.2f}y",
    )
    return result
