"""Financial parameters for a TCO comparison."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FinancialParameters:
    """Caller-supplied financial assumptions.

    ``analysis_years`` and ``discount_rate`` have no defaults: a horizon is
    meaningless without the rate it is discounted at, so the validator
    reports either one missing.  ``energy_cost_per_kwh`` and
    ``labor_rate_per_hour`` override the regional defaults and are quoted
    in the target ``currency``.  ``exchange_rate`` (units of ``currency``
    per USD) overrides the static table.
    """

    analysis_years: int | None = None
    discount_rate: float | None = None
    energy_escalation_rate: float = 0.03
    maintenance_escalation_rate: float = 0.025
    labor_escalation_rate: float = 0.04
    region: str = "US"
    energy_cost_per_kwh: float | None = None
    labor_rate_per_hour: float | None = None
    currency: str = "USD"
    exchange_rate: float | None = None


@dataclass(frozen=True)
class NormalizedFinancials:
    """Financial parameters after validation and default resolution.

    Every rate is concrete and every monetary rate is in ``currency``.
    """

    analysis_years: int
    discount_rate: float
    energy_escalation_rate: float
    maintenance_escalation_rate: float
    labor_escalation_rate: float
    region: str
    energy_cost_per_kwh: float
    labor_rate_per_hour: float
    currency: str
    exchange_rate: float
