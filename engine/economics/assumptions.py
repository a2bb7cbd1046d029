"""Cost assumptions, regional rates and validation bounds.

Every table the engine consults is carried on a :class:`CostAssumptions`
instance that is passed explicitly into each calculation.  Nothing here is
read as process-wide state, so sensitivity sweeps can run side by side with
different assumption sets and tests can inject arbitrary bounds.

Monetary defaults are in USD and are converted into the target currency
with the static exchange rates below.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

# ======================================================================
# Reference tables
# ======================================================================

SUPPORTED_REGIONS: tuple[str, ...] = ("US", "EU", "ME")
SUPPORTED_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "SAR", "AED")

HOURS_PER_YEAR: float = 8760.0

# Default grid energy cost, USD per kWh.
REGIONAL_ENERGY_COSTS: dict[str, float] = {
    "US": 0.12,
    "EU": 0.28,
    "ME": 0.08,
}

# Default technician rate, USD per hour.
REGIONAL_LABOR_COSTS: dict[str, float] = {
    "US": 75.0,
    "EU": 65.0,
    "ME": 45.0,
}

# Grid carbon intensity, kg CO2 per kWh.
CARBON_FACTORS: dict[str, float] = {
    "US": 0.4,
    "EU": 0.3,
    "ME": 0.5,
}

# Static conversion table: 1 USD expressed in each currency.
EXCHANGE_RATES_FROM_USD: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "SAR": 3.75,
    "AED": 3.6725,
}

# Inclusive (min, max) per validated quantity.  Keys are looked up by the
# validator; field names map onto them in ``validation.py``.
VALIDATION_LIMITS: dict[str, tuple[float, float]] = {
    "rack_count": (1, 1000),
    "power_per_rack_kw": (0.5, 50.0),
    "total_power_kw": (1.0, 50_000.0),
    "tank_quantity": (1, 500),
    "tank_size_u": (1, 23),
    "power_density_kw_per_u": (0.5, 5.0),
    "efficiency": (0.1, 1.0),
    "hvac_cop": (1.0, 10.0),
    "hvac_unit_capacity_kw": (1.0, 1000.0),
    "load_fraction": (0.0, 0.5),
    "coolant_volume_per_server_liters": (1.0, 100.0),
    "coolant_cost_per_liter": (1.0, 500.0),
    "cycle_months": (1, 120),
    "analysis_years": (1, 10),
    "discount_rate": (0.01, 0.25),
    "escalation_rate": (0.0, 0.20),
    "energy_cost_per_kwh": (0.01, 1.0),
    "labor_rate_per_hour": (10.0, 200.0),
    "exchange_rate": (0.0001, 10_000.0),
    "unit_cost": (0.0, 10_000_000.0),
    "fraction": (0.0, 1.0),
    "maintenance_pct": (0.0, 0.5),
    "labor_hours_per_unit": (0.0, 1000.0),
}


# ======================================================================
# Assumption set
# ======================================================================

_TABLES = ("limits", "energy_costs", "labor_costs", "carbon_factors", "exchange_rates")


@dataclass(frozen=True)
class CostAssumptions:
    """Immutable bundle of tables used by one calculation run.

    Parameters
    ----------
    limits : Mapping[str, tuple[float, float]]
        Validation bounds, see :data:`VALIDATION_LIMITS`.
    energy_costs, labor_costs, carbon_factors : Mapping[str, float]
        Regional defaults keyed by region code.
    exchange_rates : Mapping[str, float]
        Units of each currency per USD.
    hours_per_year : float
        Operating hours used for annual energy.
    default_rack_capacity_kw : float
        Per-rack IT load assumed when air cooling is sized from total power.
    reference_tank_size_u, reference_tank_density_kw_per_u : float
        Tank used when immersion cooling is auto-sized.
    pue_warning_threshold : float
        PUE above which the estimate is flagged as implausible.
    high_rack_count_warning, long_horizon_warning : int
        Advisory thresholds reported as warnings, not violations.
    water_gallons_per_kwh : float
        Cooling-tower water use avoided per kWh of facility energy saved.
    """

    limits: Mapping[str, tuple[float, float]] = field(
        default_factory=lambda: dict(VALIDATION_LIMITS)
    )
    energy_costs: Mapping[str, float] = field(
        default_factory=lambda: dict(REGIONAL_ENERGY_COSTS)
    )
    labor_costs: Mapping[str, float] = field(
        default_factory=lambda: dict(REGIONAL_LABOR_COSTS)
    )
    carbon_factors: Mapping[str, float] = field(
        default_factory=lambda: dict(CARBON_FACTORS)
    )
    exchange_rates: Mapping[str, float] = field(
        default_factory=lambda: dict(EXCHANGE_RATES_FROM_USD)
    )
    hours_per_year: float = HOURS_PER_YEAR
    default_rack_capacity_kw: float = 15.0
    reference_tank_size_u: int = 23
    reference_tank_density_kw_per_u: float = 2.0
    pue_warning_threshold: float = 3.0
    high_rack_count_warning: int = 500
    long_horizon_warning: int = 7
    water_gallons_per_kwh: float = 0.5

    def __post_init__(self) -> None:
        for name in _TABLES:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def bound(self, key: str) -> tuple[float, float]:
        """Return the ``(min, max)`` pair registered under *key*."""
        return self.limits[key]

    def with_limits(self, **overrides: tuple[float, float]) -> CostAssumptions:
        """Copy of this assumption set with some bounds replaced."""
        limits = dict(self.limits)
        limits.update(overrides)
        return replace(self, limits=limits)

    def as_dict(self) -> dict[str, Any]:
        return {
            "limits": {k: list(v) for k, v in self.limits.items()},
            "energy_costs": dict(self.energy_costs),
            "labor_costs": dict(self.labor_costs),
            "carbon_factors": dict(self.carbon_factors),
            "exchange_rates": dict(self.exchange_rates),
            "hours_per_year": self.hours_per_year,
            "default_rack_capacity_kw": self.default_rack_capacity_kw,
            "reference_tank_size_u": self.reference_tank_size_u,
            "reference_tank_density_kw_per_u": self.reference_tank_density_kw_per_u,
            "pue_warning_threshold": self.pue_warning_threshold,
            "supported_regions": list(SUPPORTED_REGIONS),
            "supported_currencies": list(SUPPORTED_CURRENCIES),
        }


DEFAULT_ASSUMPTIONS = CostAssumptions()
