"""Annual environmental impact of switching cooling paths."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from engine.cooling.pue import PUEEstimate

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions


@dataclass(frozen=True)
class EnvironmentalImpact:
    """Yearly resource savings of the alternative over the baseline."""

    energy_savings_kwh_annual: float
    carbon_savings_kg_co2_annual: float
    water_savings_gallons_annual: float
    carbon_footprint_reduction_percent: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def annual_facility_kwh(pue: PUEEstimate, hours_per_year: float) -> float:
    return pue.total_facility_kw * hours_per_year


def environmental_impact(
    baseline: PUEEstimate,
    alternative: PUEEstimate,
    region: str,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> EnvironmentalImpact:
    """Energy, CO2 and water saved per year.

    CO2 uses the regional grid factor; water uses a flat cooling-tower
    consumption per kWh of facility energy.  Negative values mean the
    alternative consumes more than the baseline.
    """
    hours = assumptions.hours_per_year
    base_kwh = annual_facility_kwh(baseline, hours)
    saved_kwh = base_kwh - annual_facility_kwh(alternative, hours)

    return EnvironmentalImpact(
        energy_savings_kwh_annual=saved_kwh,
        carbon_savings_kg_co2_annual=saved_kwh * assumptions.carbon_factors[region],
        water_savings_gallons_annual=saved_kwh * assumptions.water_gallons_per_kwh,
        carbon_footprint_reduction_percent=saved_kwh / base_kwh * 100.0,
    )
