"""Pydantic schemas for TCO calculation requests.

Request models only check types.  Range checks are left to the engine
validator so that every out-of-bounds field comes back in one structured
violation list instead of FastAPI's generic 422 body.  Fields left unset
fall back to the engine dataclass defaults.
"""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from engine.cooling.equipment import (
    AirCooling,
    AirUnitCosts,
    ImmersionCooling,
    ImmersionUnitCosts,
    TankConfiguration,
)
from engine.economics.parameters import FinancialParameters


def _set_fields(model: BaseModel, exclude: set[str] | None = None) -> dict:
    return model.model_dump(exclude_none=True, exclude=exclude or set())


# ── Air cooling ───────────────────────────────────────────────────────

class AirUnitCostsInput(BaseModel):
    rack_unit_cost: float | None = Field(default=None, description="Price per 42U rack (USD)")
    rack_installation_cost: float | None = Field(default=None, description="Installation per rack (USD)")
    hvac_unit_cost: float | None = Field(default=None, description="Price per CRAC/CRAH unit (USD)")
    hvac_installation_cost: float | None = Field(default=None, description="Installation per HVAC unit (USD)")
    infrastructure_cost_per_kw: float | None = Field(default=None, description="Electrical infrastructure per facility kW (USD)")

    def to_engine(self) -> AirUnitCosts:
        return AirUnitCosts(**_set_fields(self))


class AirCoolingInput(BaseModel):
    input_method: str = Field(default="rack_count", description="'rack_count' or 'total_power'")
    rack_count: int | None = None
    power_per_rack_kw: float | None = None
    total_power_kw: float | None = None
    hvac_cop: float | None = Field(default=None, description="HVAC coefficient of performance")
    hvac_efficiency: float | None = None
    power_distribution_efficiency: float | None = None
    ups_efficiency: float | None = None
    hvac_unit_capacity_kw: float | None = None
    annual_maintenance_pct: float | None = None
    labor_hours_per_rack: float | None = None
    unit_costs: AirUnitCostsInput = Field(default_factory=AirUnitCostsInput)

    def to_engine(self) -> AirCooling:
        return AirCooling(
            **_set_fields(self, {"unit_costs"}),
            unit_costs=self.unit_costs.to_engine(),
        )


# ── Immersion cooling ─────────────────────────────────────────────────

class TankInput(BaseModel):
    size_u: int = Field(description="Tank height in rack units, e.g. 23 or '23U'")
    quantity: int
    power_density_kw_per_u: float | None = None

    @field_validator("size_u", mode="before")
    @classmethod
    def _parse_size(cls, v):
        if isinstance(v, str) and v.upper().endswith("U"):
            return v[:-1]
        return v

    def to_engine(self) -> TankConfiguration:
        return TankConfiguration(**_set_fields(self))


class ImmersionUnitCostsInput(BaseModel):
    tank_unit_cost: float | None = Field(default=None, description="Price per 23U tank (USD)")
    installation_fraction: float | None = None
    pump_system_cost_per_tank: float | None = None
    heat_exchanger_cost_per_tank: float | None = None
    infrastructure_cost_per_kw: float | None = None
    coolant_cost_per_liter: float | None = Field(default=None, description="Dielectric fluid price (USD/L)")
    filtration_cost_per_liter: float | None = None

    def to_engine(self) -> ImmersionUnitCosts:
        return ImmersionUnitCosts(**_set_fields(self))


class ImmersionCoolingInput(BaseModel):
    input_method: str = Field(default="manual_config", description="'manual_config' or 'auto_optimize'")
    tanks: list[TankInput] = Field(default_factory=list)
    target_power_kw: float | None = None
    pump_efficiency: float | None = None
    heat_exchanger_efficiency: float | None = None
    pump_load_fraction: float | None = None
    heat_exchanger_load_fraction: float | None = None
    power_distribution_efficiency: float | None = None
    coolant_volume_per_server_liters: float | None = None
    coolant_replacement_cycle_months: int | None = None
    filtration_cycle_months: int | None = None
    annual_maintenance_pct: float | None = None
    labor_hours_per_tank: float | None = None
    unit_costs: ImmersionUnitCostsInput = Field(default_factory=ImmersionUnitCostsInput)

    def to_engine(self) -> ImmersionCooling:
        return ImmersionCooling(
            **_set_fields(self, {"unit_costs", "tanks"}),
            tanks=tuple(t.to_engine() for t in self.tanks),
            unit_costs=self.unit_costs.to_engine(),
        )


# ── Financials ────────────────────────────────────────────────────────

class FinancialInput(BaseModel):
    analysis_years: int | None = Field(default=None, description="Horizon in years (1-10)")
    discount_rate: float | None = Field(default=None, description="Annual discount rate, e.g. 0.08")
    energy_escalation_rate: float | None = None
    maintenance_escalation_rate: float | None = None
    labor_escalation_rate: float | None = None
    region: str = Field(default="US", description="US, EU or ME")
    energy_cost_per_kwh: float | None = Field(default=None, description="Override, in target currency")
    labor_rate_per_hour: float | None = Field(default=None, description="Override, in target currency")
    currency: str = Field(default="USD", description="USD, EUR, SAR or AED")
    exchange_rate: float | None = Field(default=None, description="Units of currency per USD")

    def to_engine(self) -> FinancialParameters:
        return FinancialParameters(**_set_fields(self))


# ── Requests ──────────────────────────────────────────────────────────

class CalculationRequest(BaseModel):
    air_cooling: AirCoolingInput
    immersion_cooling: ImmersionCoolingInput
    financial: FinancialInput

    def to_engine(self) -> tuple[AirCooling, ImmersionCooling, FinancialParameters]:
        return (
            self.air_cooling.to_engine(),
            self.immersion_cooling.to_engine(),
            self.financial.to_engine(),
        )


class CalculateRequest(CalculationRequest):
    save_session: bool = False
    session_expiry_days: int | None = Field(default=None, ge=1, description="Defaults to server setting")


class SensitivityVariable(BaseModel):
    name: str = Field(max_length=100)
    param_path: str = Field(description="e.g. 'financials.discount_rate' or 'alternative.unit_costs.tank_unit_cost'")
    range: list[float] = Field(min_length=2, max_length=2)
    points: int = Field(default=5, ge=2, le=25)


class SensitivityRequest(CalculationRequest):
    variables: list[SensitivityVariable] = Field(min_length=1, max_length=10)


class ReportRequest(CalculationRequest):
    title: str = Field(default="Cooling TCO Comparison", max_length=200)


# ── Responses ─────────────────────────────────────────────────────────

class ValidationResponse(BaseModel):
    valid: bool
    violations: list[dict]
    warnings: list[str]


class CalculationResponse(BaseModel):
    calculation_id: str
    calculated_at: datetime
    processing_time_ms: float
    result: dict
    session_id: str | None = None
    share_token: str | None = None
    expires_at: datetime | None = None


class SessionResponse(BaseModel):
    id: str
    share_token: str
    configuration: dict
    results: dict
    configuration_hash: str
    currency: str
    access_count: int
    created_at: datetime | None
    expires_at: datetime
