"""Reference data endpoints: default assumptions and equipment settings."""
from dataclasses import asdict

from fastapi import APIRouter

from engine.cooling.equipment import AirCooling, ImmersionCooling
from engine.economics.assumptions import DEFAULT_ASSUMPTIONS
from engine.economics.currency import usd_pair_rates
from engine.economics.parameters import FinancialParameters

router = APIRouter()


@router.get(
    "/defaults",
    summary="Default assumptions",
    description="Validation bounds, regional rates, exchange rates and equipment defaults used by the calculator.",
)
async def get_defaults() -> dict:
    assumptions = DEFAULT_ASSUMPTIONS.as_dict()
    assumptions["exchange_pairs"] = usd_pair_rates(DEFAULT_ASSUMPTIONS.exchange_rates)
    return {
        "assumptions": assumptions,
        "equipment": {
            "air_cooling": asdict(AirCooling()),
            "immersion_cooling": asdict(ImmersionCooling()),
        },
        "financial": asdict(FinancialParameters()),
    }
