"""Power Usage Effectiveness estimation.

PUE = total facility power / IT power, where facility power is IT load
plus cooling overhead plus electrical distribution losses.

Air cooling
    overhead = IT / (COP x HVAC efficiency)
    losses   = IT x (1 - distribution efficiency x UPS efficiency)

Immersion cooling
    overhead = IT x (pump fraction / pump efficiency
                     + heat-exchanger fraction / heat-exchanger efficiency)
    losses   = IT x (1 - distribution efficiency)

Typical results are 1.2 -- 2.0 for air and 1.02 -- 1.05 for immersion.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import assert_never

from engine.economics.errors import ConfigurationError

from .equipment import AirCooling, EquipmentConfiguration, ImmersionCooling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PUEEstimate:
    """Facility power split for one cooling path (all kW)."""

    it_power_kw: float
    cooling_overhead_kw: float
    distribution_loss_kw: float

    @property
    def total_facility_kw(self) -> float:
        return self.it_power_kw + self.cooling_overhead_kw + self.distribution_loss_kw

    @property
    def pue(self) -> float:
        return self.total_facility_kw / self.it_power_kw

    def as_dict(self) -> dict[str, float]:
        return {
            "it_power_kw": self.it_power_kw,
            "cooling_overhead_kw": self.cooling_overhead_kw,
            "distribution_loss_kw": self.distribution_loss_kw,
            "total_facility_kw": self.total_facility_kw,
            "pue": self.pue,
        }


def _air_overheads(eq: AirCooling, it_power_kw: float) -> tuple[float, float]:
    cooling = it_power_kw / (eq.hvac_cop * eq.hvac_efficiency)
    losses = it_power_kw * (1.0 - eq.power_distribution_efficiency * eq.ups_efficiency)
    return cooling, losses


def _immersion_overheads(eq: ImmersionCooling, it_power_kw: float) -> tuple[float, float]:
    loop_fraction = (
        eq.pump_load_fraction / eq.pump_efficiency
        + eq.heat_exchanger_load_fraction / eq.heat_exchanger_efficiency
    )
    cooling = it_power_kw * loop_fraction
    losses = it_power_kw * (1.0 - eq.power_distribution_efficiency)
    return cooling, losses


def estimate_pue(
    equipment: EquipmentConfiguration,
    it_power_kw: float,
    warning_threshold: float | None = None,
) -> PUEEstimate:
    """Estimate facility power and PUE for a cooling configuration.

    Parameters
    ----------
    equipment : AirCooling or ImmersionCooling
        Validated configuration supplying the efficiency coefficients.
    it_power_kw : float
        Nameplate IT load (kW), as resolved from the equipment selection.
    warning_threshold : float or None
        PUE above which a warning is logged.

    Returns
    -------
    PUEEstimate

    Raises
    ------
    ConfigurationError
        If IT power is not positive or the estimate falls below 1.0.
    """
    if not it_power_kw > 0:
        raise ConfigurationError(f"IT power must be > 0 kW, got {it_power_kw}")

    match equipment:
        case AirCooling():
            cooling, losses = _air_overheads(equipment, it_power_kw)
        case ImmersionCooling():
            cooling, losses = _immersion_overheads(equipment, it_power_kw)
        case _:
            assert_never(equipment)

    estimate = PUEEstimate(
        it_power_kw=it_power_kw,
        cooling_overhead_kw=cooling,
        distribution_loss_kw=losses,
    )
    pue = estimate.pue

    if not math.isfinite(pue) or pue < 1.0:
        raise ConfigurationError(
            f"{equipment.kind} PUE of {pue} is physically impossible (must be >= 1.0)"
        )
    if warning_threshold is not None and pue > warning_threshold:
        logger.warning(
            "%s PUE %.3f exceeds plausibility threshold %.2f",
            equipment.kind, pue, warning_threshold,
        )

    logger.debug(
        "%s PUE %.4f (cooling %.1f kW, losses %.1f kW)",
        equipment.kind, pue, cooling, losses,
    )
    return estimate
