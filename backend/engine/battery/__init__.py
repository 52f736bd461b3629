"""Battery storage engine -- lead-acid OCV curve and Coulomb-counting SOC."""

from .lead_acid import (
    BatteryModel,
    BatteryState,
    BatteryStepResult,
    battery_step,
    ocv_from_soc,
)

__all__ = [
    "BatteryModel",
    "BatteryState",
    "BatteryStepResult",
    "battery_step",
    "ocv_from_soc",
]
