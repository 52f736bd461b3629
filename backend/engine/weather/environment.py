"""Environmental inputs for the PV module (irradiance and cell temperature)."""

from __future__ import annotations

import math
from dataclasses import dataclass

IRRADIANCE_MIN: float = 0.0
IRRADIANCE_MAX: float = 1000.0     # W/m^2
TEMP_MIN: float = -10.0            # degC
TEMP_MAX: float = 75.0             # degC

# Auto-sun profile: slow sinusoid around half the base irradiance
SUN_ANGULAR_RATE: float = 0.12     # rad/s of simulated time


@dataclass(frozen=True)
class EnvironmentalInput:
    """Irradiance (W/m^2) and cell temperature (degC), clamped on construction."""

    irradiance: float = 800.0
    temperature: float = 25.0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "irradiance",
            min(IRRADIANCE_MAX, max(IRRADIANCE_MIN, float(self.irradiance))),
        )
        object.__setattr__(
            self, "temperature",
            min(TEMP_MAX, max(TEMP_MIN, float(self.temperature))),
        )


def auto_sun_irradiance(base_irradiance: float, t_s: float) -> float:
    """Irradiance (W/m^2) of the auto-sun profile at simulated time *t_s*.

    Oscillates between 0 and *base_irradiance*, clamped to [0, 1000].
    """
    value = base_irradiance * (0.5 + 0.5 * math.sin(t_s * SUN_ANGULAR_RATE))
    return min(IRRADIANCE_MAX, max(IRRADIANCE_MIN, value))


def sample_environment(
    base: EnvironmentalInput, t_s: float, auto_sun: bool = False
) -> EnvironmentalInput:
    """Environment seen by the module at simulated time *t_s*."""
    if not auto_sun:
        return base
    return EnvironmentalInput(
        irradiance=auto_sun_irradiance(base.irradiance, t_s),
        temperature=base.temperature,
    )
