"""Weather module -- clamped environmental inputs and the auto-sun profile."""

from .environment import (
    EnvironmentalInput,
    auto_sun_irradiance,
    sample_environment,
)

__all__ = [
    "EnvironmentalInput",
    "auto_sun_irradiance",
    "sample_environment",
]
