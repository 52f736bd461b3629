"""
Solar PV engine module.

Provides the single-diode module model (Newton-Raphson current solver) and
I-V / P-V curve generation at arbitrary irradiance and cell temperature.
"""

from .single_diode import (
    ModuleParameters,
    solve_current,
    thermal_voltage,
)
from .iv_curve import (
    CurvePoint,
    IVCurve,
    estimate_voc,
    generate_iv_curve,
    nearest_point,
)

__all__ = [
    # single_diode
    "ModuleParameters",
    "solve_current",
    "thermal_voltage",
    # iv_curve
    "CurvePoint",
    "IVCurve",
    "estimate_voc",
    "generate_iv_curve",
    "nearest_point",
]
