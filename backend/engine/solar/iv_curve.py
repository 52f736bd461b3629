"""
I-V / P-V curve generation for a single PV module.

Translates the STC module parameters to the requested irradiance and cell
temperature, then sweeps the terminal voltage from 0 to an estimated
open-circuit voltage and solves the single-diode equation at each sample.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from .single_diode import (
    E_REF,
    T_REF,
    ModuleParameters,
    solve_current,
    thermal_voltage,
)

CURVE_POINTS: int = 81

# Linear per-cell open-circuit voltage estimate
VOC_PER_CELL: float = 0.6                # V at 25 degC
VOC_TEMP_COEFF: float = -0.002           # V/K per cell


class CurvePoint(NamedTuple):
    """One sample of an I-V curve."""

    V: float  # voltage (V)
    I: float  # current (A)
    P: float  # power (W)


@dataclass(frozen=True)
class IVCurve:
    """Sampled I-V / P-V curve, ascending in voltage.

    The arrays are flagged read-only; a curve is never modified once
    generated.
    """

    voltage: NDArray[np.float64]
    current: NDArray[np.float64]
    power: NDArray[np.float64]
    voc: float   # estimated open-circuit voltage bounding the sweep (V)
    il: float    # photo-generated current at operating conditions (A)

    def __len__(self) -> int:
        return int(self.voltage.shape[0])

    def __getitem__(self, index: int) -> CurvePoint:
        return CurvePoint(
            float(self.voltage[index]),
            float(self.current[index]),
            float(self.power[index]),
        )

    @property
    def points(self) -> tuple[CurvePoint, ...]:
        return tuple(self[k] for k in range(len(self)))

    @property
    def mpp(self) -> CurvePoint:
        """Sampled point with the highest power (first one on ties)."""
        return self[int(np.argmax(self.power))]

    def to_dict(self) -> dict:
        return {
            "voc": self.voc,
            "il": self.il,
            "points": [p._asdict() for p in self.points],
        }


def estimate_voc(temp_c: float, cell_count: int) -> float:
    """Linear open-circuit voltage estimate used to bound the sweep.

    Not solved from the diode equation; the true zero-current voltage of
    the generated curve may differ.
    """
    return cell_count * (VOC_PER_CELL + VOC_TEMP_COEFF * (temp_c - 25.0))


def generate_iv_curve(
    irradiance: float,
    temp_c: float,
    params: ModuleParameters,
    n_points: int = CURVE_POINTS,
) -> IVCurve:
    """Generate the I-V / P-V curve of a module.

    Parameters
    ----------
    irradiance : float
        Plane-of-array irradiance (W/m^2).
    temp_c : float
        Cell temperature (degC).
    params : ModuleParameters
        Module parameters at STC.
    n_points : int
        Number of voltage samples, including both end points.

    Returns
    -------
    IVCurve
        Curve sampled at *n_points* evenly spaced voltages in ``[0, Voc]``.
    """
    T_cell_K = temp_c + 273.15
    vt_cell = thermal_voltage(temp_c)
    vt_module = vt_cell * params.cell_count

    # Photo-current scales linearly with irradiance
    il = params.IL_stc * (irradiance / E_REF)

    # Saturation current: cubic temperature law with exponential term
    i0 = params.I0_stc * (T_cell_K / T_REF) ** 3 * math.exp(-1.2 / vt_cell)

    voc = estimate_voc(temp_c, params.cell_count)

    voltage = np.linspace(0.0, voc, n_points)
    current = np.array(
        [
            solve_current(float(v), il, i0, params.Rs, params.Rsh, params.n, vt_module)
            for v in voltage
        ],
        dtype=np.float64,
    )
    power = voltage * current

    for arr in (voltage, current, power):
        arr.setflags(write=False)

    return IVCurve(voltage=voltage, current=current, power=power, voc=voc, il=il)


def nearest_point(curve: IVCurve, target_v: float) -> CurvePoint:
    """Curve sample whose voltage is closest to *target_v*.

    Linear scan, no interpolation; the lowest-voltage sample wins a tie.
    """
    best = 0
    best_dist = abs(float(curve.voltage[0]) - target_v)
    for k in range(1, len(curve)):
        dist = abs(float(curve.voltage[k]) - target_v)
        if dist < best_dist:
            best, best_dist = k, dist
    return curve[best]
