"""
Single-diode PV module model.

Solves the implicit five-parameter single-diode equivalent circuit for the
module current at a given terminal voltage using Newton-Raphson iteration.

References
----------
- De Soto W., Klein S.A., Beckman W.A., "Improvement and validation of
  a model for photovoltaic array performance", Solar Energy,
  80(1):78-88, 2006.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Physical / reference constants
# ---------------------------------------------------------------------------
Q_ELECTRON: float = 1.602176634e-19     # electron charge (C)
K_BOLTZMANN: float = 1.380649e-23        # Boltzmann constant (J/K)
T_REF: float = 298.15                    # STC cell temperature (K) = 25 degC
E_REF: float = 1000.0                    # STC irradiance (W/m^2)

# ---------------------------------------------------------------------------
# Solver settings
# ---------------------------------------------------------------------------
MAX_ITERATIONS: int = 60
TOLERANCE: float = 1e-7                  # Newton step size to stop at (A)
EXP_ARG_CAP: float = 700.0               # exp(709) is the float64 ceiling
EPS: float = 1e-12


@dataclass(frozen=True)
class ModuleParameters:
    """Single-diode module parameters at Standard Test Conditions.

    Defaults describe a 36-cell, roughly 90 W crystalline module.
    """

    cell_count: int = 36          # cells in series
    IL_stc: float = 5.5           # photo-generated current at STC (A)
    I0_stc: float = 1e-9          # diode saturation current at STC (A)
    Rs: float = 0.25              # series resistance (Ohm)
    Rsh: float = 200.0            # shunt resistance (Ohm)
    n: float = 1.3                # diode ideality factor

    def __post_init__(self) -> None:
        if int(self.cell_count) != self.cell_count or self.cell_count < 1:
            raise ValueError(f"cell_count must be an integer >= 1, got {self.cell_count}")
        if self.Rsh <= 0:
            raise ValueError(f"Rsh must be positive, got {self.Rsh}")
        if self.n <= 0:
            raise ValueError(f"n must be positive, got {self.n}")
        if self.Rs < 0 or self.IL_stc < 0 or self.I0_stc < 0:
            raise ValueError("Rs, IL_stc and I0_stc must be non-negative")


# ---------------------------------------------------------------------------
# Single-diode equation solver
# ---------------------------------------------------------------------------

def solve_current(
    V: float,
    IL: float,
    I0: float,
    Rs: float,
    Rsh: float,
    n: float,
    Vt: float,
) -> float:
    """Module current at terminal voltage *V*.

    Solves ``I - IL + I0*(exp((V + I*Rs)/(n*Vt)) - 1) + (V + I*Rs)/Rsh = 0``
    by Newton-Raphson starting from ``I = max(0, IL - V/Rsh)``.

    Parameters
    ----------
    V : float
        Terminal voltage (V).
    IL : float
        Photo-generated current at operating conditions (A).
    I0 : float
        Diode saturation current at operating conditions (A).
    Rs, Rsh : float
        Series and shunt resistance (Ohm).
    n : float
        Diode ideality factor.
    Vt : float
        Module thermal voltage, ``Ns * k*T/q`` (V).

    Returns
    -------
    float
        Module current (A), clamped to >= 0 since reverse current is not
        modelled.  The iteration budget is capped at ``MAX_ITERATIONS``;
        near the knee of the curve the result may be approximate.  If the
        iteration diverges the current falls back to 0.
    """
    nVt = n * Vt
    i = max(0.0, IL - V / (Rsh + EPS))

    for _ in range(MAX_ITERATIONS):
        vd = V + i * Rs  # diode voltage
        exp_term = math.exp(min(EXP_ARG_CAP, vd / nVt))
        f = i - IL + I0 * (exp_term - 1.0) + vd / (Rsh + EPS)
        df = 1.0 + I0 * exp_term * (Rs / (nVt + EPS)) + Rs / (Rsh + EPS)
        delta = f / (df + EPS)
        i -= delta
        if abs(delta) < TOLERANCE:
            break
        if not math.isfinite(i):
            i = 0.0
            break

    return max(0.0, i)


def thermal_voltage(temp_c: float) -> float:
    """Thermal voltage ``k*T/q`` of a single cell at *temp_c* (V)."""
    return K_BOLTZMANN * (temp_c + 273.15) / Q_ELECTRON
