"""
12 V lead-acid battery model using Coulomb counting.

The open-circuit voltage follows a fixed SOC curve between 12.0 V (empty)
and 14.4 V (full).  Current is derived from the requested power at the
open-circuit voltage, integrated into ampere-hours and applied to the SOC,
which is clamped to [0, 1] after every update.  Energy beyond full or
below empty is silently discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple

import numpy as np

V_EMPTY: float = 12.0          # OCV floor (V)
V_FULL: float = 14.4           # OCV ceiling (V)
_OCV_EPS: float = 1e-9


@dataclass(frozen=True)
class BatteryState:
    """Battery parameters plus the evolving state of charge."""

    capacity_ah: float = 100.0     # nameplate capacity (Ah)
    r_int: float = 0.04            # internal resistance (Ohm)
    soc: float = 0.5               # state of charge in [0, 1]

    def __post_init__(self) -> None:
        if self.capacity_ah <= 0:
            raise ValueError(f"capacity_ah must be positive, got {self.capacity_ah}")
        if self.r_int < 0:
            raise ValueError(f"r_int must be non-negative, got {self.r_int}")
        object.__setattr__(self, "soc", float(np.clip(self.soc, 0.0, 1.0)))


class BatteryStepResult(NamedTuple):
    soc: float                 # state of charge after the step
    terminal_voltage: float    # V
    current: float             # A, positive = charging


def ocv_from_soc(soc: float) -> float:
    """Open-circuit voltage (V) at state of charge *soc*."""
    s = float(np.clip(soc, 0.0, 1.0))
    return V_EMPTY + (V_FULL - V_EMPTY) * (0.05 + 0.95 * s ** 0.9)


def battery_step(
    state: BatteryState, power_w: float, dt_s: float
) -> tuple[BatteryState, BatteryStepResult]:
    """Advance the battery by *dt_s* seconds at constant *power_w*.

    Sign convention: ``power_w > 0`` charges, ``power_w < 0`` discharges.

    Returns
    -------
    tuple[BatteryState, BatteryStepResult]
        The new state and ``(soc, terminal_voltage, current)``.
    """
    ocv = ocv_from_soc(state.soc)
    current = power_w / (ocv + _OCV_EPS)
    delta_ah = current * dt_s / 3600.0

    soc = float(np.clip(state.soc + delta_ah / state.capacity_ah, 0.0, 1.0))

    # Resistive term keeps the sign of |I|: the terminal voltage rises
    # above OCV whether charging or discharging.
    v_term = ocv + float(np.sign(current)) * current * state.r_int

    return replace(state, soc=soc), BatteryStepResult(soc, v_term, current)


class BatteryModel:
    """Stateful wrapper around :func:`battery_step`.

    Parameters
    ----------
    capacity_ah : float
        Nameplate capacity in Ah.  Default 100.
    initial_soc : float
        Starting SOC, clamped to [0, 1].  Default 0.5.
    r_int : float
        Internal resistance in Ohm.  Default 0.04.
    """

    def __init__(
        self,
        capacity_ah: float = 100.0,
        initial_soc: float = 0.5,
        r_int: float = 0.04,
    ) -> None:
        self._state = BatteryState(capacity_ah=capacity_ah, r_int=r_int, soc=initial_soc)
        self._initial_state = self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def step(self, power_w: float, dt_s: float) -> BatteryStepResult:
        """Apply *power_w* for *dt_s* seconds and return the step result."""
        self._state, result = battery_step(self._state, power_w, dt_s)
        return result

    @property
    def state(self) -> BatteryState:
        return self._state

    @property
    def soc(self) -> float:
        return self._state.soc

    def reset(self) -> None:
        """Reset SOC to the value provided at construction."""
        self._state = self._initial_state

    def __repr__(self) -> str:
        return (
            f"BatteryModel(capacity_ah={self._state.capacity_ah}, "
            f"r_int={self._state.r_int}, soc={self._state.soc:.4f})"
        )
