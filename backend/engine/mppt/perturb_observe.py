"""
Perturb-and-Observe (P&O) maximum power point tracking.

Classic fixed-step hill climb on the converter duty cycle: keep perturbing
in the same direction while power rises, reverse as soon as it does not.
Near the maximum the duty cycle oscillates within one step of the peak.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commands import Command

DUTY_MIN: float = 0.05
DUTY_MAX: float = 0.95
STEP_SIZE: float = 0.008
POWER_DEADBAND: float = 1e-4   # W; smaller gains count as no improvement


def clamp_duty(duty: float) -> float:
    return max(DUTY_MIN, min(DUTY_MAX, duty))


@dataclass(frozen=True)
class MPPTState:
    """Controller memory carried from one control step to the next."""

    duty: float = 0.5
    step_size: float = STEP_SIZE
    prev_power: float = 0.0        # W
    direction: int = 1             # +1 raise duty, -1 lower duty

    def __post_init__(self) -> None:
        if self.direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {self.direction}")
        object.__setattr__(self, "duty", clamp_duty(self.duty))


def perturb_and_observe(state: MPPTState, v: float, p: float) -> MPPTState:
    """One P&O step from the measured operating point.

    Parameters
    ----------
    state : MPPTState
        Controller state from the previous step.
    v : float
        Measured PV voltage (V).  Unused by the fixed-step law but part of
        the measurement.
    p : float
        Measured PV power (W).

    Returns
    -------
    MPPTState
        Updated state; ``duty`` is the command for the next step.
    """
    dP = p - state.prev_power
    direction = state.direction
    if not dP > POWER_DEADBAND:
        direction = -direction

    return replace(
        state,
        duty=clamp_duty(state.duty + direction * state.step_size),
        prev_power=p,
        direction=direction,
    )


class MPPTController:
    """Stateful P&O controller."""

    def __init__(self, initial_duty: float = 0.5, step_size: float = STEP_SIZE) -> None:
        self._state = MPPTState(duty=initial_duty, step_size=step_size)

    def update(self, v: float, p: float) -> float:
        """Feed a measurement, return the new duty cycle."""
        self._state = perturb_and_observe(self._state, v, p)
        return self._state.duty

    def apply(self, command: Command | str) -> float:
        """Apply an operator command directly to the duty cycle."""
        from .commands import apply_command  # commands imports this module

        self._state = apply_command(self._state, command)
        return self._state.duty

    @property
    def state(self) -> MPPTState:
        return self._state

    @property
    def duty(self) -> float:
        return self._state.duty

    @duty.setter
    def duty(self, value: float) -> None:
        self._state = replace(self._state, duty=clamp_duty(value))

    def __repr__(self) -> str:
        return (
            f"MPPTController(duty={self._state.duty:.3f}, "
            f"direction={self._state.direction:+d}, "
            f"prev_power={self._state.prev_power:.3f})"
        )
