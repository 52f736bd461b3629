"""Operator commands accepted by the charge controller."""

from __future__ import annotations

import enum
from dataclasses import replace

from .perturb_observe import DUTY_MAX, DUTY_MIN, MPPTState, clamp_duty

COMMAND_DUTY_STEP: float = 0.05


class Command(str, enum.Enum):
    BUCK_ON = "BUCK_ON"      # lower the duty cycle one command step
    BOOST_ON = "BOOST_ON"    # raise the duty cycle one command step
    ALL_OFF = "ALL_OFF"      # force the minimum duty cycle
    AUTO = "AUTO"            # P&O tracking (mode label)
    MANUAL = "MANUAL"        # operator control (mode label)

    @classmethod
    def parse(cls, raw: str | Command) -> Command:
        """Case-insensitive lookup; raises ``ValueError`` for unknown commands."""
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown command '{raw}'. Choose from: {[c.value for c in cls]}"
            ) from None

    @property
    def is_mode(self) -> bool:
        return self in (Command.AUTO, Command.MANUAL)


def apply_command(state: MPPTState, command: Command | str) -> MPPTState:
    """Return *state* with the duty cycle overridden by *command*.

    The P&O memory (previous power, direction) is left untouched.  Mode
    commands do not change the duty cycle.
    """
    command = Command.parse(command)

    if command is Command.ALL_OFF:
        duty = DUTY_MIN
    elif command is Command.BUCK_ON:
        duty = max(DUTY_MIN, state.duty - COMMAND_DUTY_STEP)
    elif command is Command.BOOST_ON:
        duty = min(DUTY_MAX, state.duty + COMMAND_DUTY_STEP)
    else:
        return state

    return replace(state, duty=clamp_duty(duty))
