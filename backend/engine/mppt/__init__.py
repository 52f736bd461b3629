"""Maximum power point tracking -- P&O duty-cycle control and operator commands."""

from .perturb_observe import (
    DUTY_MAX,
    DUTY_MIN,
    MPPTController,
    MPPTState,
    perturb_and_observe,
)
from .commands import Command, apply_command

__all__ = [
    "DUTY_MAX",
    "DUTY_MIN",
    "MPPTController",
    "MPPTState",
    "perturb_and_observe",
    "Command",
    "apply_command",
]
