"""Charge-controller simulation -- pure tick function, stateful runner and tick source."""

from .runner import (
    SimulationConfig,
    SimulationRunner,
    SimulationState,
    Telemetry,
    TickResult,
    initial_state,
    simulate_tick,
)
from .scheduler import TickScheduler

__all__ = [
    "SimulationConfig",
    "SimulationRunner",
    "SimulationState",
    "Telemetry",
    "TickResult",
    "initial_state",
    "simulate_tick",
    "TickScheduler",
]
