"""Simulation orchestrator for the MPPT charge controller.

Each tick samples the environment, generates the module I-V curve, places
the converter operating point on it from the current duty cycle, runs one
Perturb-and-Observe step, charges the battery with the net converter
output and emits a telemetry record.

The tick itself is the pure function :func:`simulate_tick`; state lives in
an immutable :class:`SimulationState` so runs can be replayed
deterministically without a clock.  :class:`SimulationRunner` keeps the
current state and the pending operator command between ticks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from engine.battery.lead_acid import BatteryState, BatteryStepResult, battery_step
from engine.load.load_model import controller_load_w
from engine.mppt.commands import Command, apply_command
from engine.mppt.perturb_observe import MPPTState, perturb_and_observe
from engine.solar.iv_curve import CurvePoint, IVCurve, generate_iv_curve, nearest_point
from engine.solar.single_diode import ModuleParameters
from engine.weather.environment import EnvironmentalInput, sample_environment

logger = logging.getLogger(__name__)

# ======================================================================
# Constants
# ======================================================================

TICK_PERIOD_S: float = 0.5
CONVERTER_EFFICIENCY: float = 0.94
NET_POWER_FLOOR_W: float = -10_000.0

MIN_TARGET_V: float = 0.01
MAX_TARGET_FRACTION: float = 0.98       # of Voc

LOW_POWER_W: float = 0.5
LOW_IRRADIANCE: float = 50.0            # W/m^2

WARN_OK = "OK"
WARN_LOW_POWER = "LOW_POWER"

_MODE_LABELS = {
    Command.AUTO: "SIM_MPPT",
    Command.MANUAL: "SIM_MANUAL",
}


# ======================================================================
# Configuration and state
# ======================================================================

@dataclass
class SimulationConfig:
    """Fixed parameters of a simulation session."""

    module: ModuleParameters = field(default_factory=ModuleParameters)
    irradiance: float = 800.0           # base irradiance (W/m^2)
    temperature: float = 25.0           # cell temperature (degC)
    auto_sun: bool = False
    period_s: float = TICK_PERIOD_S
    converter_efficiency: float = CONVERTER_EFFICIENCY
    net_power_floor_w: float = NET_POWER_FLOOR_W

    # --- Battery ---
    capacity_ah: float = 100.0
    initial_soc: float = 0.6
    r_int: float = 0.03

    # --- MPPT ---
    initial_duty: float = 0.5

    def __post_init__(self) -> None:
        if self.period_s <= 0:
            raise ValueError(f"period_s must be positive, got {self.period_s}")
        if not 0 < self.converter_efficiency <= 1.0:
            raise ValueError(
                f"converter_efficiency must be in (0, 1], got {self.converter_efficiency}"
            )


@dataclass(frozen=True)
class SimulationState:
    """Everything that carries over from one tick to the next."""

    mppt: MPPTState
    battery: BatteryState
    environment: EnvironmentalInput     # configured (base) environment
    auto_sun: bool = False
    mode: Command = Command.AUTO
    pending_command: Command | None = None
    t_s: float = 0.0
    tick_count: int = 0


def initial_state(config: SimulationConfig) -> SimulationState:
    return SimulationState(
        mppt=MPPTState(duty=config.initial_duty),
        battery=BatteryState(
            capacity_ah=config.capacity_ah,
            r_int=config.r_int,
            soc=config.initial_soc,
        ),
        environment=EnvironmentalInput(config.irradiance, config.temperature),
        auto_sun=config.auto_sun,
    )


# ======================================================================
# Outputs
# ======================================================================

@dataclass(frozen=True)
class Telemetry:
    """One telemetry record, in SI units."""

    v: float
    i: float
    p: float
    batt: float = 0.0
    mode: str = "OFF"
    warn: str = "OFF"
    sys: str = "OFF"

    def to_message(self) -> dict[str, Any]:
        return {
            "v": self.v,
            "i": self.i,
            "p": self.p,
            "batt": self.batt,
            "mode": self.mode,
            "warn": self.warn,
            "sys": self.sys,
        }


@dataclass(frozen=True)
class TickResult:
    """Outputs of one tick beyond the telemetry record."""

    telemetry: Telemetry
    curve: IVCurve
    environment: EnvironmentalInput     # environment actually simulated
    operating_point: CurvePoint
    duty_applied: float                 # duty that selected the operating point
    duty_next: float                    # P&O output for the next tick
    load_w: float
    battery_power_w: float
    battery: BatteryStepResult
    tracking_efficiency: float          # P / P_mpp of the sampled curve
    t_s: float


# ======================================================================
# Tick
# ======================================================================

def low_power_warning(power_w: float, irradiance: float) -> str:
    if power_w < LOW_POWER_W and irradiance < LOW_IRRADIANCE:
        return WARN_LOW_POWER
    return WARN_OK


def simulate_tick(
    state: SimulationState,
    config: SimulationConfig,
    dt_s: float | None = None,
) -> tuple[SimulationState, TickResult]:
    """Advance the simulation by one tick.

    Parameters
    ----------
    state : SimulationState
        State at the end of the previous tick.
    config : SimulationConfig
        Session parameters.
    dt_s : float or None
        Simulated time step in seconds; defaults to ``config.period_s``.

    Returns
    -------
    tuple[SimulationState, TickResult]
    """
    dt = config.period_s if dt_s is None else dt_s
    t = state.t_s + dt

    # 1) Operator command queued since the last tick overrides the duty
    mppt = state.mppt
    mode = state.mode
    if state.pending_command is not None:
        cmd = state.pending_command
        mppt = apply_command(mppt, cmd)
        if cmd.is_mode:
            mode = cmd
        logger.debug(
            "Applied command %s, duty=%.3f", cmd.value, mppt.duty,
            extra={"command": cmd.value, "duty": mppt.duty, "t_s": t},
        )

    # 2) Environment and module curve
    env = sample_environment(state.environment, t, state.auto_sun)
    curve = generate_iv_curve(env.irradiance, env.temperature, config.module)

    # 3) Duty cycle -> operating voltage -> nearest curve sample
    voc = curve.voc
    target_v = max(MIN_TARGET_V, min(voc * MAX_TARGET_FRACTION, mppt.duty * voc))
    point = nearest_point(curve, target_v)

    # 4) P&O
    duty_applied = mppt.duty
    mppt = perturb_and_observe(mppt, point.V, point.P)

    # 5) Battery
    load_w = controller_load_w(t)
    net_w = max(
        config.net_power_floor_w,
        (point.P - load_w) * config.converter_efficiency,
    )
    battery, batt = battery_step(state.battery, net_w, dt)

    # 6) Telemetry
    p_mpp = curve.mpp.P
    telemetry = Telemetry(
        v=point.V,
        i=point.I,
        p=point.P,
        batt=batt.terminal_voltage,
        mode=_MODE_LABELS[mode],
        warn=low_power_warning(point.P, env.irradiance),
        sys=f"Duty={mppt.duty:.2f} Voc={voc:.2f} IL={curve.il:.2f}",
    )

    new_state = replace(
        state,
        mppt=mppt,
        battery=battery,
        mode=mode,
        pending_command=None,
        t_s=t,
        tick_count=state.tick_count + 1,
    )
    result = TickResult(
        telemetry=telemetry,
        curve=curve,
        environment=env,
        operating_point=point,
        duty_applied=duty_applied,
        duty_next=mppt.duty,
        load_w=load_w,
        battery_power_w=net_w,
        battery=batt,
        tracking_efficiency=point.P / p_mpp if p_mpp > 0 else 0.0,
        t_s=t,
    )
    return new_state, result


# ======================================================================
# SimulationRunner
# ======================================================================

class SimulationRunner:
    """Stateful driver around :func:`simulate_tick`.

    Holds the current :class:`SimulationState` and a single pending command
    slot.  Submitting a command while another is pending replaces it; at most
    one command is applied per tick, at the start of the next tick.

    Parameters
    ----------
    config : SimulationConfig or None
        Session parameters.  Defaults to :class:`SimulationConfig` defaults.
    """

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self.config = config or SimulationConfig()
        self._state = initial_state(self.config)
        self._last: TickResult | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tick(self, dt_s: float | None = None) -> TickResult:
        """Run one tick and return its result."""
        self._state, self._last = simulate_tick(self._state, self.config, dt_s)
        return self._last

    def submit_command(self, command: Command | str) -> Command:
        """Queue *command* for the next tick; raises ``ValueError`` if unknown."""
        cmd = Command.parse(command)
        if self._state.pending_command is not None:
            logger.debug(
                "Replacing pending command %s with %s",
                self._state.pending_command.value, cmd.value,
            )
        self._state = replace(self._state, pending_command=cmd)
        return cmd

    def set_environment(
        self,
        irradiance: float | None = None,
        temperature: float | None = None,
        auto_sun: bool | None = None,
    ) -> EnvironmentalInput:
        """Update the configured environment; values are clamped."""
        env = self._state.environment
        env = EnvironmentalInput(
            irradiance=env.irradiance if irradiance is None else irradiance,
            temperature=env.temperature if temperature is None else temperature,
        )
        self._state = replace(
            self._state,
            environment=env,
            auto_sun=self._state.auto_sun if auto_sun is None else auto_sun,
        )
        return env

    def reset(self) -> None:
        """Return to the initial state of the session."""
        self._state = initial_state(self.config)
        self._last = None
        logger.info("Simulation reset")

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def last_result(self) -> TickResult | None:
        return self._last

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly summary of the current state."""
        s = self._state
        return {
            "t_s": s.t_s,
            "tick_count": s.tick_count,
            "duty": s.mppt.duty,
            "direction": s.mppt.direction,
            "soc": s.battery.soc,
            "irradiance": s.environment.irradiance,
            "temperature": s.environment.temperature,
            "auto_sun": s.auto_sun,
            "mode": s.mode.value,
            "pending_command": s.pending_command.value if s.pending_command else None,
        }

    def __repr__(self) -> str:
        s = self._state
        return (
            f"SimulationRunner(t={s.t_s:.1f}s, duty={s.mppt.duty:.3f}, "
            f"soc={s.battery.soc:.4f})"
        )
