"""Process-wide controller session: simulator, live link and telemetry feed.

The session runs in one of two modes:

* ``sim`` -- telemetry comes from the local :class:`SimulationRunner`, driven
  by a :class:`TickScheduler`; commands are queued for the next tick.
* ``live`` -- telemetry arrives from the hardware controller over
  :class:`ControllerLink`; commands are forwarded to it.
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import Request
from starlette.websockets import WebSocket

from app.config import Settings
from app.schemas.telemetry import TelemetryMessage
from app.services.controller_link import ControllerLink
from app.services.telemetry_feed import TelemetryFeed
from engine.mppt.commands import Command
from engine.simulation.runner import SimulationConfig, SimulationRunner, TickResult
from engine.simulation.scheduler import TickScheduler

logger = logging.getLogger(__name__)

Mode = Literal["sim", "live"]


class SessionStateError(RuntimeError):
    """Operation not allowed in the session's current mode."""


def build_simulation_config(settings: Settings) -> SimulationConfig:
    return SimulationConfig(
        irradiance=settings.irradiance,
        temperature=settings.temperature,
        auto_sun=settings.auto_sun,
        period_s=settings.tick_period_s,
        capacity_ah=settings.battery_capacity_ah,
        initial_soc=settings.battery_initial_soc,
        r_int=settings.battery_r_int,
        initial_duty=settings.initial_duty,
    )


class ControllerSession:
    def __init__(self, settings: Settings) -> None:
        self.runner = SimulationRunner(build_simulation_config(settings))
        self.scheduler = TickScheduler(self.runner, on_tick=self._on_tick)
        self.feed = TelemetryFeed(maxlen=settings.telemetry_history)
        self.link = ControllerLink()
        self.mode: Mode = "sim" if settings.start_in_sim_mode else "live"

    # ------------------------------------------------------------------
    # Mode / loop control
    # ------------------------------------------------------------------

    @property
    def status_text(self) -> str:
        if self.mode == "sim":
            return "SIMULATION"
        return "CONNECTED" if self.link.connected else "DISCONNECTED"

    def set_mode(self, mode: Mode) -> None:
        if mode == self.mode:
            return
        if mode == "live":
            self.scheduler.stop()
        self.mode = mode
        logger.info("Session mode set to %s", mode, extra={"mode": mode})

    def start(self) -> None:
        if self.mode != "sim":
            raise SessionStateError("The simulator only runs in sim mode")
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    async def shutdown(self) -> None:
        self.scheduler.stop()
        await self.scheduler.wait_stopped()

    def reset(self) -> None:
        self.runner.reset()
        self.feed.clear()

    def tick_once(self) -> TickResult:
        """Run a single simulation tick outside the scheduler."""
        if self.mode != "sim":
            raise SessionStateError("Ticks can only be run in sim mode")
        if self.scheduler.running:
            raise SessionStateError("Stop the simulation loop before stepping manually")
        result = self.runner.tick()
        self._on_tick(result)
        return result

    # ------------------------------------------------------------------
    # Commands / telemetry
    # ------------------------------------------------------------------

    async def submit_command(self, command: Command | str) -> tuple[Command, bool, str]:
        """Route a command; returns ``(command, delivered, detail)``."""
        cmd = Command.parse(command)
        if self.mode == "sim":
            self.runner.submit_command(cmd)
            return cmd, True, "queued for next tick"
        delivered = await self.link.send_command(cmd)
        return cmd, delivered, "sent to controller" if delivered else "controller not connected"

    def ingest_controller_frame(self, raw: str | bytes) -> TelemetryMessage | None:
        """Telemetry frame from the hardware controller (ignored in sim mode)."""
        if self.mode != "live":
            logger.debug("Ignoring controller telemetry in sim mode")
            return None
        return self.feed.ingest_raw(raw)

    def _on_tick(self, result: TickResult) -> None:
        self.feed.apply(TelemetryMessage(**result.telemetry.to_message()))


def get_session(request: Request) -> ControllerSession:
    return request.app.state.session


def get_ws_session(websocket: WebSocket) -> ControllerSession:
    return websocket.app.state.session
