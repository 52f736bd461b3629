from typing import Literal

from pydantic import BaseModel, Field

from engine.mppt.commands import Command


class EnvironmentUpdate(BaseModel):
    irradiance: float | None = Field(default=None, description="W/m^2, clamped to [0, 1000]")
    temperature: float | None = Field(default=None, description="degC, clamped to [-10, 75]")
    auto_sun: bool | None = None


class ModeUpdate(BaseModel):
    mode: Literal["sim", "live"]


class CommandRequest(BaseModel):
    command: Command


class CommandResponse(BaseModel):
    command: Command
    mode: Literal["sim", "live"]
    delivered: bool
    detail: str


class SimulationStatusResponse(BaseModel):
    mode: Literal["sim", "live"]
    running: bool
    connected: bool
    status: str
    t_s: float
    tick_count: int
    duty: float
    direction: int
    soc: float
    irradiance: float
    temperature: float
    auto_sun: bool
    control_mode: str
    pending_command: str | None


class TickResponse(BaseModel):
    telemetry: dict
    t_s: float
    irradiance: float
    temperature: float
    duty_applied: float
    duty_next: float
    load_w: float
    battery_power_w: float
    soc: float
    tracking_efficiency: float
