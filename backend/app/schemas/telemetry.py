from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class TelemetryMessage(BaseModel):
    """Telemetry frame exchanged with the controller and dashboards (SI units)."""

    model_config = {"extra": "ignore"}

    v: float
    i: float
    p: float
    batt: float = 0.0
    mode: str = "OFF"
    warn: str = "OFF"
    sys: str = "OFF"

    @field_validator("batt", "mode", "warn", "sys", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class TelemetryRecord(BaseModel):
    """Telemetry frame stamped with its arrival time for the history window."""

    time: str
    voltage: float
    current: float
    power: float
    battery_voltage: float
    mode: str
    warn: str


class TelemetryHistory(BaseModel):
    latest: TelemetryMessage | None
    records: list[TelemetryRecord] = Field(default_factory=list)
