from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "MPPT_", "case_sensitive": False}

    # App
    environment: str = "development"
    debug: bool = True
    app_name: str = "MPPT Charge Controller"
    log_json: bool = False
    cors_origins: str = "http://localhost:3000"

    # Simulation loop
    tick_period_ms: int = 500
    start_in_sim_mode: bool = True
    autostart: bool = False

    # Telemetry retention (most recent N records)
    telemetry_history: int = 201

    # Default environment
    irradiance: float = 800.0
    temperature: float = 25.0
    auto_sun: bool = False

    # Battery
    battery_capacity_ah: float = 100.0
    battery_initial_soc: float = 0.6
    battery_r_int: float = 0.03

    # MPPT
    initial_duty: float = 0.5

    @property
    def tick_period_s(self) -> float:
        return self.tick_period_ms / 1000.0


settings = Settings()
