from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.api.v1 import curves, simulation, stream, telemetry
from app.core.logging import RequestLoggingMiddleware, setup_logging
from app.services.controller_session import ControllerSession


def create_app(settings: Settings | None = None) -> FastAPI:
    cfg = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        setup_logging(json_format=cfg.log_json, debug=cfg.debug)
        session: ControllerSession = app.state.session
        if cfg.autostart and session.mode == "sim":
            session.start()
        yield
        await app.state.session.shutdown()

    application = FastAPI(
        title=cfg.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.settings = cfg
    application.state.session = ControllerSession(cfg)

    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cfg.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(curves.router, prefix="/api/v1", tags=["curves"])
    application.include_router(simulation.router, prefix="/api/v1", tags=["simulation"])
    application.include_router(telemetry.router, prefix="/api/v1", tags=["telemetry"])
    application.include_router(stream.router, tags=["stream"])

    @application.get("/health")
    async def health_check() -> dict:
        session: ControllerSession = application.state.session
        return {
            "status": "ok",
            "mode": session.mode,
            "simulation_running": session.scheduler.running,
            "controller_connected": session.link.connected,
            "telemetry_dropped": session.feed.dropped,
        }

    return application


app = create_app()
