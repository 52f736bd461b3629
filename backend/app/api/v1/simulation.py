from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.simulation import (
    CommandRequest,
    CommandResponse,
    EnvironmentUpdate,
    ModeUpdate,
    SimulationStatusResponse,
    TickResponse,
)
from app.services.controller_session import (
    ControllerSession,
    SessionStateError,
    get_session,
)

router = APIRouter()


def _status(session: ControllerSession) -> SimulationStatusResponse:
    snap = session.runner.snapshot()
    return SimulationStatusResponse(
        mode=session.mode,
        running=session.scheduler.running,
        connected=session.link.connected,
        status=session.status_text,
        t_s=snap["t_s"],
        tick_count=snap["tick_count"],
        duty=snap["duty"],
        direction=snap["direction"],
        soc=snap["soc"],
        irradiance=snap["irradiance"],
        temperature=snap["temperature"],
        auto_sun=snap["auto_sun"],
        control_mode=snap["mode"],
        pending_command=snap["pending_command"],
    )


@router.get(
    "/simulation",
    response_model=SimulationStatusResponse,
    summary="Session status",
)
async def get_status(session: ControllerSession = Depends(get_session)):
    return _status(session)


@router.post(
    "/simulation/start",
    response_model=SimulationStatusResponse,
    summary="Start the simulation loop",
)
async def start_simulation(session: ControllerSession = Depends(get_session)):
    try:
        session.start()
    except SessionStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _status(session)


@router.post(
    "/simulation/stop",
    response_model=SimulationStatusResponse,
    summary="Stop the simulation loop",
    description="Suppresses the next tick; a tick in progress completes.",
)
async def stop_simulation(session: ControllerSession = Depends(get_session)):
    session.stop()
    return _status(session)


@router.post(
    "/simulation/reset",
    response_model=SimulationStatusResponse,
    summary="Reset simulation state and telemetry history",
)
async def reset_simulation(session: ControllerSession = Depends(get_session)):
    session.reset()
    return _status(session)


@router.post(
    "/simulation/tick",
    response_model=TickResponse,
    summary="Advance one tick",
)
async def tick_simulation(session: ControllerSession = Depends(get_session)):
    try:
        result = session.tick_once()
    except SessionStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return TickResponse(
        telemetry=result.telemetry.to_message(),
        t_s=result.t_s,
        irradiance=result.environment.irradiance,
        temperature=result.environment.temperature,
        duty_applied=result.duty_applied,
        duty_next=result.duty_next,
        load_w=result.load_w,
        battery_power_w=result.battery_power_w,
        soc=result.battery.soc,
        tracking_efficiency=result.tracking_efficiency,
    )


@router.put(
    "/simulation/environment",
    response_model=SimulationStatusResponse,
    summary="Set irradiance, temperature and auto-sun",
)
async def update_environment(
    body: EnvironmentUpdate, session: ControllerSession = Depends(get_session)
):
    session.runner.set_environment(
        irradiance=body.irradiance,
        temperature=body.temperature,
        auto_sun=body.auto_sun,
    )
    return _status(session)


@router.put(
    "/simulation/mode",
    response_model=SimulationStatusResponse,
    summary="Switch between simulated and live telemetry",
)
async def update_mode(body: ModeUpdate, session: ControllerSession = Depends(get_session)):
    session.set_mode(body.mode)
    return _status(session)


@router.post(
    "/simulation/commands",
    response_model=CommandResponse,
    summary="Send a controller command",
    description="In sim mode the command is applied at the start of the next tick; "
    "in live mode it is forwarded to the controller (a no-op while disconnected).",
)
async def send_command(body: CommandRequest, session: ControllerSession = Depends(get_session)):
    cmd, delivered, detail = await session.submit_command(body.command)
    return CommandResponse(command=cmd, mode=session.mode, delivered=delivered, detail=detail)
