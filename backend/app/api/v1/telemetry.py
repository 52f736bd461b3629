from fastapi import APIRouter, Depends

from app.schemas.telemetry import TelemetryHistory
from app.services.controller_session import ControllerSession, get_session

router = APIRouter()


@router.get(
    "/telemetry",
    response_model=TelemetryHistory,
    summary="Recent telemetry",
    description="Latest message and the bounded history window, newest first.",
)
async def get_telemetry(session: ControllerSession = Depends(get_session)):
    return TelemetryHistory(latest=session.feed.latest, records=session.feed.history())
