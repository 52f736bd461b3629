"""WebSocket endpoints: dashboard telemetry stream and the controller link."""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.types import Message

from app.services.controller_session import ControllerSession, get_ws_session

logger = logging.getLogger(__name__)

router = APIRouter()


def _frame_payload(message: Message) -> str | bytes:
    """Text or binary payload of an inbound frame ("" when it carries neither)."""
    text = message.get("text")
    if text is not None:
        return text
    return message.get("bytes") or ""


@router.websocket("/ws/telemetry")
async def telemetry_stream(
    websocket: WebSocket, session: ControllerSession = Depends(get_ws_session)
):
    """Push every telemetry message; inbound frames are commands."""
    queue = session.feed.subscribe()
    await websocket.accept()

    async def pump() -> None:
        while True:
            message = await queue.get()
            await websocket.send_json(message.model_dump())

    sender = asyncio.create_task(pump())
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = _frame_payload(message)
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            try:
                cmd, delivered, detail = await session.submit_command(raw)
            except ValueError as exc:
                await websocket.send_json({"error": str(exc)})
                continue
            await websocket.send_json(
                {"command": cmd.value, "delivered": delivered, "detail": detail}
            )
    except WebSocketDisconnect:
        pass
    finally:
        session.feed.unsubscribe(queue)
        sender.cancel()
        with contextlib.suppress(
            asyncio.CancelledError, WebSocketDisconnect, RuntimeError, OSError
        ):
            await sender


@router.websocket("/ws/controller")
async def controller_link(
    websocket: WebSocket, session: ControllerSession = Depends(get_ws_session)
):
    """Hardware controller bridge: inbound telemetry frames, outbound commands.

    Text and binary frames are both parsed as JSON telemetry; anything that
    does not validate is dropped by the feed and the link stays open.
    """
    session.link.attach(websocket)
    await websocket.accept()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            session.ingest_controller_frame(_frame_payload(message))
    finally:
        session.link.detach(websocket)
