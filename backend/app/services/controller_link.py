"""Link to the hardware charge controller.

The controller bridge connects to the service over a WebSocket; inbound
frames are telemetry, outbound frames are command strings.  Connectivity
is exposed as a boolean and commands sent while disconnected are no-ops.
"""

from __future__ import annotations

import logging

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from engine.mppt.commands import Command

logger = logging.getLogger(__name__)


class ControllerLink:
    """Holds the (at most one) connected controller socket."""

    def __init__(self) -> None:
        self._socket: WebSocket | None = None

    @property
    def connected(self) -> bool:
        return (
            self._socket is not None
            and self._socket.client_state == WebSocketState.CONNECTED
        )

    def attach(self, socket: WebSocket) -> None:
        if self._socket is not None and self._socket is not socket:
            logger.warning("Controller reconnected; replacing previous link")
        self._socket = socket
        logger.info("Controller connected", extra={"connected": True})

    def detach(self, socket: WebSocket) -> None:
        if self._socket is socket:
            self._socket = None
            logger.info("Controller disconnected", extra={"connected": False})

    async def send_command(self, command: Command) -> bool:
        """Forward *command*; returns False (and does nothing) when disconnected."""
        socket = self._socket
        if socket is None or socket.client_state != WebSocketState.CONNECTED:
            logger.info(
                "Command %s dropped: controller not connected", command.value,
                extra={"command": command.value},
            )
            return False
        try:
            await socket.send_text(command.value)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.warning("Command %s not delivered: %s", command.value, exc)
            self._socket = None
            return False
        return True
