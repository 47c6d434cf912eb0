"""Socket.IO broadcaster for real-time updates to web clients."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from socketio import AsyncServer


logger = logging.getLogger("LocalEvents")


class WebSocketBroadcaster:
    """Sends events to connected browser clients through Socket.IO.

    Until the web app attaches its server, emitted events are dropped.
    """

    def __init__(self):
        self._sio: AsyncServer | None = None  # Will be set by webapp

    def set_socketio(self, sio: AsyncServer):
        """Set the Socket.IO server instance for broadcasting."""
        self._sio = sio

    async def emit(self, event: str, data: Any, *, to: str | None = None):
        """Emit an event to every client, or to a single one.

        Args:
            event: The event name to emit
            data: The data payload to send with the event
            to: Optional Socket.IO session id of the only recipient
        """
        if self._sio is None:
            logger.debug(f"No Socket.IO server attached, dropping '{event}'")
            return
        await self._sio.emit(event, data, to=to)
