"""Application status shown in the web interface."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from localevents.config import ListState


if TYPE_CHECKING:
    from localevents.web.managers.broadcaster import WebSocketBroadcaster


class StatusManager:
    """Tracks the status line and the list state, broadcasting both on change.

    The status line is free text ("Loading events...", "Exiting..."), while the list state
    is what the rendering surface switches its spinner / empty / error views on.
    """

    def __init__(self, broadcaster: WebSocketBroadcaster):
        self._broadcaster = broadcaster
        self._current_status = "Initializing..."
        self._list_state: ListState = ListState.LOADING

    def update(self, status: str):
        self._current_status = status
        asyncio.create_task(self._broadcaster.emit("status_update", {"status": status}))

    def set_list_state(self, state: ListState, message: str):
        """Record a list state change, and use its message as the status line."""
        self._list_state = state
        self.update(message)

    def get(self) -> str:
        return self._current_status

    def get_state(self) -> dict[str, Any]:
        return {"status": self._current_status, "list_state": self._list_state.value}
