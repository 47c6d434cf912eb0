"""Main web GUI manager coordinating all UI components."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from localevents.config import State
from localevents.web.managers.broadcaster import WebSocketBroadcaster
from localevents.web.managers.console import ConsoleOutputManager
from localevents.web.managers.events import EventListManager
from localevents.web.managers.settings import SettingsManager
from localevents.web.managers.status import StatusManager


if TYPE_CHECKING:
    from socketio import AsyncServer

    from localevents.core.client import LocalEvents


logger = logging.getLogger("LocalEvents")


class WebGUIManager:
    """Web-based GUI manager coordinating all UI components.

    The browser is the rendering surface: it shows the list state, renders rows,
    and receives row images through Socket.IO events emitted by the component managers.
    """

    def __init__(self, app: LocalEvents):
        self._app: LocalEvents = app
        self._broadcaster = WebSocketBroadcaster()

        # Create component managers
        self.status = StatusManager(self._broadcaster)
        self.output = ConsoleOutputManager(self._broadcaster)
        self.events = EventListManager(self._broadcaster, self.status)
        self.settings = SettingsManager(
            self._broadcaster,
            app.settings,
            self.output,
            on_change=app.state_change(State.EVENTS_FETCH),
            on_cache_bound=app.set_cache_bound,
        )

        logger.info("Web GUI Manager initialized")

    def set_socketio(self, sio: AsyncServer):
        """Set the Socket.IO instance for real-time communication.

        Called by webapp during initialization to connect the broadcaster
        to the Socket.IO server.
        """
        self._broadcaster.set_socketio(sio)

    def print(self, message: str):
        self.output.print(message)

    def initial_state(self) -> dict[str, Any]:
        """Everything a freshly connected client needs to render the screen."""
        return {
            "status": self.status.get_state(),
            "events": self.events.get_events(),
            "console": self.output.get_history(),
            "settings": self.settings.get_settings(),
        }

    def save(self, *, force: bool = False):
        """Save GUI state and settings.

        Args:
            force: Force save even if no changes detected
        """
        self._app.settings.save(force=force)
