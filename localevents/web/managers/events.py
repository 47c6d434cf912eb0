"""Event list manager: the row-rendering surface of the web interface."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from yarl import URL

from localevents.config import ListState


if TYPE_CHECKING:
    from localevents.services.list_controller import ListController
    from localevents.web.managers.broadcaster import WebSocketBroadcaster
    from localevents.web.managers.status import StatusManager


logger = logging.getLogger("LocalEvents")

IMAGES_ENDPOINT = URL("/api/images")


def image_url(key: str) -> str:
    """Address under which the web app serves the cached image of a key."""
    return str(IMAGES_ENDPOINT.with_query(key=key))


class EventListManager:
    """Publishes the event list and feeds images to the rows displaying it.

    Browser rows are reused while scrolling: each one configures itself for a list position,
    and gets a `row_image` event once the image of that event is available, or a
    `row_image_failed` event telling it to keep showing the placeholder.

    Every browser tab numbers its rows the same way, so rows configured over Socket.IO are
    bound per session (`sid`), and their image events only go back to that session.
    """

    def __init__(self, broadcaster: WebSocketBroadcaster, status: StatusManager):
        self._broadcaster = broadcaster
        self._status = status
        self._controller: ListController | None = None
        # binding id -> (owning session, row id as the client knows it)
        self._owners: dict[str, tuple[str | None, str]] = {}

    @staticmethod
    def binding_id(row_id: str, sid: str | None = None) -> str:
        return row_id if sid is None else f"{sid}:{row_id}"

    def attach(self, controller: ListController):
        self._controller = controller

    def on_list_change(self, controller: ListController):
        """Broadcast a list state change (called by the list controller)."""
        if controller.state in (ListState.LOADED, ListState.EMPTY):
            # a new list drops every row binding, clients configure their rows again
            self._owners.clear()
        self._status.set_list_state(controller.state, controller.message)
        asyncio.create_task(self._broadcaster.emit("events_state", controller.snapshot()))

    def configure(self, row_id: str, index: int, *, sid: str | None = None) -> dict[str, Any]:
        """Bind a display row to the event at a list position.

        Args:
            row_id: Identifier of the browser row
            index: Position of the event in the list
            sid: Socket.IO session owning the row, None for rows shared by every client

        Returns:
            The row payload to render

        Raises:
            RuntimeError: If no list controller is attached yet
            IndexError: If there's no event at that position
        """
        if self._controller is None:
            raise RuntimeError("List controller not attached")
        binding = self.binding_id(row_id, sid)
        self._owners[binding] = (sid, row_id)
        try:
            row = self._controller.bind_row(binding, index)
        except IndexError:
            self._owners.pop(binding, None)
            raise
        payload = {"row_id": row_id, "index": index, **row.to_dict()}
        if row.image_key is None:
            # nothing to load, the placeholder stays
            self.deliver(binding, "", None)
        return payload

    def release(self, row_id: str, *, sid: str | None = None):
        """The row is being reused: whatever it was waiting for must not arrive anymore."""
        binding = self.binding_id(row_id, sid)
        self._owners.pop(binding, None)
        if self._controller is not None:
            self._controller.release_row(binding)

    def disconnect(self, sid: str):
        """Drop every row binding of a session that went away."""
        for owner, row_id in list(self._owners.values()):
            if owner == sid:
                self.release(row_id, sid=sid)

    def has_image(self, key: str) -> bool:
        """Whether the key belongs to an event of the current list."""
        if self._controller is None:
            return False
        return any(row.image_key == key for row in self._controller.rows)

    def deliver(self, binding: str, key: str, data: bytes | None):
        """Tell a row its image is ready, or that it should show the placeholder."""
        sid, row_id = self._owners.get(binding, (None, binding))
        if data is None:
            logger.debug(f"Row {binding} falls back to the placeholder")
            asyncio.create_task(
                self._broadcaster.emit(
                    "row_image_failed", {"row_id": row_id, "key": key}, to=sid
                )
            )
            return
        asyncio.create_task(
            self._broadcaster.emit(
                "row_image",
                {"row_id": row_id, "key": key, "url": image_url(key), "size": len(data)},
                to=sid,
            )
        )

    def get_events(self) -> dict[str, Any]:
        if self._controller is None:
            return {"state": ListState.LOADING.value, "message": self._status.get(), "rows": []}
        return self._controller.snapshot()
