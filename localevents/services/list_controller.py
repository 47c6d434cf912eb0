"""
List controller turning fetched events into list rows.

Drives the loading / loaded / empty / error states shown by the rendering surface,
and binds rows to the images of the events they display.
"""

from __future__ import annotations

import logging
from collections import abc
from typing import TYPE_CHECKING, Any

from localevents.config import MSG_LOAD_FAILED, MSG_LOADING, MSG_NO_EVENTS, ListState
from localevents.exceptions import FetchError
from localevents.models.row import EventRow


if TYPE_CHECKING:
    from localevents.api.events_client import EventFetcher
    from localevents.config.settings import Settings
    from localevents.models.event import EventsPageRequest, LocalEvent
    from localevents.web.managers.cache import AssetCacheClient


logger = logging.getLogger("LocalEvents")


class ListController:
    """
    Owns the current event list and its observable state.

    A reload replaces the whole list on success. On failure the previous list is kept,
    only the state changes to ERROR. Image failures never reach the list state,
    rows fall back to their placeholder instead.
    """

    def __init__(
        self,
        fetcher: EventFetcher,
        images: AssetCacheClient,
        settings: Settings,
        on_change: abc.Callable[[ListController], Any] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._images = images
        self._settings = settings
        self._on_change = on_change
        self.state: ListState = ListState.LOADING
        self.message: str = MSG_LOADING
        self.events: list[LocalEvent] = []
        self.rows: list[EventRow] = []

    def _set_state(self, state: ListState, message: str) -> None:
        self.state = state
        self.message = message
        if self._on_change is not None:
            self._on_change(self)

    async def reload(self, page: EventsPageRequest | None = None) -> None:
        """Fetch the event list once and publish the outcome."""
        self._set_state(ListState.LOADING, MSG_LOADING)
        try:
            events = await self._fetcher.fetch_page(page)
        except FetchError as exc:
            logger.error(f"Event list fetch failed: {exc}")
            self._set_state(ListState.ERROR, MSG_LOAD_FAILED)
            return
        template: str = self._settings.image_url_template
        self.events = events
        self.rows = [EventRow(event, template) for event in events]
        # pending images were requested for the old list
        self._images.clear()
        if self.rows:
            self._set_state(ListState.LOADED, f"{len(self.rows)} events")
        else:
            self._set_state(ListState.EMPTY, MSG_NO_EVENTS)

    def bind_row(self, row_id: str, index: int) -> EventRow:
        """
        Point a display row at the event at the given list position.

        The image is keyed by the event's identity, the position only selects the event.
        Events without an image key leave the row unbound, showing the placeholder.

        Raises:
            IndexError: If there's no event at that position
        """
        if not 0 <= index < len(self.rows):
            raise IndexError(f"No event at position {index}")
        row = self.rows[index]
        if row.image_key is None:
            self._images.cancel(row_id)
        else:
            self._images.request(row_id, row.image_key)
        return row

    def release_row(self, row_id: str) -> None:
        """The row is about to be reused: stop any pending delivery to it."""
        self._images.cancel(row_id)

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "message": self.message,
            "rows": [row.to_dict() for row in self.rows],
        }
