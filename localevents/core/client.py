from __future__ import annotations

import asyncio
import logging
from collections import abc
from functools import partial
from time import time
from typing import TYPE_CHECKING, Any

from localevents.api import EventFetcher, HTTPClient, ImageFetcher
from localevents.config import State
from localevents.core.asset_cache import AssetCache
from localevents.exceptions import ExitRequest
from localevents.services.list_controller import ListController
from localevents.utils import task_wrapper
from localevents.web.managers.cache import AssetCacheClient


if TYPE_CHECKING:
    from localevents.config.settings import Settings
    from localevents.web.gui_manager import WebGUIManager


logger = logging.getLogger("LocalEvents")


class LocalEvents:
    """
    Application object owning every collaborator of the event list screen.

    Nothing here is process-wide: the HTTP client, fetchers, cache and list controller are
    all created per instance and handed to whoever needs them.
    """

    def __init__(self, settings: Settings):
        self.settings: Settings = settings
        # State management
        self._state: State = State.IDLE
        self._state_change = asyncio.Event()
        # API clients and the image cache
        self.http_client = HTTPClient(settings)
        self.fetcher = EventFetcher(self.http_client, settings)
        self.image_fetcher = ImageFetcher(self.http_client, rate=settings.image_fetch_rate)
        self.cache = AssetCache(self.image_fetcher, max_bytes=settings.cache_max_bytes)
        # GUI (will be set by main.py)
        self.gui: WebGUIManager = None  # type: ignore[assignment]
        # Row-facing collaborators (created once the GUI is set)
        self.images: AssetCacheClient | None = None
        self.list_controller: ListController | None = None

    def _ensure_list_controller(self) -> ListController:
        """Wire the row-facing collaborators to the GUI (called after the GUI is set)."""
        if self.list_controller is None:
            self.images = AssetCacheClient(self.cache, self.gui.events.deliver)
            self.list_controller = ListController(
                self.fetcher, self.images, self.settings, on_change=self.gui.events.on_list_change
            )
            self.gui.events.attach(self.list_controller)
        return self.list_controller

    async def shutdown(self) -> None:
        start_time = time()
        await self.cache.close()
        self.image_fetcher.close()
        await self.http_client.close()
        if self.images is not None:
            self.images.clear()
        # wait at least half a second + whatever it takes to complete the closing
        # this allows aiohttp to safely close the session
        await asyncio.sleep(start_time + 0.5 - time())

    def change_state(self, state: State) -> None:
        """Change the current state of the application."""
        if self._state is not State.EXIT:
            # prevent state changing once we switch to exit state
            self._state = state
        self._state_change.set()

    def state_change(self, state: State) -> abc.Callable[[], None]:
        """Return a callable that changes state when invoked (deferred call for GUI usage)."""
        return partial(self.change_state, state)

    def reload(self) -> None:
        self.change_state(State.EVENTS_FETCH)

    def close(self) -> None:
        """
        Called when the application is requested to close by the user,
        usually by the console or a signal.
        """
        self.change_state(State.EXIT)

    def set_cache_bound(self, max_bytes: int) -> None:
        self.cache.max_bytes = max_bytes

    def print(self, message: str) -> None:
        """Print a message in the GUI."""
        self.gui.print(message)

    def save(self, *, force: bool = False) -> None:
        """Save the application state (settings and GUI state)."""
        self.gui.save(force=force)

    def status(self) -> dict[str, Any]:
        return {
            "state": self._state.name,
            "cache": self.cache.status(),
        }

    @task_wrapper(critical=True)
    async def _fetch_events(self, controller: ListController) -> None:
        await controller.reload()

    async def run(self) -> None:
        """Main entry point - runs until an exit is requested."""
        try:
            await self._run()
        except ExitRequest:
            pass

    async def _run(self) -> None:
        """
        Keep the event list fresh until told to exit.

        The list is fetched once on start, and again on every reload request.
        """
        controller = self._ensure_list_controller()
        self.change_state(State.EVENTS_FETCH)
        while True:
            if self._state is State.IDLE:
                # clear the flag and wait until it's set again
                self._state_change.clear()
            elif self._state is State.EVENTS_FETCH:
                self._state_change.clear()
                await self._fetch_events(controller)
                if self._state is State.EVENTS_FETCH and not self._state_change.is_set():
                    self.change_state(State.IDLE)
                continue
            elif self._state is State.EXIT:
                self.gui.status.update("Exiting...")
                # we've been requested to exit the application
                break
            await self._state_change.wait()
