"""Settings manager for application configuration."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable

from yarl import URL


if TYPE_CHECKING:
    from localevents.config.settings import Settings
    from localevents.web.managers.broadcaster import WebSocketBroadcaster
    from localevents.web.managers.console import ConsoleOutputManager


logger = logging.getLogger("LocalEvents")

# settings that change the page request, so the list has to be fetched again
PAGE_SETTINGS = ("search", "latitude", "longitude", "rows_per_page")


class SettingsManager:
    """Exposes the user-editable settings to the web interface.

    Changes are persisted right away. A change to the page request triggers `on_change`,
    which reloads the event list, and a new cache bound is handed to `on_cache_bound`.
    """

    def __init__(
        self,
        broadcaster: WebSocketBroadcaster,
        settings: Settings,
        console: ConsoleOutputManager,
        on_change: Callable[[], None] | None = None,
        on_cache_bound: Callable[[int], None] | None = None,
    ):
        self._broadcaster = broadcaster
        self._settings = settings
        self._console = console
        self._on_change = on_change
        self._on_cache_bound = on_cache_bound

    def get_settings(self) -> dict[str, Any]:
        return {
            "search": self._settings.search,
            "latitude": self._settings.latitude,
            "longitude": self._settings.longitude,
            "rows_per_page": self._settings.rows_per_page,
            "connection_quality": self._settings.connection_quality,
            "cache_max_bytes": self._settings.cache_max_bytes,
            "proxy": str(self._settings.proxy),
        }

    def _log_change(self, message: str):
        self._console.print(message)

    def update_settings(self, settings_data: dict[str, Any]):
        """Apply a partial settings update coming from the web interface.

        Args:
            settings_data: Only the keys being changed
        """
        should_reload = False

        for name in PAGE_SETTINGS:
            if name in settings_data and settings_data[name] is not None:
                if getattr(self._settings, name) != settings_data[name]:
                    setattr(self._settings, name, settings_data[name])
                    self._log_change(f"Setting changed: {name} = {settings_data[name]!r}")
                    should_reload = True

        if "connection_quality" in settings_data:
            self._settings.connection_quality = settings_data["connection_quality"]
            self._log_change(
                f"Setting changed: connection_quality = {self._settings.connection_quality}"
            )

        if "cache_max_bytes" in settings_data:
            max_bytes = max(0, int(settings_data["cache_max_bytes"]))
            self._settings.cache_max_bytes = max_bytes
            self._log_change(f"Setting changed: cache_max_bytes = {max_bytes}")
            if self._on_cache_bound is not None:
                self._on_cache_bound(max_bytes)

        if "proxy" in settings_data:
            proxy_str = settings_data["proxy"].strip()
            if proxy_str:
                if self._settings.proxy != URL(proxy_str):
                    self._settings.proxy = URL(proxy_str)
                    self._log_change(f"Proxy set to: {proxy_str}")
            elif self._settings.proxy != URL():
                self._settings.proxy = URL()
                self._log_change("Proxy cleared")

        self._settings.alter()
        # Persist settings to disk immediately
        self._settings.save()
        asyncio.create_task(self._broadcaster.emit("settings_updated", self.get_settings()))

        if should_reload and self._on_change:
            self._on_change()
