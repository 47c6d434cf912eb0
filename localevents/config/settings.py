from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypedDict

from yarl import URL

from localevents.config import (
    DEFAULT_CACHE_MAX_BYTES,
    DEFAULT_ROWS_PER_PAGE,
    EVENTS_URL,
    IMAGE_URL_TEMPLATE,
    MAX_CONNECTION_QUALITY,
    SETTINGS_PATH,
)
from localevents.utils import json_load, json_save


if TYPE_CHECKING:
    from typing import Any as ParsedArgs  # Avoid circular import


class SettingsFile(TypedDict):
    proxy: URL
    events_url: str
    image_url_template: str
    rows_per_page: int
    latitude: float
    longitude: float
    search: str
    connection_quality: int
    request_attempts: int
    cache_max_bytes: int
    image_fetch_rate: int


default_settings: SettingsFile = {
    "proxy": URL(),
    "events_url": EVENTS_URL,
    "image_url_template": IMAGE_URL_TEMPLATE,
    "rows_per_page": DEFAULT_ROWS_PER_PAGE,
    "latitude": 0.0,
    "longitude": 0.0,
    "search": "",
    "connection_quality": 1,
    "request_attempts": 3,
    "cache_max_bytes": DEFAULT_CACHE_MAX_BYTES,
    "image_fetch_rate": 10,
}


class Settings:
    # from args
    host: str
    port: int
    # args properties
    logging_level: int
    # from settings file
    proxy: URL
    events_url: str
    image_url_template: str
    rows_per_page: int
    latitude: float
    longitude: float
    search: str
    connection_quality: int
    request_attempts: int
    cache_max_bytes: int
    image_fetch_rate: int

    PASSTHROUGH = ("_settings", "_args", "_altered")

    def __init__(self, args: ParsedArgs):
        self._settings: SettingsFile = json_load(SETTINGS_PATH, default_settings)
        self._args: ParsedArgs = args
        self._altered: bool = False

    # default logic of reading settings is to check args first, then the settings file
    def __getattr__(self, name: str, /) -> Any:
        if name in self.PASSTHROUGH:
            # passthrough
            return getattr(super(), name)
        elif hasattr(self._args, name):
            return getattr(self._args, name)
        elif name in self._settings:
            return self._settings[name]  # type: ignore[literal-required]
        return getattr(super(), name)

    def __setattr__(self, name: str, value: Any, /) -> None:
        if name in self.PASSTHROUGH:
            # passthrough
            return super().__setattr__(name, value)
        elif name in self._settings:
            self._settings[name] = value  # type: ignore[literal-required]
            self._altered = True
            return
        raise TypeError(f"{name} is missing a custom setter")

    def __delattr__(self, name: str, /) -> None:
        raise RuntimeError("settings can't be deleted")

    def clamp(self) -> None:
        """Pull out-of-range values from a hand-edited settings file back into range."""
        quality = self.connection_quality
        if quality < 1 or quality > MAX_CONNECTION_QUALITY:
            self.connection_quality = min(max(quality, 1), MAX_CONNECTION_QUALITY)
        if self.request_attempts < 1:
            self.request_attempts = 1
        if self.cache_max_bytes < 0:
            self.cache_max_bytes = 0
        if self.image_fetch_rate < 1:
            self.image_fetch_rate = 1
        if self.rows_per_page < 1:
            self.rows_per_page = DEFAULT_ROWS_PER_PAGE

    def alter(self) -> None:
        self._altered = True

    def save(self, *, force: bool = False) -> None:
        if self._altered or force:
            json_save(SETTINGS_PATH, self._settings, sort=True)
