"""Configuration package for LocalEvents."""

from __future__ import annotations

# Re-export all public symbols for convenience
from .constants import (
    CALL,
    DEFAULT_CACHE_MAX_BYTES,
    DEFAULT_HOST,
    DEFAULT_PAGE,
    DEFAULT_PORT,
    DEFAULT_ROWS_PER_PAGE,
    EVENTS_URL,
    FILE_FORMATTER,
    IMAGE_FETCH_WINDOW,
    IMAGE_URL_TEMPLATE,
    LOGGING_LEVELS,
    MAX_BACKOFF_DELAY,
    MAX_CONNECTION_QUALITY,
    MSG_LOAD_FAILED,
    MSG_LOADING,
    MSG_NO_EVENTS,
    NO_TITLE,
    JsonType,
    ListState,
    State,
)
from .paths import (
    DATA_DIR,
    LOG_PATH,
    LOGS_DIR,
    SETTINGS_PATH,
    WEB_DIR,
)


__all__ = [
    # constants.py
    "CALL",
    "FILE_FORMATTER",
    "LOGGING_LEVELS",
    "State",
    "ListState",
    "JsonType",
    "EVENTS_URL",
    "IMAGE_URL_TEMPLATE",
    "DEFAULT_ROWS_PER_PAGE",
    "DEFAULT_PAGE",
    "MAX_CONNECTION_QUALITY",
    "MAX_BACKOFF_DELAY",
    "IMAGE_FETCH_WINDOW",
    "DEFAULT_CACHE_MAX_BYTES",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "MSG_LOADING",
    "MSG_NO_EVENTS",
    "MSG_LOAD_FAILED",
    "NO_TITLE",
    # paths.py
    "DATA_DIR",
    "LOGS_DIR",
    "LOG_PATH",
    "SETTINGS_PATH",
    "WEB_DIR",
]
