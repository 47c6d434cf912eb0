"""Core constants, enums, and type definitions for LocalEvents."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any


# Logging special levels
CALL: int = logging.INFO - 1
logging.addLevelName(CALL, "CALL")

# Logging configuration
LOGGING_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: CALL,
    4: logging.DEBUG,
}
FILE_FORMATTER = logging.Formatter(
    "{asctime}.{msecs:03.0f}:\t{levelname:>7}:\t{filename}:{lineno}:\t{message}",
    style="{",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Type aliases
JsonType = dict[str, Any]

# Remote endpoints
EVENTS_URL = "https://dev.loqiva.com/public/service/phonejson/eventlist"
IMAGE_URL_TEMPLATE = "https://dev.loqiva.com/images/events/{id}_{imagetype}.jpg"

# Page request defaults
DEFAULT_ROWS_PER_PAGE = 100
DEFAULT_PAGE = 1

# Transport
MAX_CONNECTION_QUALITY = 6
MAX_BACKOFF_DELAY = 30
IMAGE_FETCH_WINDOW = 1

# Cache
DEFAULT_CACHE_MAX_BYTES = 64 * 1024 * 1024

# Web server
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

# User-facing messages
MSG_LOADING = "Loading events..."
MSG_NO_EVENTS = "No events found"
MSG_LOAD_FAILED = "Failed to load events"
NO_TITLE = "No title"


class State(Enum):
    """Application state machine states."""

    IDLE = auto()
    EVENTS_FETCH = auto()
    EXIT = auto()


class ListState(Enum):
    """Observable states of the event list."""

    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"
    ERROR = "error"
