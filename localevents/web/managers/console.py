"""Console output manager for logging to web interface."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from localevents.web.managers.broadcaster import WebSocketBroadcaster


logger = logging.getLogger("LocalEvents")


class ConsoleOutputManager:
    """Rolling history of user-facing messages, streamed to clients as they're printed.

    Every message also goes to the application logger, at the level it was printed with.
    Warnings and errors are tagged in the history so the web console can highlight them.
    """

    def __init__(self, broadcaster: WebSocketBroadcaster, max_lines: int = 1000):
        self._broadcaster = broadcaster
        self._buffer: deque[str] = deque(maxlen=max_lines)

    def print(self, message: str, *, level: int = logging.INFO):
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if level >= logging.WARNING:
            line = f"[{timestamp}] {logging.getLevelName(level)} | {message}"
        else:
            line = f"[{timestamp}] | {message}"
        self._buffer.append(line)
        asyncio.create_task(self._broadcaster.emit("console_output", {"message": line}))
        logger.log(level, message)

    def get_history(self) -> list[str]:
        return list(self._buffer)
