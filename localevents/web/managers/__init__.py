"""Web GUI manager modules for the LocalEvents web interface.

This package contains all component managers for the web-based GUI:
- WebSocketBroadcaster: Real-time message broadcasting to clients
- StatusManager: Status line and list state display
- ConsoleOutputManager: Console log output buffering and display
- EventListManager: Event list publishing and row image delivery
- SettingsManager: Application settings configuration
- AssetCacheClient: Per-row image requests with stale result discarding
"""

from localevents.web.managers.broadcaster import WebSocketBroadcaster
from localevents.web.managers.cache import AssetCacheClient
from localevents.web.managers.console import ConsoleOutputManager
from localevents.web.managers.events import EventListManager
from localevents.web.managers.settings import SettingsManager
from localevents.web.managers.status import StatusManager


__all__ = [
    "WebSocketBroadcaster",
    "StatusManager",
    "ConsoleOutputManager",
    "EventListManager",
    "SettingsManager",
    "AssetCacheClient",
]
