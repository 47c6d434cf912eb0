"""Domain models for the event list."""

from localevents.models.event import EventsPageRequest, EventsResponse, LocalEvent, ResultSet
from localevents.models.row import EventRow, RowBinding


__all__ = [
    "LocalEvent",
    "ResultSet",
    "EventsResponse",
    "EventsPageRequest",
    "EventRow",
    "RowBinding",
]
