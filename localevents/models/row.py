from __future__ import annotations

from typing import TYPE_CHECKING, Any

from localevents.config import NO_TITLE


if TYPE_CHECKING:
    from localevents.models.event import LocalEvent


class EventRow:
    """View-model of one list row."""

    __slots__ = ("id", "title", "image_key")

    def __init__(self, event: LocalEvent, image_template: str):
        self.id: str | None = event.id
        self.title: str = event.title or NO_TITLE
        self.image_key: str | None = event.image_key(image_template)

    def __repr__(self) -> str:
        return f"EventRow({self.id!r}, {self.title!r})"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "image_key": self.image_key}


class RowBinding:
    """
    Association of a reusable display row with the image key it currently wants.

    A result for any other key is stale and must not reach the row.
    """

    __slots__ = ("row_id", "current_key")

    def __init__(self, row_id: str, current_key: str | None = None):
        self.row_id: str = row_id
        self.current_key: str | None = current_key

    def __repr__(self) -> str:
        return f"RowBinding({self.row_id!r}, {self.current_key!r})"

    def wants(self, key: str) -> bool:
        return self.current_key is not None and self.current_key == key
