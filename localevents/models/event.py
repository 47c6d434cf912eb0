from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from localevents.config import DEFAULT_PAGE, DEFAULT_ROWS_PER_PAGE


class LocalEvent(BaseModel):
    """A single event item, as listed by the event-list endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str | None = Field(default=None, alias="eventitemid")
    title: str | None = None
    imagetype: str | None = None

    def image_key(self, template: str) -> str | None:
        """
        Build the cache key (image URL) of this event.

        Returns None when the event lacks the id or image type needed to identify its image.
        """
        if not self.id or not self.imagetype:
            return None
        return template.format(id=self.id, imagetype=self.imagetype)


class ResultSet(BaseModel):
    eventitem: list[LocalEvent]


class EventsResponse(BaseModel):
    """Response envelope of the event-list endpoint."""

    resultset: list[ResultSet]

    def events(self) -> list[LocalEvent]:
        # flattened in source order
        return [event for result in self.resultset for event in result.eventitem]


class EventsPageRequest(BaseModel):
    """Request body of the event-list endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    rows_per_page: int = Field(default=DEFAULT_ROWS_PER_PAGE, alias="rowsPerPage", ge=1)
    page: int = Field(default=DEFAULT_PAGE, ge=1)
    latitude: float = 0.0
    longitude: float = 0.0
    category_id: int | None = Field(default=None, alias="categoryId")
    search: str = ""

    def payload(self) -> dict[str, object]:
        # categoryId is always sent, as an explicit null when unset
        return self.model_dump(by_alias=True)
