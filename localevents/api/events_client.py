"""
Client for the event-list endpoint.

Issues one request per page and decodes the response envelope into a flat list of events.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from localevents.exceptions import DecodeError, NetworkError
from localevents.models.event import EventsPageRequest, EventsResponse
from localevents.utils import json_minify


if TYPE_CHECKING:
    from localevents.api.http_client import HTTPClient
    from localevents.config.settings import Settings
    from localevents.models.event import LocalEvent


logger = logging.getLogger("LocalEvents")


class EventFetcher:
    """
    Fetches pages of local events.

    A single request/response per call: retries of transient transport failures happen
    inside the HTTP client, and any error that makes it out of there is final.
    """

    def __init__(self, http_client: HTTPClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def default_page(self, page: int = 1) -> EventsPageRequest:
        """Build a page request out of the current settings."""
        return EventsPageRequest(
            rows_per_page=self.settings.rows_per_page,
            page=page,
            latitude=self.settings.latitude,
            longitude=self.settings.longitude,
            search=self.settings.search,
        )

    async def fetch_page(self, page: EventsPageRequest | None = None) -> list[LocalEvent]:
        """
        Fetch one page of events.

        Parameters
        ----------
        page : EventsPageRequest | None, optional
            Page parameters, built from the settings when omitted

        Returns
        -------
        list[LocalEvent]
            Every `eventitem` of every `resultset` entry, in source order

        Raises
        ------
        NetworkError
            If the request failed or the server answered with a non-2xx status
        DecodeError
            If the response body isn't JSON, or doesn't have the expected shape
        """
        if page is None:
            page = self.default_page()
        url: str = self.settings.events_url
        payload = page.payload()
        logger.debug(f"Fetching events page: {json_minify(payload)}")
        async with self.http_client.request("POST", url, json=payload) as response:
            if not 200 <= response.status < 300:
                raise NetworkError(
                    f"Event list request returned {response.status}",
                    url=url,
                    status=response.status,
                )
            body: bytes = await response.read()
        try:
            decoded = EventsResponse.model_validate_json(body)
        except ValidationError as exc:
            logger.warning(f"Unexpected event list response: {exc.error_count()} error(s)")
            raise DecodeError(f"Malformed event list response: {exc}", url=url) from exc
        events = decoded.events()
        logger.info(f"Fetched {len(events)} events (page {page.page})")
        return events
