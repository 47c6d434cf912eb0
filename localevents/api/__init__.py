"""
API client modules for the remote event service.

This package provides the shared HTTP client, and the event-list and image fetchers built on it.
"""

from __future__ import annotations

from localevents.api.events_client import EventFetcher
from localevents.api.http_client import HTTPClient
from localevents.api.image_client import ImageFetcher, image_mime, verify_image


__all__ = [
    "HTTPClient",
    "EventFetcher",
    "ImageFetcher",
    "verify_image",
    "image_mime",
]
