"""Downloads image bytes for the asset cache."""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from localevents.config import IMAGE_FETCH_WINDOW
from localevents.exceptions import DecodeError, NetworkError
from localevents.utils import RateLimiter


if TYPE_CHECKING:
    from localevents.api.http_client import HTTPClient


logger = logging.getLogger("LocalEvents")


def verify_image(data: bytes) -> None:
    """
    Make sure the bytes decode into an image.

    Raises
    ------
    DecodeError
        If Pillow can't identify or parse the data
    """
    if not data:
        raise DecodeError("Empty image body")
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Undecodable image: {exc}") from exc


class ImageFetcher:
    """
    Fetches the image behind a cache key (an image URL).

    Instances are callable, which makes them the fetch function of an `AssetCache`.
    """

    def __init__(self, http_client: HTTPClient, *, rate: int = 10):
        self.http_client = http_client
        self._limiter = RateLimiter(capacity=rate, window=IMAGE_FETCH_WINDOW)

    async def __call__(self, key: str) -> bytes:
        return await self.fetch(key)

    async def fetch(self, url: str) -> bytes:
        """
        GET the image and check that it decodes.

        Raises
        ------
        NetworkError
            If the request failed or returned a non-2xx status
        DecodeError
            If the body isn't a decodable image
        """
        async with self._limiter:
            async with self.http_client.request("GET", url) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(
                        f"Image request returned {response.status}",
                        url=url,
                        status=response.status,
                    )
                data: bytes = await response.read()
        try:
            await asyncio.to_thread(verify_image, data)
        except DecodeError as exc:
            exc.url = url
            raise
        logger.debug(f"Downloaded image ({len(data)} bytes): {url}")
        return data

    def close(self) -> None:
        self._limiter.close()


def image_mime(data: bytes) -> str:
    """Content type of image bytes, as identified by Pillow."""
    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format
    except (UnidentifiedImageError, OSError):
        return "application/octet-stream"
    return Image.MIME.get(image_format or "", "application/octet-stream")
