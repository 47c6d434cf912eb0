"""
HTTP client shared by every outgoing request.

Handles HTTP session management, bounded request retries, and connection quality settings.
"""

from __future__ import annotations

import asyncio
import logging
from collections import abc
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import aiohttp
from yarl import URL

from localevents.config import MAX_BACKOFF_DELAY, MAX_CONNECTION_QUALITY
from localevents.exceptions import NetworkError
from localevents.utils import ExponentialBackoff


if TYPE_CHECKING:
    from localevents.config.settings import Settings


logger = logging.getLogger("LocalEvents")
http_logger = logging.getLogger("LocalEvents.http")

USER_AGENT = "LocalEvents/1.0 (+aiohttp)"


class HTTPClient:
    """
    Manages the HTTP session and retries transient failures with exponential backoff.

    This client provides:
    - Lazy session creation with connection pooling
    - Connection quality-based timeout configuration
    - A bounded number of attempts per request, after which NetworkError is raised
    - Proxy support

    Only connection problems, timeouts and 5xx responses are retried.
    Any other response is handed to the caller, which decides what its status means.
    """

    def __init__(self, settings: Settings):
        """
        Initialize the HTTP client.

        Parameters
        ----------
        settings : Settings
            Application settings for connection quality, attempts and proxy configuration
        """
        self.settings = settings
        self._session: aiohttp.ClientSession | None = None

    def _timeout(self) -> aiohttp.ClientTimeout:
        connection_quality = self.settings.connection_quality
        if connection_quality < 1:
            connection_quality = self.settings.connection_quality = 1
        elif connection_quality > MAX_CONNECTION_QUALITY:
            connection_quality = self.settings.connection_quality = MAX_CONNECTION_QUALITY
        return aiohttp.ClientTimeout(
            sock_connect=5 * connection_quality,
            total=10 * connection_quality,
        )

    async def get_session(self) -> aiohttp.ClientSession:
        """
        Get or create the HTTP session.

        Returns
        -------
        aiohttp.ClientSession
            The active HTTP session

        Raises
        ------
        RuntimeError
            If the session is closed
        """
        if (session := self._session) is not None:
            if session.closed:
                raise RuntimeError("Session is closed")
            return session

        connector = aiohttp.TCPConnector(limit=50)
        self._session = aiohttp.ClientSession(
            timeout=self._timeout(),
            connector=connector,
            headers={"User-Agent": USER_AGENT},
        )
        return self._session

    @asynccontextmanager
    async def request(
        self,
        method: str,
        url: URL | str,
        *,
        attempts: int | None = None,
        **kwargs,
    ) -> abc.AsyncIterator[aiohttp.ClientResponse]:
        """
        Make an HTTP request, retrying transient failures.

        Parameters
        ----------
        method : str
            HTTP method (GET, POST, etc.)
        url : URL | str
            Request URL
        attempts : int | None, optional
            Total attempts for this request, defaults to the `request_attempts` setting
        **kwargs
            Additional arguments passed to aiohttp.ClientSession.request

        Yields
        ------
        aiohttp.ClientResponse
            The HTTP response, with its body already read

        Raises
        ------
        NetworkError
            If every attempt failed, or the request failed in a way a retry can't fix
            (rejected TLS certificate, redirect loop, invalid URL)
        """
        session = await self.get_session()
        method = method.upper()

        if self.settings.proxy and "proxy" not in kwargs:
            kwargs["proxy"] = self.settings.proxy

        if attempts is None:
            attempts = self.settings.request_attempts
        http_logger.debug(f"Request: ({method=}, {url=}, {kwargs=})")
        backoff = ExponentialBackoff(maximum=MAX_BACKOFF_DELAY, attempts=max(1, attempts))
        response: aiohttp.ClientResponse | None = None

        for delay in backoff:
            status: int | None = None
            response = None
            try:
                response = await session.request(method, url, **kwargs)
                http_logger.debug(f"Response: {response.status}: {response}")
                if response.status < 500:
                    # Pre-read the response to avoid getting errors outside the context manager
                    await response.read()
                    break
                status = response.status
                last_error = f"server returned {status}"
                response.release()
            except aiohttp.ClientConnectorCertificateError as exc:
                # SSL verification failures should not be retried
                raise NetworkError(f"{method} {url}: {exc}", url=str(url)) from exc
            except (
                aiohttp.ClientConnectionError,
                asyncio.TimeoutError,
                aiohttp.ClientPayloadError,
            ) as exc:
                if response is not None:
                    response.release()
                last_error = str(exc) or type(exc).__name__
                if backoff.exhausted:
                    raise NetworkError(f"{method} {url}: {last_error}", url=str(url)) from exc
            except aiohttp.ClientError as exc:
                # redirect loops, invalid URLs and the like won't go away on a retry
                if response is not None:
                    response.release()
                raise NetworkError(f"{method} {url}: {exc!r}", url=str(url)) from exc

            if backoff.exhausted:
                raise NetworkError(f"{method} {url}: {last_error}", url=str(url), status=status)
            logger.warning(f"{method} {url} failed ({last_error}), retrying in {round(delay, 1)}s")
            await asyncio.sleep(delay)

        assert response is not None
        try:
            yield response
        finally:
            response.release()

    async def close(self) -> None:
        """
        Close the HTTP session.

        This should be called during application shutdown.
        """
        if self._session is not None:
            await self._session.close()
            self._session = None
