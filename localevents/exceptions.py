"""Exception hierarchy for LocalEvents."""

from __future__ import annotations


class LocalEventsException(Exception):
    """Base exception class for LocalEvents."""

    def __init__(self, *args: object):
        # use 'Unknown error' as the default message
        if not args:
            args = ("Unknown error",)
        super().__init__(*args)


class ExitRequest(LocalEventsException):
    """Raised when the application is requested to exit from outside of the main loop."""


class FetchError(LocalEventsException):
    """
    Terminal failure of a single fetch.

    Delivered to every waiter of the failed request; never cached.
    """

    def __init__(self, *args: object, url: str | None = None):
        super().__init__(*args)
        self.url: str | None = url


class NetworkError(FetchError):
    """Transport-level failure, or a response with a non-2xx status."""

    def __init__(self, *args: object, url: str | None = None, status: int | None = None):
        super().__init__(*args, url=url)
        self.status: int | None = status


class DecodeError(FetchError):
    """The response arrived, but its content doesn't match what was expected."""


class InvalidKeyError(LocalEventsException, ValueError):
    """An empty or non-string cache key was passed in."""
