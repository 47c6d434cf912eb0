import asyncio


class ControlledFetch:
    """Fetch function whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.calls = []
        self.pending = {}

    async def __call__(self, key):
        self.calls.append(key)
        future = asyncio.get_running_loop().create_future()
        self.pending[key] = future
        return await future

    def succeed(self, key, data):
        self.pending.pop(key).set_result(data)

    def fail(self, key, exc):
        self.pending.pop(key).set_exception(exc)


class MockResponseContext:
    def __init__(self, response_or_exc):
        self.response_or_exc = response_or_exc

    async def __aenter__(self):
        if isinstance(self.response_or_exc, Exception):
            raise self.response_or_exc
        return self.response_or_exc

    async def __aexit__(self, exc_type, exc, tb):
        pass


async def settle(rounds=5):
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_settings(**overrides):
    """Settings stand-in carrying the values the clients read."""
    from types import SimpleNamespace

    from yarl import URL

    from localevents.config import EVENTS_URL, IMAGE_URL_TEMPLATE

    values = {
        "proxy": URL(),
        "events_url": EVENTS_URL,
        "image_url_template": IMAGE_URL_TEMPLATE,
        "rows_per_page": 100,
        "latitude": 51.5,
        "longitude": -0.12,
        "search": "",
        "connection_quality": 1,
        "request_attempts": 3,
        "cache_max_bytes": 0,
        "image_fetch_rate": 10,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_response(status=200, body=b""):
    from unittest.mock import AsyncMock, MagicMock

    response = MagicMock()
    response.status = status
    response.read = AsyncMock(return_value=body)
    return response
