"""Row-level adapter between list rows and the asset cache."""

from __future__ import annotations

import asyncio
import logging
from collections import abc
from functools import partial
from typing import TYPE_CHECKING, Any

from localevents.exceptions import FetchError
from localevents.models.row import RowBinding


if TYPE_CHECKING:
    from localevents.core.asset_cache import AssetCache


logger = logging.getLogger("LocalEvents.cache")

# deliver(row_id, key, data) - data is None when the image couldn't be loaded
DeliverFunc = abc.Callable[[str, str, "bytes | None"], Any]


class AssetCacheClient:
    """Hands images to list rows, making sure a row only ever gets the image it still wants.

    Rows are reused: by the time a fetch completes, the row that asked for it may be showing
    a different event. Each row's binding remembers the key it currently wants, and results
    for any other key are silently dropped. Cancelling only detaches the row, since the
    fetch itself is shared with whoever else is waiting on the same key.
    """

    def __init__(self, cache: AssetCache, deliver: DeliverFunc):
        self._cache = cache
        self._deliver = deliver
        self._bindings: dict[str, RowBinding] = {}
        # only the latest request of a row may deliver to it
        self._latest: dict[str, asyncio.Future[bytes]] = {}

    def current_key(self, row_id: str) -> str | None:
        binding = self._bindings.get(row_id)
        return binding.current_key if binding is not None else None

    def request(self, row_id: str, key: str) -> None:
        """Bind the row to the key and load it.

        On a cache hit, the image is delivered before this returns.

        Args:
            row_id: Identifier of the requesting row
            key: Cache key of the wanted image

        Raises:
            InvalidKeyError: If the key is empty; the row is left unbound
        """
        binding = self._bindings.get(row_id)
        if binding is None:
            binding = self._bindings[row_id] = RowBinding(row_id)
        binding.current_key = None
        self._latest.pop(row_id, None)
        # rejects a bad key before the row gets bound to it
        future = self._cache.load(key)
        binding.current_key = key
        self._latest[row_id] = future
        if future.done():
            self._complete(row_id, key, future)
        else:
            future.add_done_callback(partial(self._complete, row_id, key))

    def cancel(self, row_id: str) -> None:
        """Stop delivering to the row, without cancelling the shared fetch."""
        self._bindings.pop(row_id, None)
        self._latest.pop(row_id, None)

    def clear(self) -> None:
        self._bindings.clear()
        self._latest.clear()

    def _complete(self, row_id: str, key: str, future: asyncio.Future[bytes]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        binding = self._bindings.get(row_id)
        if binding is None or not binding.wants(key) or self._latest.get(row_id) is not future:
            logger.debug(f"Discarding stale image for row {row_id}: {key}")
            return
        del self._latest[row_id]
        if error is not None:
            if not isinstance(error, FetchError):
                logger.error(f"Unexpected image load error for row {row_id}", exc_info=error)
            self._deliver(row_id, key, None)
            return
        self._deliver(row_id, key, future.result())
