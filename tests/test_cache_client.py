import unittest
from unittest.mock import MagicMock

from localevents.core.asset_cache import AssetCache
from localevents.exceptions import InvalidKeyError, NetworkError
from localevents.web.managers.cache import AssetCacheClient
from tests.fakes import ControlledFetch, settle


class TestAssetCacheClient(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.fetch = ControlledFetch()
        self.cache = AssetCache(self.fetch)
        self.deliver = MagicMock()
        self.client = AssetCacheClient(self.cache, self.deliver)

    async def test_delivers_to_the_requesting_row(self):
        self.client.request("row-1", "k1")
        self.assertEqual(self.client.current_key("row-1"), "k1")
        await settle()
        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.assert_called_once_with("row-1", "k1", b"one")

    async def test_stale_result_is_discarded_after_rebinding(self):
        self.client.request("row-1", "k1")
        await settle()
        # the row got reused for another event before k1 arrived
        self.client.request("row-1", "k2")
        await settle()
        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.assert_not_called()
        # the stale fetch still populated the cache
        self.assertIn("k1", self.cache)

        self.fetch.succeed("k2", b"two")
        await settle()
        self.deliver.assert_called_once_with("row-1", "k2", b"two")

    async def test_hit_is_delivered_before_request_returns(self):
        self.client.request("row-1", "k1")
        await settle()
        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.reset_mock()

        self.client.request("row-2", "k1")
        self.deliver.assert_called_once_with("row-2", "k1", b"one")

    async def test_cancel_keeps_the_shared_fetch(self):
        self.client.request("row-1", "k1")
        self.client.request("row-2", "k1")
        await settle()
        self.client.cancel("row-1")
        self.assertIsNone(self.client.current_key("row-1"))
        self.assertTrue(self.cache.in_flight("k1"))

        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.assert_called_once_with("row-2", "k1", b"one")

    async def test_failure_delivers_placeholder(self):
        self.client.request("row-1", "k1")
        await settle()
        self.fetch.fail("k1", NetworkError("404", url="k1", status=404))
        await settle()
        self.deliver.assert_called_once_with("row-1", "k1", None)

    async def test_invalid_key_leaves_row_unbound(self):
        self.client.request("row-1", "k1")
        with self.assertRaises(InvalidKeyError):
            self.client.request("row-1", "")
        self.assertIsNone(self.client.current_key("row-1"))
        await settle()
        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.assert_not_called()

    async def test_rebinding_back_to_the_same_key_delivers_once(self):
        self.client.request("row-1", "k1")
        self.client.request("row-1", "k2")
        self.client.request("row-1", "k1")
        await settle()
        self.fetch.succeed("k1", b"one")
        self.fetch.succeed("k2", b"two")
        await settle()
        self.deliver.assert_called_once_with("row-1", "k1", b"one")

    async def test_clear_forgets_every_row(self):
        self.client.request("row-1", "k1")
        self.client.clear()
        self.assertIsNone(self.client.current_key("row-1"))
        await settle()
        self.fetch.succeed("k1", b"one")
        await settle()
        self.deliver.assert_not_called()


if __name__ == "__main__":
    unittest.main()
