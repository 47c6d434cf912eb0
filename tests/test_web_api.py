import unittest
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException
from PIL import Image
from yarl import URL

from localevents.config import ListState
from localevents.core.asset_cache import AssetCache
from localevents.exceptions import NetworkError
from localevents.models import LocalEvent
from localevents.services.list_controller import ListController
from localevents.web import app as webapp
from localevents.web.app import RowConfigureRequest
from localevents.web.managers.cache import AssetCacheClient
from localevents.web.managers.events import EventListManager, image_url
from localevents.web.managers.status import StatusManager
from tests.fakes import ControlledFetch, make_settings, settle


def png_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (2, 2)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestImageEndpoint(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.gui = MagicMock()
        self.gui.events.has_image.return_value = True
        self.patchers = [
            patch.object(webapp, "local_events", self.client),
            patch.object(webapp, "gui_manager", self.gui),
        ]
        for patcher in self.patchers:
            patcher.start()

    def tearDown(self):
        for patcher in self.patchers:
            patcher.stop()

    async def test_serves_cached_bytes(self):
        data = png_bytes()
        self.client.cache = AssetCache(AsyncMock(return_value=data))
        response = await webapp.get_image("https://img.test/1_large.jpg")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.body, data)
        self.assertEqual(response.media_type, "image/png")

    async def test_invalid_key(self):
        self.client.cache = AssetCache(AsyncMock())
        with self.assertRaises(HTTPException) as ctx:
            await webapp.get_image("   ")
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_key_outside_the_list_is_not_fetched(self):
        fetch = AsyncMock(return_value=png_bytes())
        self.client.cache = AssetCache(fetch)
        self.gui.events.has_image.return_value = False
        with self.assertRaises(HTTPException) as ctx:
            await webapp.get_image("http://169.254.169.254/latest/meta-data")
        self.assertEqual(ctx.exception.status_code, 404)
        fetch.assert_not_called()
        self.assertFalse(self.client.cache.in_flight("http://169.254.169.254/latest/meta-data"))

    async def test_fetch_failure(self):
        self.client.cache = AssetCache(AsyncMock(side_effect=NetworkError("404", status=404)))
        with self.assertRaises(HTTPException) as ctx:
            await webapp.get_image("https://img.test/1_large.jpg")
        self.assertEqual(ctx.exception.status_code, 502)

    async def test_missing_client(self):
        with patch.object(webapp, "local_events", None):
            with self.assertRaises(HTTPException) as ctx:
                await webapp.get_image("https://img.test/1_large.jpg")
        self.assertEqual(ctx.exception.status_code, 503)


class TestRowEndpoints(unittest.IsolatedAsyncioTestCase):
    async def test_configure_row_out_of_range(self):
        gui = MagicMock()
        gui.events.configure.side_effect = IndexError("No event at position 5")
        with patch.object(webapp, "gui_manager", gui):
            with self.assertRaises(HTTPException) as ctx:
                await webapp.configure_row("row-1", RowConfigureRequest(index=5))
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_release_row(self):
        gui = MagicMock()
        with patch.object(webapp, "gui_manager", gui):
            result = await webapp.release_row("row-1")
        self.assertTrue(result["success"])
        gui.events.release.assert_called_once_with("row-1")


class TestEventListManager(unittest.IsolatedAsyncioTestCase):
    """Rows wired through the real cache, the way the application wires them."""

    template = "https://img.test/{id}_{imagetype}.jpg"

    async def asyncSetUp(self):
        self.broadcaster = MagicMock()
        self.broadcaster.emit = AsyncMock()
        self.status = StatusManager(self.broadcaster)
        self.manager = EventListManager(self.broadcaster, self.status)
        self.fetch = ControlledFetch()
        self.cache = AssetCache(self.fetch)
        self.images = AssetCacheClient(self.cache, self.manager.deliver)
        self.fetcher = MagicMock()
        self.fetcher.fetch_page = AsyncMock(
            return_value=[
                LocalEvent(eventitemid="1", title="Fair", imagetype="large"),
                LocalEvent(eventitemid="2", title="Market", imagetype="thumb"),
                LocalEvent(eventitemid="3", title="No picture"),
            ]
        )
        self.controller = ListController(
            self.fetcher,
            self.images,
            make_settings(image_url_template=self.template),
            on_change=self.manager.on_list_change,
        )
        self.manager.attach(self.controller)
        await self.controller.reload()
        await settle()
        self.broadcaster.emit.reset_mock()

    def emitted(self, event):
        return [call.args[1] for call in self.broadcaster.emit.await_args_list if call.args[0] == event]

    async def test_list_state_is_published(self):
        self.assertEqual(self.status.get_state(), {"status": "3 events", "list_state": "loaded"})
        self.assertEqual(self.manager.get_events()["state"], ListState.LOADED.value)

    async def test_configured_row_receives_its_image(self):
        payload = self.manager.configure("row-a", 0)
        self.assertEqual(payload["title"], "Fair")
        await settle()
        key = "https://img.test/1_large.jpg"
        self.fetch.succeed(key, b"image")
        await settle()
        self.assertEqual(
            self.emitted("row_image"),
            [{"row_id": "row-a", "key": key, "url": image_url(key), "size": 5}],
        )

    async def test_reused_row_never_shows_the_stale_image(self):
        self.manager.configure("row-a", 0)
        await settle()
        # scrolled: the same row now displays the second event
        self.manager.release("row-a")
        self.manager.configure("row-a", 1)
        await settle()
        self.fetch.succeed("https://img.test/1_large.jpg", b"first")
        await settle()
        self.assertEqual(self.emitted("row_image"), [])

        self.fetch.succeed("https://img.test/2_thumb.jpg", b"second")
        await settle()
        [delivered] = self.emitted("row_image")
        self.assertEqual(delivered["key"], "https://img.test/2_thumb.jpg")

    async def test_failed_image_keeps_the_placeholder(self):
        self.manager.configure("row-a", 1)
        await settle()
        self.fetch.fail("https://img.test/2_thumb.jpg", NetworkError("404", status=404))
        await settle()
        self.assertEqual(
            self.emitted("row_image_failed"),
            [{"row_id": "row-a", "key": "https://img.test/2_thumb.jpg"}],
        )
        # image failures don't change the list state
        self.assertIs(self.controller.state, ListState.LOADED)

    async def test_event_without_image(self):
        payload = self.manager.configure("row-a", 2)
        self.assertIsNone(payload["image_key"])
        await settle()
        self.assertEqual(self.emitted("row_image_failed"), [{"row_id": "row-a", "key": ""}])
        self.assertEqual(self.fetch.calls, [])

    def recipients(self, event):
        return [
            (call.args[1]["row_id"], call.kwargs.get("to"))
            for call in self.broadcaster.emit.await_args_list
            if call.args[0] == event
        ]

    async def test_sessions_sharing_a_row_id_both_get_their_image(self):
        self.manager.configure("row-0", 0, sid="tab-a")
        self.manager.configure("row-0", 1, sid="tab-b")
        await settle()
        self.fetch.succeed("https://img.test/1_large.jpg", b"first")
        self.fetch.succeed("https://img.test/2_thumb.jpg", b"second")
        await settle()
        self.assertEqual(
            sorted(self.recipients("row_image")), [("row-0", "tab-a"), ("row-0", "tab-b")]
        )
        by_session = {
            call.kwargs["to"]: call.args[1]["key"]
            for call in self.broadcaster.emit.await_args_list
            if call.args[0] == "row_image"
        }
        self.assertEqual(by_session["tab-a"], "https://img.test/1_large.jpg")
        self.assertEqual(by_session["tab-b"], "https://img.test/2_thumb.jpg")

    async def test_failure_only_reaches_the_owning_session(self):
        self.manager.configure("row-0", 1, sid="tab-a")
        await settle()
        self.fetch.fail("https://img.test/2_thumb.jpg", NetworkError("404", status=404))
        await settle()
        self.assertEqual(self.recipients("row_image_failed"), [("row-0", "tab-a")])

    async def test_disconnect_drops_the_session_rows(self):
        self.manager.configure("row-0", 0, sid="tab-a")
        self.manager.configure("row-1", 1, sid="tab-a")
        self.manager.configure("row-0", 1, sid="tab-b")
        self.manager.disconnect("tab-a")
        self.assertIsNone(self.images.current_key("tab-a:row-0"))
        self.assertIsNone(self.images.current_key("tab-a:row-1"))
        self.assertEqual(self.images.current_key("tab-b:row-0"), "https://img.test/2_thumb.jpg")
        await settle()
        self.fetch.succeed("https://img.test/1_large.jpg", b"first")
        self.fetch.succeed("https://img.test/2_thumb.jpg", b"second")
        await settle()
        self.assertEqual(self.recipients("row_image"), [("row-0", "tab-b")])

    def test_has_image(self):
        self.assertTrue(self.manager.has_image("https://img.test/1_large.jpg"))
        self.assertFalse(self.manager.has_image("https://elsewhere.test/secret"))

    def test_image_url(self):
        key = "https://img.test/1_large.jpg?v=2"
        url = URL(image_url(key))
        self.assertEqual(url.path, "/api/images")
        self.assertEqual(url.query["key"], key)


if __name__ == "__main__":
    unittest.main()
