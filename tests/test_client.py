import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from localevents.config import State
from localevents.core.client import LocalEvents
from tests.fakes import make_settings, settle


class TestLocalEventsRun(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.app = LocalEvents(make_settings())
        self.app.gui = MagicMock()
        self.controller = MagicMock()
        self.app.list_controller = self.controller

    async def asyncTearDown(self):
        with patch("localevents.core.client.asyncio.sleep", new_callable=AsyncMock):
            await self.app.shutdown()

    async def test_fetches_on_start_and_exits(self):
        self.controller.reload = AsyncMock(side_effect=lambda: self.app.close())
        await self.app.run()
        self.controller.reload.assert_awaited_once()
        self.app.gui.status.update.assert_called_with("Exiting...")
        self.assertEqual(self.app.status()["state"], "EXIT")

    async def test_reload_request_fetches_again(self):
        calls = []

        async def reload():
            calls.append(len(calls))
            if len(calls) == 2:
                self.app.close()

        self.controller.reload = AsyncMock(side_effect=reload)
        runner = asyncio.create_task(self.app.run())
        await settle()
        self.assertEqual(calls, [0])
        self.assertEqual(self.app.status()["state"], "IDLE")
        self.app.reload()
        await runner
        self.assertEqual(calls, [0, 1])

    async def test_unexpected_error_closes_the_application(self):
        self.controller.reload = AsyncMock(side_effect=RuntimeError("boom"))
        with self.assertLogs("LocalEvents", level="ERROR"):
            with self.assertRaises(RuntimeError):
                await self.app.run()
        self.assertEqual(self.app.status()["state"], "EXIT")

    def test_state_cannot_leave_exit(self):
        self.app.close()
        self.app.change_state(State.EVENTS_FETCH)
        self.assertEqual(self.app.status()["state"], "EXIT")

    def test_cache_bound(self):
        self.app.set_cache_bound(1024)
        self.assertEqual(self.app.cache.max_bytes, 1024)
        self.assertEqual(self.app.status()["cache"]["max_bytes"], 1024)


if __name__ == "__main__":
    unittest.main()
