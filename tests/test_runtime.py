"""Tests for the web session runtime."""

import asyncio
import os
import tempfile
import unittest

from artify.app import ArtifyApp
from artify.camera import SessionState
from artify.web.runtime import BackgroundLoop, SessionWatchdog
from tests.helpers import FakeDevices, FakeTransformService


class TestSessionWatchdog(unittest.IsolatedAsyncioTestCase):
    """Test cases for releasing abandoned browser sessions."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.devices = FakeDevices()
        self.app = ArtifyApp(
            {'collage_path': os.path.join(self.temp_dir.name, 'collage.json')},
            devices=self.devices,
            service=FakeTransformService(),
        )
        self.expired_calls = []

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_watchdog(self, **config):
        config.setdefault('watchdog_interval', 0.01)
        return SessionWatchdog(self.app, config, on_expired=lambda: self.expired_calls.append(True))

    async def test_silent_page_releases_camera(self):
        watchdog = self.make_watchdog(camera_idle_timeout=0.05)
        self.assertTrue(await self.app.acquisition.start_camera())
        task = asyncio.ensure_future(watchdog.run())

        await asyncio.sleep(0.2)

        self.assertTrue(self.devices.streams[0].released)
        self.assertEqual(self.app.session.state, SessionState.IDLE)
        self.assertFalse(watchdog.expired)
        task.cancel()

    async def test_heartbeat_keeps_camera_open(self):
        watchdog = self.make_watchdog(camera_idle_timeout=0.1)
        await self.app.acquisition.start_camera()
        watchdog.touch()
        task = asyncio.ensure_future(watchdog.run())

        for _ in range(20):
            watchdog.touch()
            await asyncio.sleep(0.01)

        self.assertFalse(self.devices.streams[0].released)
        self.assertTrue(self.app.session.is_active)
        task.cancel()
        await self.app.close()

    async def test_long_silence_closes_session(self):
        watchdog = self.make_watchdog(camera_idle_timeout=0.05, session_timeout=0.1)
        await self.app.acquisition.start_camera()

        await asyncio.wait_for(watchdog.run(), timeout=2.0)

        self.assertTrue(watchdog.expired)
        self.assertEqual(self.expired_calls, [True])
        self.assertTrue(self.devices.streams[0].released)

    async def test_idle_without_camera_does_nothing(self):
        watchdog = self.make_watchdog(camera_idle_timeout=0.0)

        await watchdog.check()

        self.assertEqual(self.devices.streams, [])
        self.assertFalse(watchdog.expired)


class TestBackgroundLoop(unittest.TestCase):
    """Test cases for the background event loop."""

    def test_run_and_stop(self):
        loop = BackgroundLoop()

        async def answer():
            await asyncio.sleep(0)
            return 42

        self.assertEqual(loop.run(answer(), timeout=2.0), 42)
        self.assertTrue(loop.is_running)

        loop.stop()

        self.assertFalse(loop.is_running)
        loop.stop()

    def test_expired_watchdog_stops_its_loop(self):
        """Test that an expired session stops the loop it runs on."""
        with tempfile.TemporaryDirectory() as temp_dir:
            app = ArtifyApp({'collage_path': os.path.join(temp_dir, 'collage.json')},
                            devices=FakeDevices(), service=FakeTransformService())
            loop = BackgroundLoop()
            watchdog = SessionWatchdog(app, {'session_timeout': 0.05, 'watchdog_interval': 0.01},
                                       on_expired=loop.stop)

            loop.spawn(watchdog.run())
            loop._thread.join(timeout=2.0)

        self.assertTrue(watchdog.expired)
        self.assertFalse(loop.is_running)


if __name__ == "__main__":
    unittest.main()
