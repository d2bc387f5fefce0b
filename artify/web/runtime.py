"""Background event loop for running the async core from Streamlit.

Streamlit reruns the script in a fresh call for every interaction, but the
capture session and orchestrator keep asyncio state between reruns. They all
live on one event loop running in a daemon thread.

Streamlit gives no callback when a browser tab goes away, so each page run
stamps a heartbeat on a :class:`SessionWatchdog`. When the heartbeat goes
stale the watchdog releases the camera, and after a longer silence it closes
the whole application and stops the loop.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from ..app import ArtifyApp
from ..camera import SessionState

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """An asyncio event loop running in its own thread."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="artify-loop", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self.loop.is_closed()

    def run(self, coro: Awaitable[Any], timeout: Optional[float] = None) -> Any:
        """Run a coroutine on the loop and wait for its result.

        Args:
            coro: Coroutine to run
            timeout: Seconds to wait, None to wait forever

        Returns:
            The coroutine's result
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout)

    def spawn(self, coro: Awaitable[Any]) -> "asyncio.Future":
        """Schedule a coroutine on the loop without waiting for it."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        """Stop the loop. Safe to call from the loop thread itself."""
        if not self.is_running:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=5.0)
        logger.debug("Background loop stopped")


class SessionWatchdog:
    """Releases the resources of a browser session that stopped checking in."""

    def __init__(self,
                 app: ArtifyApp,
                 config: Optional[Dict[str, Any]] = None,
                 on_expired: Optional[Callable[[], None]] = None):
        """Initialize the watchdog.

        Args:
            app: The session's application
            config: Configuration dictionary with the idle timeouts
            on_expired: Called after the app was closed for good
        """
        self.app = app
        self.config = config or {}
        self._validate_config()
        self.on_expired = on_expired

        self.last_seen = time.monotonic()
        self.expired = False

    def _validate_config(self) -> None:
        """Validate and set default configuration parameters."""
        defaults = {
            'camera_idle_timeout': 30.0,
            'session_timeout': 3600.0,
            'watchdog_interval': 1.0,
        }

        for key, value in defaults.items():
            if key not in self.config:
                self.config[key] = value

    def touch(self) -> None:
        """Record that the page is still being rendered."""
        self.last_seen = time.monotonic()

    @property
    def idle_for(self) -> float:
        return time.monotonic() - self.last_seen

    def _camera_in_use(self) -> bool:
        session = self.app.session
        return session.has_stream or session.state is SessionState.REQUESTING

    async def check(self) -> None:
        """Release what a silent session still holds."""
        idle = self.idle_for
        if idle >= self.config['session_timeout']:
            logger.info(f"Browser session silent for {idle:.0f}s, closing it")
            self.expired = True
            await self.app.close()
            return

        if idle >= self.config['camera_idle_timeout'] and self._camera_in_use():
            logger.info(f"No page activity for {idle:.0f}s, releasing the camera")
            await self.app.acquisition.stop_camera()

    async def run(self) -> None:
        """Check periodically until the session expires."""
        while not self.expired:
            await asyncio.sleep(self.config['watchdog_interval'])
            try:
                await self.check()
            except Exception as e:
                logger.error(f"Error in session watchdog: {e}")

        if self.on_expired is not None:
            self.on_expired()
