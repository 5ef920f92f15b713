"""Browser lifecycle - acquire a Chrome, bind one CDP session, release.

PUBLIC API:
  - BrowserManager: Thread-safe acquire/open_session/release
  - BrowserHandle: Tracks one acquired browser
  - HandleState: Per-handle lifecycle state
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.remote.webdriver import WebDriver

from devtap.cdp import CDPSession
from devtap.cdp.targets import find_page
from devtap.config import HarnessConfig, get_config
from devtap.errors import ProtocolError, SetupError

logger = logging.getLogger(__name__)


class HandleState(str, Enum):
    """Per-browser lifecycle state."""

    ACQUIRED = "acquired"
    SESSION_OPEN = "session_open"
    RELEASED = "released"


@dataclass
class BrowserHandle:
    """Tracks one acquired browser.

    Attributes:
        driver: Selenium driver for the browser.
        acquired_at: Unix timestamp when the browser started.
        session: CDP session bound to the page, once opened.
        state: Current lifecycle state.
    """

    driver: WebDriver
    acquired_at: float
    session: CDPSession | None = None
    state: HandleState = HandleState.ACQUIRED


type DriverFactory = Callable[..., WebDriver]


class BrowserManager:
    """Acquires browsers and guarantees each is released once.

    At most one CDP session is bound to a browser at a time.

    Attributes:
        config: Harness settings used for every browser.
        handles: Live handles keyed by id() of their driver.
    """

    def __init__(self, config: HarnessConfig | None = None, driver_factory: DriverFactory | None = None):
        """Initialize manager.

        Args:
            config: Harness settings. Defaults to the discovered devtap.toml.
            driver_factory: Called as factory(options=..., service=...). Defaults to webdriver.Chrome.
        """
        self.config = config or get_config()
        self.driver_factory = driver_factory or webdriver.Chrome
        self.handles: dict[int, BrowserHandle] = {}
        self._lock = threading.Lock()

    def build_options(self) -> Options:
        """Chrome options from config."""
        opts = Options()
        if self.config.headless:
            opts.add_argument("--headless=new")
        opts.add_argument(f"--window-size={self.config.window_width},{self.config.window_height}")
        # Page WebSocket is opened by our own client, not chromedriver
        opts.add_argument("--remote-allow-origins=*")
        for arg in self.config.arguments:
            opts.add_argument(arg)
        if self.config.binary_location:
            opts.binary_location = self.config.binary_location
        return opts

    def acquire(self) -> WebDriver:
        """Start a new Chrome and return its driver.

        Raises:
            SetupError: If the browser or chromedriver cannot start.
        """
        service = Service(executable_path=self.config.driver_path) if self.config.driver_path else Service()

        try:
            driver = self.driver_factory(options=self.build_options(), service=service)
        except (WebDriverException, OSError) as e:
            logger.error(f"Failed to start Chrome: {e}")
            raise SetupError(f"Failed to start Chrome: {e}") from e

        if self.config.maximize and not self.config.headless:
            try:
                driver.maximize_window()
            except WebDriverException as e:
                logger.warning(f"Could not maximize window: {e}")

        with self._lock:
            self.handles[id(driver)] = BrowserHandle(driver=driver, acquired_at=time.time())

        logger.info(f"Chrome started (session {getattr(driver, 'session_id', '?')})")
        return driver

    def _handle(self, driver: WebDriver) -> BrowserHandle:
        with self._lock:
            handle = self.handles.get(id(driver))
        if handle is None or handle.state is HandleState.RELEASED:
            raise SetupError("Browser was not acquired by this manager or is already released")
        return handle

    def debugger_address(self, driver: WebDriver) -> str:
        """Chrome's remote debugging "host:port" as reported by chromedriver."""
        address = driver.capabilities.get("goog:chromeOptions", {}).get("debuggerAddress")
        if not address:
            raise SetupError("Driver does not expose goog:chromeOptions.debuggerAddress")
        return address

    def open_session(self, driver: WebDriver) -> CDPSession:
        """Bind a CDP session to the browser's first page.

        Raises:
            SetupError: If a session is already open for this browser, or it cannot connect.
        """
        handle = self._handle(driver)

        with self._lock:
            if handle.state is HandleState.SESSION_OPEN:
                raise SetupError("A CDP session is already open for this browser")
            # Reserve the slot before network I/O
            handle.state = HandleState.SESSION_OPEN

        try:
            page = find_page(self.debugger_address(driver), timeout=self.config.connect_timeout)
            session = CDPSession(
                page["webSocketDebuggerUrl"],
                timeout=self.config.command_timeout,
                event_timeout=self.config.event_timeout,
                connect_timeout=self.config.connect_timeout,
            )
            session.connect()
        except Exception:
            handle.state = HandleState.ACQUIRED
            raise

        handle.session = session
        return session

    def session_for(self, driver: WebDriver) -> CDPSession | None:
        return self._handle(driver).session

    def execute_cdp(self, driver: WebDriver, method: str, params: dict | None = None) -> dict[str, Any]:
        """One-shot command through chromedriver's own CDP bridge.

        Works before a session is opened; no events are delivered.

        Raises:
            ProtocolError: If chromedriver reports an error.
        """
        try:
            return driver.execute_cdp_cmd(method, params or {})
        except WebDriverException as e:
            raise ProtocolError(method, e.msg or str(e)) from e

    def release(self, driver: WebDriver) -> bool:
        """Close the session and quit the browser.

        Idempotent: a second call logs a warning and returns False. Errors
        while quitting are logged, never raised.

        Returns:
            True if this call released the browser.
        """
        with self._lock:
            handle = self.handles.get(id(driver))
            if handle is None or handle.state is HandleState.RELEASED:
                logger.warning("release() called for a browser that is not held")
                return False
            handle.state = HandleState.RELEASED

        # Cleanup outside lock (network I/O)
        if handle.session:
            try:
                handle.session.disconnect()
            except Exception as e:
                logger.error(f"Error closing CDP session: {e}")

        # A dead chromedriver fails with transport errors, not WebDriverException
        try:
            driver.quit()
        except Exception as e:
            logger.error(f"Error quitting Chrome: {e!r}")
        finally:
            with self._lock:
                self.handles.pop(id(driver), None)

        logger.info(f"Chrome released after {time.time() - handle.acquired_at:.1f}s")
        return True

    def release_all(self) -> int:
        """Release every held browser. Returns how many were released."""
        with self._lock:
            drivers = [h.driver for h in self.handles.values()]
        return sum(1 for d in drivers if self.release(d))


__all__ = ["BrowserManager", "BrowserHandle", "HandleState"]
