"""Scoped protocol-session harness - acquire, run the body, always release.

PUBLIC API:
  - HarnessSession: Everything one test needs (driver, CDP session, services, soft assertions)
  - harness_session: Context manager around acquire/open_session/release
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, TypeVar

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from devtap.browser import BrowserManager
from devtap.cdp import CDPEvent, CDPSession, Subscription
from devtap.config import HarnessConfig
from devtap.errors import TimingFailure
from devtap.intercept import InterceptionPolicy, NetworkInterceptor
from devtap.services import DomainServices
from devtap.soft import SoftAssertions
from devtap.waiting import Collector, EventExpectation, wait_until

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class HarnessSession:
    """A ready browser plus its CDP session for one test.

    Attributes:
        driver: Selenium driver.
        cdp: CDP session bound to the driver's page.
        config: Settings the browser was started with.
        manager: Manager that owns the browser.
        softly: Soft assertions reported when the scope ends.
    """

    driver: WebDriver
    cdp: CDPSession
    config: HarnessConfig
    manager: BrowserManager
    softly: SoftAssertions = field(default_factory=SoftAssertions)

    def __post_init__(self):
        self.services = DomainServices(self.cdp)

    @property
    def browser(self):
        return self.services.browser

    @property
    def network(self):
        return self.services.network

    @property
    def emulation(self):
        return self.services.emulation

    @property
    def log(self):
        return self.services.log

    @property
    def security(self):
        return self.services.security

    @property
    def performance(self):
        return self.services.performance

    @property
    def fetch(self):
        return self.services.fetch

    # Navigation

    def navigate(self, url: str) -> None:
        """Load url. Returns at the load event, not when protocol events have drained."""
        logger.info(f"Navigating to {url}")
        self.driver.get(url)

    @property
    def title(self) -> str:
        return self.driver.title

    @property
    def page_source(self) -> str:
        return self.driver.page_source

    def find(self, xpath: str, timeout: float | None = None) -> WebElement:
        """Wait for the element at xpath to be present.

        Raises:
            TimingFailure: If it does not appear within timeout (default: event_timeout).
        """
        return self._wait_for(EC.presence_of_element_located((By.XPATH, xpath)), f"element {xpath}", timeout)

    def click(self, xpath: str, timeout: float | None = None) -> None:
        """Wait for the element at xpath to be clickable, then click it."""
        self._wait_for(EC.element_to_be_clickable((By.XPATH, xpath)), f"clickable {xpath}", timeout).click()

    def _wait_for(self, condition, description: str, timeout: float | None) -> Any:
        timeout = timeout or self.config.event_timeout
        wait = WebDriverWait(self.driver, timeout, poll_frequency=self.config.poll_interval)
        try:
            return wait.until(condition)
        except TimeoutException:
            raise TimingFailure(description, timeout) from None

    # Events

    def subscribe(self, event_type: str, callback: Callable[[CDPEvent], None]) -> Subscription:
        return self.cdp.subscribe(event_type, callback)

    def expect(self, event_type: str, predicate: Callable[[CDPEvent], bool] | None = None) -> EventExpectation:
        return self.cdp.expect(event_type, predicate)

    def collect(self, event_type: str) -> Collector[CDPEvent]:
        return self.cdp.collect(event_type)

    def intercept(self, policy: InterceptionPolicy) -> NetworkInterceptor:
        """Interceptor over this session's Fetch service. Use as a context manager."""
        return NetworkInterceptor(self.cdp, policy, fetch=self.fetch)

    # Waiting

    def wait_until(self, condition: Callable[[], T], timeout: float | None = None, description: str = "condition") -> T:
        return wait_until(
            condition,
            timeout=timeout or self.config.event_timeout,
            interval=self.config.poll_interval,
            description=description,
        )

    def drain(self, timeout: float | None = None) -> None:
        """Wait for every event received so far to reach its callbacks."""
        self.cdp.drain(timeout)

    def execute_cdp(self, method: str, params: dict | None = None) -> dict[str, Any]:
        """Command through chromedriver's CDP bridge instead of our session."""
        return self.manager.execute_cdp(self.driver, method, params)


@contextmanager
def harness_session(
    manager: BrowserManager | None = None,
    config: HarnessConfig | None = None,
) -> Iterator[HarnessSession]:
    """Acquire a browser, open its CDP session, yield, and always release.

    Soft assertion failures are raised after release when the body
    completed; if the body raised, its exception wins and they are logged.
    """
    manager = manager or BrowserManager(config)
    driver = manager.acquire()
    try:
        cdp = manager.open_session(driver)
        session = HarnessSession(driver=driver, cdp=cdp, config=manager.config, manager=manager)
        try:
            yield session
        except BaseException:
            for failure in session.softly.failures:
                logger.error(f"Soft assertion failed before error: {failure}")
            raise
    finally:
        manager.release(driver)

    session.softly.assert_all()


__all__ = ["HarnessSession", "harness_session"]
