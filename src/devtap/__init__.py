"""devtap - Chrome DevTools Protocol harness for Selenium end-to-end tests.

Each test gets a browser, one CDP session bound to it, typed domain
services, event subscriptions delivered off the socket thread, and soft
assertions. The browser is released on every exit path.

PUBLIC API:
  - BrowserManager: Acquire/open_session/release browsers
  - HarnessSession, harness_session: Scoped browser + CDP session
  - CDPSession, CDPEvent: Protocol client and observed events
  - InterceptionPolicy, Route, RequestMatcher, SyntheticResponse, NetworkInterceptor: Request interception
  - Collector, EventExpectation, wait_until: Callback/test-flow synchronization
  - SoftAssertions, soft_assertions: Soft assertions
  - HarnessConfig, load_config, get_config: Configuration
  - SetupError, ProtocolError, TimingFailure, SoftAssertionError: Errors
  - __version__: Package version string
"""

from importlib.metadata import PackageNotFoundError, version

from devtap.browser import BrowserManager
from devtap.cdp import CDPEvent, CDPSession
from devtap.config import HarnessConfig, get_config, load_config
from devtap.errors import DevtapError, ProtocolError, SetupError, SoftAssertionError, TimingFailure
from devtap.harness import HarnessSession, harness_session
from devtap.intercept import Action, InterceptionPolicy, NetworkInterceptor, RequestMatcher, Route, SyntheticResponse
from devtap.soft import SoftAssertions, soft_assertions
from devtap.waiting import Collector, EventExpectation, wait_until

try:
    __version__ = version("devtap")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BrowserManager",
    "HarnessSession",
    "harness_session",
    "CDPSession",
    "CDPEvent",
    "Action",
    "InterceptionPolicy",
    "NetworkInterceptor",
    "RequestMatcher",
    "Route",
    "SyntheticResponse",
    "Collector",
    "EventExpectation",
    "wait_until",
    "SoftAssertions",
    "soft_assertions",
    "HarnessConfig",
    "load_config",
    "get_config",
    "DevtapError",
    "SetupError",
    "ProtocolError",
    "TimingFailure",
    "SoftAssertionError",
    "__version__",
]
