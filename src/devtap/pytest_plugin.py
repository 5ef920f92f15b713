"""pytest integration for devtap.

Registered through the pytest11 entry point.

Fixtures:
  - harness_config: HarnessConfig for the run
  - browser_manager: BrowserManager, releases leftovers at teardown
  - devtools: Ready HarnessSession, released after the test; soft failures reported
"""

import logging
from pathlib import Path

import pytest

from devtap.browser import BrowserManager
from devtap.config import load_config
from devtap.harness import HarnessSession

logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    group = parser.getgroup("devtap", "Chrome DevTools Protocol harness")
    group.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run tests marked e2e (need Chrome and network access)",
    )
    group.addoption(
        "--devtap-config",
        default=None,
        help="Path to devtap.toml (default: search from the current directory up)",
    )


def pytest_configure(config):
    """Register the e2e marker."""
    config.addinivalue_line("markers", "e2e: drives a real Chrome against external websites (needs --run-e2e)")


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless --run-e2e was given."""
    if config.getoption("--run-e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="needs --run-e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item so fixtures can see the outcome."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def harness_config(pytestconfig):
    """Harness settings from --devtap-config or the discovered devtap.toml."""
    path = pytestconfig.getoption("--devtap-config")
    config = load_config(Path(path) if path else None)
    logging.getLogger("devtap").setLevel(config.log_level.upper())
    return config


@pytest.fixture
def browser_manager(harness_config):
    """BrowserManager for one test. Anything still held is released at teardown."""
    manager = BrowserManager(harness_config)
    yield manager
    leftover = manager.release_all()
    if leftover:
        logger.warning(f"Released {leftover} browser(s) left open by the test")


@pytest.fixture
def devtools(request, browser_manager):
    """Browser plus CDP session for one test.

    The browser is released on every exit path. Soft assertion failures
    fail the test at teardown when the body itself passed.
    """
    driver = browser_manager.acquire()
    try:
        cdp = browser_manager.open_session(driver)
        session = HarnessSession(driver=driver, cdp=cdp, config=browser_manager.config, manager=browser_manager)
        yield session
    finally:
        browser_manager.release(driver)

    report = getattr(request.node, "rep_call", None)
    if report is None or report.passed:
        session.softly.assert_all()
    else:
        for failure in session.softly.failures:
            logger.error(f"Soft assertion failed: {failure}")
