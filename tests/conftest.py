"""
Pytest configuration and shared fixtures.

Unit tests run without Chrome: the CDP socket and the Selenium driver are
replaced by the fakes below.
"""
import json

import pytest
from selenium.common.exceptions import NoSuchElementException

from devtap.cdp import CDPSession
from devtap.config import HarnessConfig


class FakeWebSocketApp:
    """Stands in for websocket.WebSocketApp on a connected CDPSession.

    Every sent command is recorded and answered synchronously by responder,
    which returns the reply payload ({"result": ...} or {"error": ...}) or
    None to leave the command unanswered.
    """

    def __init__(self, session: CDPSession, responder=None):
        self.session = session
        self.sent: list[dict] = []
        self.responder = responder or (lambda method, params: {"result": {}})
        self.closed = False

    def send(self, data):
        message = json.loads(data)
        self.sent.append(message)
        reply = self.responder(message["method"], message.get("params", {}))
        if reply is not None:
            self.session._on_message(self, json.dumps({"id": message["id"], **reply}))

    def emit(self, method, params=None):
        """Deliver a CDP event as if Chrome sent it."""
        self.session._on_message(self, json.dumps({"method": method, "params": params or {}}))

    def methods(self) -> list[str]:
        return [m["method"] for m in self.sent]

    def last(self, method) -> dict:
        for message in reversed(self.sent):
            if message["method"] == method:
                return message.get("params", {})
        raise AssertionError(f"{method} was never sent (sent: {self.methods()})")

    def close(self):
        self.closed = True


class FakeDriver:
    """Minimal Selenium driver double."""

    def __init__(self, debugger_address="localhost:9333", **kwargs):
        self.capabilities = {"goog:chromeOptions": {"debuggerAddress": debugger_address}}
        self.session_id = "fake-session"
        self.kwargs = kwargs
        self.quit_calls = 0
        self.maximized = False
        self.cdp_calls: list[tuple[str, dict]] = []
        self.title = ""
        self.page_source = ""
        self.visited: list[str] = []

    def maximize_window(self):
        self.maximized = True

    def execute_cdp_cmd(self, method, params):
        self.cdp_calls.append((method, params))
        return {}

    def get(self, url):
        self.visited.append(url)

    def find_element(self, by, value):
        raise NoSuchElementException(f"no element {value}")

    def quit(self):
        self.quit_calls += 1


@pytest.fixture
def fast_config():
    """Fast timeouts for unit tests."""
    return HarnessConfig(
        headless=True,
        command_timeout=0.5,
        event_timeout=2.0,
        connect_timeout=0.5,
        poll_interval=0.01,
    )


@pytest.fixture
def cdp():
    """CDPSession wired to a FakeWebSocketApp, dispatcher running."""
    session = CDPSession("ws://localhost:9333/devtools/page/ABCDEF123456", timeout=0.5, event_timeout=2.0)
    session.ws_app = FakeWebSocketApp(session)
    session.connected.set()
    session.dispatcher.start()
    yield session
    session.disconnect()


@pytest.fixture
def ws(cdp) -> FakeWebSocketApp:
    """The fake socket behind the cdp fixture."""
    return cdp.ws_app
