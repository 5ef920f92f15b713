"""
Tests for CDPSession command dispatch and event subscription.

Run with: pytest tests/test_session.py -v
"""
import threading

import pytest

from devtap.cdp import CDPSession
from devtap.errors import ProtocolError, SetupError, TimingFailure


# =============================================================================
# Command Dispatch
# =============================================================================

class TestExecute:
    """Tests for synchronous command dispatch."""

    def test_execute_returns_result(self, cdp, ws):
        """execute() returns the 'result' field of the response."""
        ws.responder = lambda method, params: {"result": {"cookies": [{"name": "sid"}]}}

        result = cdp.execute("Network.getAllCookies")

        assert result == {"cookies": [{"name": "sid"}]}

    def test_message_shape(self, cdp, ws):
        """Ids increase per command and params are omitted when empty."""
        cdp.execute("Network.enable")
        cdp.execute("Network.setCacheDisabled", {"cacheDisabled": True})

        assert ws.sent[0] == {"id": 1, "method": "Network.enable"}
        assert ws.sent[1] == {"id": 2, "method": "Network.setCacheDisabled", "params": {"cacheDisabled": True}}

    def test_error_response_raises_protocol_error(self, cdp, ws):
        """An error payload surfaces as ProtocolError with method and code."""
        ws.responder = lambda method, params: {"error": {"code": -32601, "message": "'Nope.nope' wasn't found"}}

        with pytest.raises(ProtocolError) as exc_info:
            cdp.execute("Nope.nope")

        assert exc_info.value.method == "Nope.nope"
        assert exc_info.value.code == -32601
        assert "wasn't found" in str(exc_info.value)

    def test_unanswered_command_times_out(self, cdp, ws):
        """No response within the timeout raises TimingFailure and forgets the command."""
        ws.responder = lambda method, params: None

        with pytest.raises(TimingFailure):
            cdp.execute("Page.navigate", {"url": "https://example.com"}, timeout=0.05)

        assert cdp._pending == {}

    def test_send_when_not_connected(self):
        """Commands on a session that never connected fail immediately."""
        session = CDPSession("ws://localhost:1/devtools/page/X")

        with pytest.raises(ProtocolError, match="not connected"):
            session.send("Network.enable")

    def test_disconnect_fails_pending_commands(self, cdp, ws):
        """Commands in flight fail with ProtocolError when the session closes."""
        ws.responder = lambda method, params: None
        future = cdp.send("Performance.getMetrics")

        cdp.disconnect()

        with pytest.raises(ProtocolError, match="Session closed"):
            future.result(timeout=1)

    def test_socket_close_fails_pending_commands(self, cdp, ws):
        """An unexpected close fails pending commands too."""
        ws.responder = lambda method, params: None
        future = cdp.send("Log.enable")

        cdp._on_close(ws, 1006, "abnormal")

        assert not cdp.is_connected
        with pytest.raises(ProtocolError, match="abnormal"):
            future.result(timeout=1)

    def test_connect_twice_rejected(self, cdp):
        """A connected session cannot connect again."""
        with pytest.raises(SetupError):
            cdp.connect()

    def test_closed_session_cannot_reconnect(self, cdp):
        cdp.disconnect()

        with pytest.raises(SetupError, match="closed"):
            cdp.connect()


# =============================================================================
# Event Subscription
# =============================================================================

class TestSubscribe:
    """Tests for event delivery to subscribers."""

    def test_callbacks_run_in_registration_order(self, cdp, ws):
        """Subscribers of one type see each event in the order they registered."""
        calls = []
        lock = threading.Lock()

        def recorder(name):
            def callback(event):
                with lock:
                    calls.append((name, event.get("requestId")))
            return callback

        cdp.subscribe("Network.loadingFailed", recorder("first"))
        cdp.subscribe("Network.loadingFailed", recorder("second"))

        ws.emit("Network.loadingFailed", {"requestId": "1"})
        ws.emit("Network.loadingFailed", {"requestId": "2"})
        cdp.drain()

        assert calls == [("first", "1"), ("second", "1"), ("first", "2"), ("second", "2")]

    def test_callbacks_only_see_their_type(self, cdp, ws):
        """A subscriber never receives events of another type."""
        seen = cdp.collect("Log.entryAdded")

        ws.emit("Network.requestWillBeSent", {"requestId": "1"})
        ws.emit("Log.entryAdded", {"entry": {"text": "hello", "level": "info"}})
        cdp.drain()

        assert [e.method for e in seen.items()] == ["Log.entryAdded"]

    def test_callbacks_run_off_the_socket_thread(self, cdp, ws):
        """Callbacks run on the dispatcher thread, not the caller's."""
        threads = cdp.collect("Page.loadEventFired")
        names = []
        cdp.subscribe("Page.loadEventFired", lambda event: names.append(threading.current_thread().name))

        ws.emit("Page.loadEventFired", {"timestamp": 1.0})
        cdp.drain()

        assert len(threads) == 1
        assert names == [cdp.dispatcher.name]

    def test_callback_may_send_commands(self, cdp, ws):
        """A callback can call execute() without blocking event delivery."""
        results = cdp.collect("Fetch.requestPaused")

        def continue_it(event):
            cdp.execute("Fetch.continueRequest", {"requestId": event.get("requestId")})

        cdp.subscribe("Fetch.requestPaused", continue_it)

        ws.emit("Fetch.requestPaused", {"requestId": "interception-1", "request": {"url": "https://a.test/"}})
        cdp.drain()

        assert len(results) == 1
        assert ws.last("Fetch.continueRequest") == {"requestId": "interception-1"}

    def test_failing_callback_does_not_stop_others(self, cdp, ws):
        """An exception in one callback is logged; later callbacks still run."""
        def broken(event):
            raise ValueError("boom")

        cdp.subscribe("Network.responseReceived", broken)
        survivors = cdp.collect("Network.responseReceived")

        ws.emit("Network.responseReceived", {"requestId": "1"})
        ws.emit("Network.responseReceived", {"requestId": "2"})
        cdp.drain()

        assert len(survivors) == 2

    def test_events_are_recorded(self, cdp, ws):
        """Every event lands in the event store, even without subscribers."""
        ws.emit("Network.requestWillBeSent", {"requestId": "1", "request": {"url": "https://a.test/"}})
        ws.emit("Network.loadingFinished", {"requestId": "1", "encodedDataLength": 10})

        assert cdp.store.count() == 2
        assert cdp.store.count("Network.loadingFinished") == 1

    def test_unsubscribe(self, cdp, ws):
        seen = []
        sub = cdp.subscribe("Log.entryAdded", seen.append)

        assert cdp.unsubscribe(sub)
        ws.emit("Log.entryAdded", {"entry": {}})
        cdp.drain()

        assert seen == []


# =============================================================================
# Expectations
# =============================================================================

class TestExpect:
    """Tests for future-per-event waits."""

    def test_expectation_resolves_with_first_match(self, cdp, ws):
        expectation = cdp.expect("Network.responseReceived", lambda e: "api" in e.get("response", {}).get("url", ""))

        ws.emit("Network.responseReceived", {"requestId": "1", "response": {"url": "https://site.test/"}})
        ws.emit("Network.responseReceived", {"requestId": "2", "response": {"url": "https://api.site.test/v1"}})
        ws.emit("Network.responseReceived", {"requestId": "3", "response": {"url": "https://api.site.test/v2"}})

        event = expectation.result(timeout=1)

        assert event.get("requestId") == "2"

    def test_expectation_times_out(self, cdp):
        expectation = cdp.expect("Network.webSocketCreated")

        with pytest.raises(TimingFailure, match="Network.webSocketCreated"):
            expectation.result(timeout=0.05)

    def test_events_after_delivery_stopped_are_still_recorded(self, cdp, ws):
        """Late events land in the store but never block drain()."""
        cdp.dispatcher.stop()

        ws.emit("Network.webSocketClosed", {"requestId": "9", "timestamp": 2.0})

        cdp.drain(timeout=0.3)
        assert cdp.store.count("Network.webSocketClosed") == 1
