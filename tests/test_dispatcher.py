"""
Tests for EventDispatcher ordering, wildcard delivery and drain.
"""
import threading

import pytest

from devtap.cdp import ANY_EVENT, CDPEvent, EventDispatcher
from devtap.errors import TimingFailure


@pytest.fixture
def dispatcher():
    d = EventDispatcher(name="test-dispatcher")
    d.start()
    yield d
    d.stop()


class TestDelivery:
    """Tests for callback ordering."""

    def test_typed_subscribers_before_wildcard(self, dispatcher):
        order = []
        dispatcher.subscribe(ANY_EVENT, lambda e: order.append("any"))
        dispatcher.subscribe("Log.entryAdded", lambda e: order.append("typed"))

        dispatcher.dispatch(CDPEvent("Log.entryAdded"))
        dispatcher.drain(timeout=1)

        assert order == ["typed", "any"]

    def test_wildcard_sees_every_type(self, dispatcher):
        seen = []
        dispatcher.subscribe(ANY_EVENT, lambda e: seen.append(e.method))

        for method in ["Network.requestWillBeSent", "Log.entryAdded", "Security.securityStateChanged"]:
            dispatcher.dispatch(CDPEvent(method))
        dispatcher.drain(timeout=1)

        assert seen == ["Network.requestWillBeSent", "Log.entryAdded", "Security.securityStateChanged"]

    def test_arrival_order_is_kept(self, dispatcher):
        seen = []
        dispatcher.subscribe("Network.dataReceived", lambda e: seen.append(e.get("n")))

        for n in range(50):
            dispatcher.dispatch(CDPEvent("Network.dataReceived", {"n": n}))
        dispatcher.drain(timeout=2)

        assert seen == list(range(50))

    def test_subscriber_count_and_unsubscribe(self, dispatcher):
        sub = dispatcher.subscribe("Log.entryAdded", lambda e: None)
        dispatcher.subscribe("Log.entryAdded", lambda e: None)

        assert dispatcher.subscriber_count("Log.entryAdded") == 2
        assert dispatcher.unsubscribe(sub)
        assert not dispatcher.unsubscribe(sub)
        assert dispatcher.subscriber_count("Log.entryAdded") == 1


class TestDrain:
    """Tests for waiting on delivery."""

    def test_drain_times_out_on_slow_callback(self, dispatcher):
        release = threading.Event()
        dispatcher.subscribe("Page.loadEventFired", lambda e: release.wait(2))

        dispatcher.dispatch(CDPEvent("Page.loadEventFired"))
        try:
            with pytest.raises(TimingFailure):
                dispatcher.drain(timeout=0.05)
        finally:
            release.set()

        dispatcher.drain(timeout=2)

    def test_drain_from_callback_is_rejected(self, dispatcher):
        errors = []

        def nested(event):
            try:
                dispatcher.drain(timeout=1)
            except RuntimeError as e:
                errors.append(str(e))

        dispatcher.subscribe("Log.entryAdded", nested)
        dispatcher.dispatch(CDPEvent("Log.entryAdded"))
        dispatcher.drain(timeout=1)

        assert errors == ["drain() called from an event callback"]

    def test_drain_with_nothing_pending_returns(self, dispatcher):
        dispatcher.drain(timeout=0.01)

    def test_events_after_stop_are_dropped(self, dispatcher):
        """A stopped dispatcher neither delivers nor waits for late events."""
        seen = []
        dispatcher.subscribe("Network.webSocketClosed", seen.append)
        dispatcher.stop()

        dispatcher.dispatch(CDPEvent("Network.webSocketClosed"))

        dispatcher.drain(timeout=0.1)
        assert seen == []

    def test_events_before_start_are_dropped(self):
        idle = EventDispatcher(name="idle-dispatcher")

        idle.dispatch(CDPEvent("Log.entryAdded"))

        idle.drain(timeout=0.01)


class TestEventModel:
    """Tests for CDPEvent."""

    def test_params_are_read_only(self):
        event = CDPEvent("Network.loadingFailed", {"requestId": "7", "blockedReason": "inspector"})

        with pytest.raises(TypeError):
            event.params["requestId"] = "8"
        assert event.domain == "Network"
        assert event.get("blockedReason") == "inspector"

    def test_round_trip_through_message(self):
        message = {"method": "Log.entryAdded", "params": {"entry": {"text": "hi"}}, "sessionId": "S1"}

        assert CDPEvent.from_message(message).to_message() == message
