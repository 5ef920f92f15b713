"""
Tests for callback/test-flow synchronization primitives.
"""
import threading
import time

import pytest

from devtap.cdp import CDPEvent
from devtap.errors import TimingFailure
from devtap.waiting import Collector, EventExpectation, wait_until


class TestCollector:

    def test_wait_for_count_across_threads(self):
        collector: Collector[int] = Collector(name="frames")

        def producer():
            for n in range(3):
                time.sleep(0.01)
                collector(n)

        threading.Thread(target=producer).start()

        assert collector.wait_for_count(3, timeout=2) == [0, 1, 2]

    def test_wait_for_count_times_out(self):
        collector: Collector[int] = Collector(name="frames")
        collector.append(1)

        with pytest.raises(TimingFailure, match="2 frames \\(got 1\\)"):
            collector.wait_for_count(2, timeout=0.05)

    def test_items_is_a_snapshot(self):
        collector: Collector[str] = Collector()
        collector.append("a")
        snapshot = collector.items()
        collector.append("b")

        assert snapshot == ["a"]
        assert len(collector) == 2

        collector.clear()
        assert len(collector) == 0


class TestEventExpectation:

    def test_ignores_non_matching_then_resolves(self):
        expectation = EventExpectation("Network.responseReceived", lambda e: e.get("status") == 200)

        expectation(CDPEvent("Network.responseReceived", {"status": 404}))
        assert not expectation.done()

        expectation(CDPEvent("Network.responseReceived", {"status": 200}))
        expectation(CDPEvent("Network.responseReceived", {"status": 200, "late": True}))

        assert expectation.result(timeout=0).get("late") is None


class TestWaitUntil:

    def test_returns_first_truthy_value(self):
        values = iter([None, [], ["cookie"]])

        assert wait_until(lambda: next(values), timeout=1, interval=0.001) == ["cookie"]

    def test_raises_timing_failure(self):
        with pytest.raises(TimingFailure) as exc_info:
            wait_until(lambda: False, timeout=0.05, interval=0.01, description="title change")

        assert exc_info.value.description == "title change"
        assert exc_info.value.timeout == 0.05
