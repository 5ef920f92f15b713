"""Synchronization between event callbacks and the test flow.

Callbacks run on the dispatcher thread. Anything they write for the test
to read goes through one of these containers.

PUBLIC API:
  - Collector: Lock-guarded list that callbacks append to
  - EventExpectation: Future resolved by the first matching event
  - wait_until: Poll a condition with a bound
"""

import logging
import threading
import time
from concurrent.futures import Future, InvalidStateError
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from devtap.errors import TimingFailure

if TYPE_CHECKING:
    from devtap.cdp.models import CDPEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Collector(Generic[T]):
    """Thread-safe accumulation of values produced in callbacks.

    Usable directly as an event callback: calling it appends the argument.
    """

    def __init__(self, name: str = "values"):
        self.name = name
        self._items: list[T] = []
        self._cond = threading.Condition()

    def __call__(self, item: T) -> None:
        self.append(item)

    def append(self, item: T) -> None:
        with self._cond:
            self._items.append(item)
            self._cond.notify_all()

    def items(self) -> list[T]:
        """Snapshot copy, safe to iterate from any thread."""
        with self._cond:
            return list(self._items)

    def clear(self) -> None:
        with self._cond:
            self._items.clear()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def wait_for_count(self, count: int, timeout: float) -> list[T]:
        """Block until at least count items were collected.

        Returns:
            Snapshot of collected items.

        Raises:
            TimingFailure: If fewer than count arrived in time.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: len(self._items) >= count, timeout=timeout):
                raise TimingFailure(f"{count} {self.name} (got {len(self._items)})", timeout)
            return list(self._items)


class EventExpectation:
    """Resolves with the first event accepted by predicate.

    Subscribe it as a callback before triggering the action, then call
    result() from the test flow.
    """

    def __init__(self, event_type: str, predicate: Callable[["CDPEvent"], bool] | None = None):
        self.event_type = event_type
        self.predicate = predicate
        self._future: Future = Future()

    def __call__(self, event: "CDPEvent") -> None:
        if self._future.done():
            return
        if self.predicate and not self.predicate(event):
            return
        try:
            self._future.set_result(event)
        except InvalidStateError:
            # Another thread resolved it first
            logger.debug(f"Expectation for {self.event_type} already resolved")

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float) -> "CDPEvent":
        """Wait for the matching event.

        Raises:
            TimingFailure: If no matching event arrived within timeout.
        """
        try:
            return self._future.result(timeout=timeout)
        except TimeoutError:
            raise TimingFailure(f"event {self.event_type}", timeout) from None


def wait_until(
    condition: Callable[[], T],
    timeout: float,
    interval: float = 0.1,
    description: str = "condition",
) -> T:
    """Poll condition until it returns a truthy value.

    Args:
        condition: Zero-argument callable.
        timeout: Seconds before giving up.
        interval: Sleep between polls.
        description: Used in the TimingFailure message.

    Returns:
        The first truthy value returned by condition.

    Raises:
        TimingFailure: If condition stayed falsy for timeout seconds.
    """
    deadline = time.monotonic() + timeout
    while True:
        value = condition()
        if value:
            return value
        if time.monotonic() >= deadline:
            raise TimingFailure(description, timeout)
        time.sleep(interval)


__all__ = ["Collector", "EventExpectation", "wait_until"]
