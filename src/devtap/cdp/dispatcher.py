"""Ordered event delivery off the WebSocket thread.

PUBLIC API:
  - EventDispatcher: Per-session subscriber table and delivery thread
  - Subscription: Handle returned by subscribe()
  - ANY_EVENT: Wildcard event type
"""

import itertools
import logging
import queue
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable

from devtap.cdp.models import CDPEvent
from devtap.errors import TimingFailure

logger = logging.getLogger(__name__)

ANY_EVENT = "*"

EventCallback = Callable[[CDPEvent], None]

_STOP = object()


@dataclass(frozen=True)
class Subscription:
    """Registration of one callback for one event type."""

    id: int
    event_type: str
    callback: EventCallback


class EventDispatcher:
    """Delivers events to subscribers in arrival order on a single thread.

    The WebSocket reader only enqueues, so callbacks are free to send CDP
    commands and block on their responses. Typed subscribers run in
    registration order, then wildcard subscribers.
    """

    def __init__(self, name: str = "cdp-events"):
        """Initialize dispatcher.

        Args:
            name: Thread name for the delivery thread.
        """
        self.name = name
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None

        # Events enqueued but not yet fully delivered
        self._in_flight = 0
        self._idle = threading.Condition()
        self._accepting = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self, event_type: str, callback: EventCallback) -> Subscription:
        """Register callback for every event of event_type.

        Args:
            event_type: CDP event name, or ANY_EVENT for all events.
            callback: Called with the CDPEvent.

        Returns:
            Subscription handle for unsubscribe().
        """
        with self._lock:
            sub = Subscription(id=next(self._ids), event_type=event_type, callback=callback)
            self._subscribers[event_type].append(sub)
        logger.debug(f"Subscribed #{sub.id} to {event_type}")
        return sub

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        with self._lock:
            subs = self._subscribers.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)
                return True
        return False

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def start(self) -> None:
        """Start the delivery thread. No-op if already running."""
        if self.is_running:
            return
        with self._idle:
            self._accepting = True
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2) -> None:
        """Stop after delivering what is already queued."""
        thread = self._thread
        if not thread:
            return
        with self._idle:
            self._accepting = False
            self._queue.put(_STOP)
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Dispatcher {self.name} did not stop within {timeout}s")
        self._thread = None

    def dispatch(self, event: CDPEvent) -> None:
        """Queue event for delivery. Safe to call from any thread.

        Events arriving while the dispatcher is not running are dropped.
        """
        with self._idle:
            if not self._accepting:
                logger.debug(f"Dropped {event.method}: dispatcher {self.name} is not running")
                return
            self._in_flight += 1
            self._queue.put(event)

    def drain(self, timeout: float) -> None:
        """Block until every event dispatched so far has been delivered.

        Args:
            timeout: Seconds to wait.

        Raises:
            RuntimeError: If called from a callback (would wait on itself).
            TimingFailure: If delivery did not finish in time.
        """
        if self._thread is threading.current_thread():
            raise RuntimeError("drain() called from an event callback")

        with self._idle:
            if not self._idle.wait_for(lambda: self._in_flight == 0, timeout=timeout):
                raise TimingFailure(f"{self._in_flight} pending event(s) to be delivered", timeout)

    def _callbacks_for(self, event: CDPEvent) -> list[Subscription]:
        with self._lock:
            return list(self._subscribers.get(event.method, [])) + list(self._subscribers.get(ANY_EVENT, []))

    def deliver(self, event: CDPEvent) -> None:
        """Run every matching callback for event on the calling thread.

        A failing callback is logged and does not stop the others.
        """
        for sub in self._callbacks_for(event):
            try:
                sub.callback(event)
            except Exception as e:
                logger.error(f"Callback #{sub.id} for {event.method} failed: {e!r}")

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                self.deliver(item)
            finally:
                with self._idle:
                    self._in_flight -= 1
                    self._idle.notify_all()


__all__ = ["EventDispatcher", "Subscription", "ANY_EVENT", "EventCallback"]
