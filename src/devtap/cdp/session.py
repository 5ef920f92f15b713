"""CDP session bound to one page - connection, commands and event subscriptions.

WebSocketApp handles the WebSocket, we handle CDP protocol. Events are
recorded in an EventStore and handed to an EventDispatcher, which runs
subscriber callbacks off the WebSocket thread.

PUBLIC API:
  - CDPSession: Page-level CDP client
"""

import json
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable

import websocket

from devtap.cdp.dispatcher import EventCallback, EventDispatcher, Subscription
from devtap.cdp.models import CDPEvent
from devtap.cdp.store import EventStore
from devtap.errors import ProtocolError, SetupError, TimingFailure
from devtap.waiting import Collector, EventExpectation

__all__ = ["CDPSession"]

logger = logging.getLogger(__name__)


class CDPSession:
    """CDP client for a single page target.

    Commands are synchronous from the caller's point of view (execute), events
    are delivered asynchronously to subscribers in arrival order.

    Attributes:
        ws_url: Page WebSocket debugger URL.
        timeout: Default timeout for execute().
        event_timeout: Default bound for drain() and event waits.
        store: Every observed event, queryable with SQL.
    """

    def __init__(
        self,
        ws_url: str,
        timeout: float = 30,
        event_timeout: float = 10,
        connect_timeout: float = 5,
    ):
        """Initialize CDP session.

        Args:
            ws_url: Page WebSocket debugger URL.
            timeout: Default timeout for execute().
            event_timeout: Default bound for drain().
            connect_timeout: Seconds to wait for the socket to open.
        """
        self.ws_url = ws_url
        self.timeout = timeout
        self.event_timeout = event_timeout
        self.connect_timeout = connect_timeout

        # WebSocketApp instance
        self.ws_app: websocket.WebSocketApp | None = None
        self.ws_thread: threading.Thread | None = None

        # Connection state
        self.connected = threading.Event()
        self.closed = False

        # CDP request/response tracking
        self._next_id = 1
        self._pending: dict[int, tuple[str, Future]] = {}
        self._lock = threading.Lock()

        self.store = EventStore()
        self.dispatcher = EventDispatcher(name=f"cdp-events-{ws_url.rsplit('/', 1)[-1][:8]}")

    @property
    def is_connected(self) -> bool:
        return self.connected.is_set()

    def connect(self) -> None:
        """Open the WebSocket and start event delivery.

        Raises:
            SetupError: If already connected or the socket does not open in time.
        """
        if self.ws_app:
            raise SetupError("CDP session already connected")
        if self.closed:
            raise SetupError("CDP session was closed and cannot be reused")

        self.dispatcher.start()

        # Create WebSocketApp with callbacks
        self.ws_app = websocket.WebSocketApp(
            self.ws_url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )

        # Let WebSocketApp handle everything in a thread
        self.ws_thread = threading.Thread(
            target=self.ws_app.run_forever,
            kwargs={
                "ping_interval": 30,
                "ping_timeout": 10,
                "skip_utf8_validation": True,
                "suppress_origin": True,
            },
            name="cdp-websocket",
        )
        self.ws_thread.daemon = True
        self.ws_thread.start()

        # Wait for connection
        if not self.connected.wait(timeout=self.connect_timeout):
            self.disconnect()
            raise SetupError(f"Failed to connect to {self.ws_url} within {self.connect_timeout}s")

    def disconnect(self) -> None:
        """Close the socket, fail pending commands, stop delivery. Idempotent."""
        with self._lock:
            ws_app = self.ws_app
            self.ws_app = None

        if ws_app:
            ws_app.close()

        if self.ws_thread and self.ws_thread.is_alive() and self.ws_thread is not threading.current_thread():
            self.ws_thread.join(timeout=2)
        self.ws_thread = None

        self.connected.clear()
        self._fail_pending("Session closed")
        self.dispatcher.stop()

        if not self.closed:
            self.closed = True
            self.store.close()
            logger.info(f"CDP session closed: {self.ws_url}")

    def send(self, method: str, params: dict | None = None) -> Future:
        """Send CDP command asynchronously.

        Returns a Future. Call future.result(timeout) to get response.

        Args:
            method: CDP method (e.g. "Network.enable")
            params: Optional parameters

        Returns:
            Future that will contain the 'result' field from CDP response

        Raises:
            ProtocolError: If the session is not connected.
        """
        ws_app = self.ws_app
        if not ws_app:
            raise ProtocolError(method, "Session is not connected")

        with self._lock:
            msg_id = self._next_id
            self._next_id += 1

            future = Future()
            self._pending[msg_id] = (method, future)

        # Send CDP command
        message = {"id": msg_id, "method": method}
        if params:
            message["params"] = params

        try:
            ws_app.send(json.dumps(message))
        except websocket.WebSocketException as e:
            with self._lock:
                self._pending.pop(msg_id, None)
            raise ProtocolError(method, f"Send failed: {e}") from e

        logger.debug(f"-> {method} #{msg_id}")
        return future

    def execute(self, method: str, params: dict | None = None, timeout: float | None = None) -> dict[str, Any]:
        """Send CDP command synchronously.

        Blocks until response received or timeout.

        Args:
            method: CDP method (e.g. "Network.enable")
            params: Optional parameters
            timeout: Override default timeout

        Returns:
            The 'result' field from CDP response

        Raises:
            ProtocolError: On an error response or a closed session.
            TimingFailure: If no response arrived in time.
        """
        future = self.send(method, params)
        timeout = timeout or self.timeout

        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            # Clean up the pending future
            with self._lock:
                for msg_id, (_, f) in list(self._pending.items()):
                    if f is future:
                        self._pending.pop(msg_id, None)
                        break
            raise TimingFailure(f"response to {method}", timeout) from None

    def subscribe(self, event_type: str, callback: EventCallback) -> Subscription:
        """Register callback for every event of event_type.

        Callbacks for the same type run in registration order, on the
        dispatcher thread. Subscribing never blocks.
        """
        return self.dispatcher.subscribe(event_type, callback)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self.dispatcher.unsubscribe(subscription)

    def expect(self, event_type: str, predicate: Callable[[CDPEvent], bool] | None = None) -> EventExpectation:
        """Subscribe an EventExpectation. Call before triggering the action."""
        expectation = EventExpectation(event_type, predicate)
        self.subscribe(event_type, expectation)
        return expectation

    def collect(self, event_type: str) -> Collector[CDPEvent]:
        """Subscribe a Collector gathering every event of event_type."""
        collector: Collector[CDPEvent] = Collector(name=event_type)
        self.subscribe(event_type, collector)
        return collector

    def drain(self, timeout: float | None = None) -> None:
        """Wait until every event received so far has reached its callbacks."""
        self.dispatcher.drain(timeout or self.event_timeout)

    def query(self, sql: str, params: list | None = None) -> list[tuple]:
        """Query recorded events. See EventStore.query()."""
        return self.store.query(sql, params)

    def _fail_pending(self, reason: str) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for method, future in pending:
            if not future.done():
                future.set_exception(ProtocolError(method, reason))

    def _on_open(self, ws):
        """WebSocket opened."""
        logger.info(f"CDP session connected: {self.ws_url}")
        self.connected.set()

    def _on_message(self, ws, message):
        """Handle CDP message - resolve futures, record and dispatch events."""
        try:
            data = json.loads(message)

            # Command response - resolve future
            if "id" in data:
                with self._lock:
                    entry = self._pending.pop(data["id"], None)

                if entry:
                    method, future = entry
                    if "error" in data:
                        future.set_exception(ProtocolError.from_response(method, data["error"]))
                    else:
                        future.set_result(data.get("result", {}))

            # CDP event - record AS-IS, then hand to dispatcher
            elif "method" in data:
                event = CDPEvent.from_message(data)
                self.store.add(event)
                self.dispatcher.dispatch(event)

        except Exception as e:
            logger.error(f"Error handling message: {e}")

    def _on_error(self, ws, error):
        """WebSocket error."""
        logger.error(f"WebSocket error: {error}")

    def _on_close(self, ws, code, reason):
        """WebSocket closed."""
        logger.info(f"WebSocket closed: {code} {reason}")
        self.connected.clear()

        # Fail pending commands
        self._fail_pending(f"Connection closed: {reason or 'Unknown'}")
