"""DuckDB recorder for observed CDP events.

Events are stored AS-IS as JSON and queried on demand.

PUBLIC API:
  - EventStore: Thread-safe in-memory event table
"""

import json
import logging
import threading
from typing import Any

import duckdb

from devtap.cdp.models import CDPEvent

logger = logging.getLogger(__name__)


class EventStore:
    """In-memory table of every event one session observed.

    Schema: events(id INTEGER, method VARCHAR, event JSON). The id follows
    arrival order. Written from the WebSocket thread, read from the test.
    """

    def __init__(self):
        """Initialize store with an in-memory DuckDB database."""
        self._db = duckdb.connect(":memory:")
        self._db.execute("CREATE TABLE events (id INTEGER, method VARCHAR, event JSON)")
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, event: CDPEvent) -> int:
        """Record event. Returns its id."""
        payload = json.dumps(event.to_message())
        with self._lock:
            row_id = self._next_id
            self._next_id += 1
            self._db.execute("INSERT INTO events VALUES (?, ?, ?)", [row_id, event.method, payload])
        return row_id

    def query(self, sql: str, params: list | None = None) -> list[tuple]:
        """Run SQL against the events table.

        Args:
            sql: Query text; use json_extract_string(event, '$.params...') for fields.
            params: Positional parameters.

        Returns:
            Result rows.
        """
        with self._lock:
            return self._db.execute(sql, params or []).fetchall()

    def count(self, method: str | None = None) -> int:
        """Count recorded events, optionally of one method."""
        if method is None:
            rows = self.query("SELECT COUNT(*) FROM events")
        else:
            rows = self.query("SELECT COUNT(*) FROM events WHERE method = ?", [method])
        return rows[0][0] if rows else 0

    def events(self, method: str | None = None, prefix: str | None = None) -> list[dict[str, Any]]:
        """Recorded events as CDP message dicts, oldest first.

        Args:
            method: Exact event name filter.
            prefix: Method prefix filter, e.g. "Network.".
        """
        sql = "SELECT event FROM events"
        conditions, params = [], []
        if method is not None:
            conditions.append("method = ?")
            params.append(method)
        if prefix is not None:
            conditions.append("starts_with(method, ?)")
            params.append(prefix)
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY id"

        return [json.loads(row[0]) for row in self.query(sql, params)]

    def clear(self) -> None:
        with self._lock:
            self._db.execute("DELETE FROM events")

    def close(self) -> None:
        with self._lock:
            try:
                self._db.close()
            except duckdb.Error as e:
                logger.debug(f"Error closing event store: {e}")


__all__ = ["EventStore"]
