"""Log domain - browser log entries.

PUBLIC API:
  - LogService: Log.* commands and recorded entries
"""

import logging
from typing import TYPE_CHECKING

from devtap.cdp.helpers import build_console_row

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)

ENTRY_ADDED = "Log.entryAdded"


class LogService:
    """Log.* commands. Entries arrive as Log.entryAdded events."""

    def __init__(self, cdp: "CDPSession"):
        self.cdp = cdp

    def enable(self) -> None:
        self.cdp.execute("Log.enable")
        logger.info("Log domain enabled")

    def clear(self) -> None:
        self.cdp.execute("Log.clear")

    def disable(self) -> None:
        self.cdp.execute("Log.disable")

    def entries(self) -> list[dict]:
        """Recorded Log.entryAdded events as rows (level, message, source, url)."""
        return [build_console_row(event) for event in self.cdp.store.events(method=ENTRY_ADDED)]


__all__ = ["LogService", "ENTRY_ADDED"]
