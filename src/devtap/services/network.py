"""Network domain commands and recorded request queries.

PUBLIC API:
  - NetworkService: Network.* commands over a CDP session
"""

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from devtap.cdp.helpers import build_network_row, group_by_request

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseBody:
    """Body returned by Network.getResponseBody, decoded."""

    body: str
    base64_encoded: bool
    raw: bytes


def validate_block_patterns(patterns: list[str]) -> list[str]:
    """Check block-list patterns before handing them to Chrome.

    Network.setBlockedURLs matches literal URLs and simple globs. Only a
    terminating '*' (or a lone '*') is accepted here.

    Raises:
        ValueError: On an empty pattern or an interior '*'.
    """
    for pattern in patterns:
        if not pattern:
            raise ValueError("Empty block pattern")
        if "*" in pattern[:-1]:
            raise ValueError(f"Block pattern {pattern!r}: '*' is only supported as the last character")
    return list(patterns)


class NetworkService:
    """Network.* commands and views over recorded Network events."""

    def __init__(self, cdp: "CDPSession"):
        """Initialize network service.

        Args:
            cdp: Session to send commands over.
        """
        self.cdp = cdp
        self.enabled = False

    def enable(
        self,
        max_total_buffer_size: int | None = None,
        max_resource_buffer_size: int | None = None,
        max_post_data_size: int | None = None,
    ) -> None:
        """Enable network tracking; Network events are delivered from now on."""
        params = {}
        if max_total_buffer_size is not None:
            params["maxTotalBufferSize"] = max_total_buffer_size
        if max_resource_buffer_size is not None:
            params["maxResourceBufferSize"] = max_resource_buffer_size
        if max_post_data_size is not None:
            params["maxPostDataSize"] = max_post_data_size

        self.cdp.execute("Network.enable", params)
        self.enabled = True
        logger.info("Network tracking enabled")

    def disable(self) -> None:
        self.cdp.execute("Network.disable")
        self.enabled = False

    def set_blocked_urls(self, patterns: list[str]) -> None:
        """Replace the block list. Requests matching an entry fail with blockedReason 'inspector'."""
        self.cdp.execute("Network.setBlockedURLs", {"urls": validate_block_patterns(patterns)})
        logger.info(f"Blocking {len(patterns)} URL pattern(s)")

    def set_cache_disabled(self, disabled: bool = True) -> None:
        self.cdp.execute("Network.setCacheDisabled", {"cacheDisabled": disabled})

    def clear_browser_cache(self) -> None:
        self.cdp.execute("Network.clearBrowserCache")

    def clear_browser_cookies(self) -> None:
        self.cdp.execute("Network.clearBrowserCookies")

    def get_all_cookies(self) -> list[dict]:
        """All browser cookies, as CDP Cookie dicts."""
        # Network.getAllCookies is deprecated in favour of Storage.getCookies but still served
        result = self.cdp.execute("Network.getAllCookies")
        return result.get("cookies", [])

    def get_response_body(self, request_id: str) -> ResponseBody:
        """Fetch and decode the body of a finished response.

        Args:
            request_id: requestId from a Network event.
        """
        result = self.cdp.execute("Network.getResponseBody", {"requestId": request_id})
        body = result.get("body", "")
        encoded = result.get("base64Encoded", False)

        if encoded:
            raw = base64.b64decode(body)
            text = raw.decode("utf-8", errors="replace")
        else:
            raw = body.encode("utf-8")
            text = body

        return ResponseBody(body=text, base64_encoded=encoded, raw=raw)

    def requests(self) -> list[dict]:
        """Recorded requests as flat rows, in order of first event."""
        grouped = group_by_request(self.cdp.store.events(prefix="Network."))
        return [build_network_row(request_id, events) for request_id, events in grouped.items()]

    def failed_requests(self) -> list[dict]:
        """Recorded requests that ended in Network.loadingFailed."""
        return [row for row in self.requests() if row["failed"]]


__all__ = ["NetworkService", "ResponseBody", "validate_block_patterns"]
