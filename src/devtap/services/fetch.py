"""Fetch domain - pause, fulfill, continue or fail requests.

When enabled with a pattern, matching requests pause until the client
answers the Fetch.requestPaused event. Events are recorded in the session's
event store, so paused state is a query away.
"""

import base64
import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)

REQUEST_PAUSED = "Fetch.requestPaused"

type RequestStage = Literal["Request", "Response"]


def request_pattern(url_pattern: str = "*", stage: RequestStage = "Request", resource_type: str | None = None) -> dict:
    """Build a Fetch.RequestPattern."""
    pattern = {"urlPattern": url_pattern, "requestStage": stage}
    if resource_type:
        pattern["resourceType"] = resource_type
    return pattern


class FetchService:
    """Fetch.* commands for request interception."""

    def __init__(self, cdp: "CDPSession"):
        """Initialize fetch service.

        Args:
            cdp: Session to send commands over.
        """
        self.cdp = cdp
        self.enabled = False
        self.patterns: list[dict] = []

    @property
    def paused_count(self) -> int:
        """Count of requests that paused since the session started."""
        result = self.cdp.query(
            """
            SELECT COUNT(DISTINCT json_extract_string(event, '$.params.requestId'))
            FROM events
            WHERE method = ?
            """,
            [REQUEST_PAUSED],
        )
        return result[0][0] if result else 0

    def enable(self, patterns: list[dict] | None = None) -> None:
        """Enable interception; every matching request pauses.

        Calling again with different patterns replaces the active ones.

        Args:
            patterns: Fetch.RequestPattern dicts. Defaults to all requests at request stage.
        """
        patterns = list(patterns or [request_pattern()])
        if self.enabled and patterns == self.patterns:
            logger.debug("Fetch already enabled with these patterns")
            return

        self.cdp.execute("Fetch.enable", {"patterns": patterns})
        action = "updated" if self.enabled else "enabled"
        self.enabled = True
        self.patterns = patterns
        logger.info(f"Fetch interception {action}: {len(patterns)} pattern(s)")

    def disable(self) -> None:
        if not self.enabled:
            return
        self.cdp.execute("Fetch.disable")
        self.enabled = False
        self.patterns = []
        logger.info("Fetch interception disabled")

    def continue_request(self, request_id: str, modifications: dict | None = None) -> None:
        """Let a paused request through, optionally rewriting url, method, headers or postData."""
        params = {"requestId": request_id}
        if modifications:
            params.update(modifications)
        self.cdp.execute("Fetch.continueRequest", params)

    def continue_response(self, request_id: str, modifications: dict | None = None) -> None:
        """Let a paused response through, optionally rewriting responseCode or responseHeaders."""
        params = {"requestId": request_id}
        if modifications:
            params.update(modifications)
        self.cdp.execute("Fetch.continueResponse", params)

    def fulfill_request(
        self,
        request_id: str,
        status: int = 200,
        headers: dict[str, str] | None = None,
        body: str | bytes = b"",
        reason: str | None = None,
    ) -> None:
        """Answer a paused request with a synthetic response. The network is never hit."""
        raw = body.encode("utf-8") if isinstance(body, str) else body
        params = {
            "requestId": request_id,
            "responseCode": status,
            "responseHeaders": [{"name": k, "value": v} for k, v in (headers or {}).items()],
            "body": base64.b64encode(raw).decode("ascii"),
        }
        if reason:
            params["responsePhrase"] = reason
        self.cdp.execute("Fetch.fulfillRequest", params)

    def fail_request(self, request_id: str, reason: str = "BlockedByClient") -> None:
        """Fail a paused request with a Network.ErrorReason."""
        self.cdp.execute("Fetch.failRequest", {"requestId": request_id, "errorReason": reason})


__all__ = ["FetchService", "request_pattern", "REQUEST_PAUSED"]
