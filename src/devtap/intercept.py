"""Request interception policy - allow, rewrite or block per request.

A policy is an ordered list of routes plus a default action. The first
route whose matcher accepts the URL decides: answer with its synthetic
response, or continue unmodified when it has none. Unmatched requests get
the default action.

PUBLIC API:
  - RequestMatcher: Exact URL, glob or match-all
  - SyntheticResponse: Status, headers and body to answer with
  - Route: Matcher plus optional synthetic response
  - Action: What happened to a request
  - InterceptionPolicy: Routes plus default action
  - InterceptedRequest: Record of one decision
  - NetworkInterceptor: Applies a policy to a CDP session via Fetch
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from devtap.cdp.models import CDPEvent
from devtap.services.fetch import REQUEST_PAUSED, FetchService, request_pattern
from devtap.waiting import Collector

if TYPE_CHECKING:
    from devtap.cdp import CDPSession, Subscription

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    EXACT = "exact"
    GLOB = "glob"
    ALL = "all"


@dataclass(frozen=True)
class RequestMatcher:
    """Decides whether a request URL belongs to a route.

    Globs match the whole URL; '*' matches any run of characters and every
    other character is literal.
    """

    kind: MatchKind
    value: str = ""

    @classmethod
    def exact(cls, url: str) -> "RequestMatcher":
        return cls(MatchKind.EXACT, url)

    @classmethod
    def glob(cls, pattern: str) -> "RequestMatcher":
        return cls(MatchKind.GLOB, pattern)

    @classmethod
    def all(cls) -> "RequestMatcher":
        return cls(MatchKind.ALL)

    def matches(self, url: str) -> bool:
        if self.kind is MatchKind.ALL:
            return True
        if self.kind is MatchKind.EXACT:
            return url == self.value
        return _glob_regex(self.value).fullmatch(url) is not None


def _glob_regex(pattern: str) -> re.Pattern:
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.DOTALL)


@dataclass(frozen=True)
class SyntheticResponse:
    """Response served instead of going to the network."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: str | bytes = ""
    reason: str | None = None


@dataclass(frozen=True)
class Route:
    """Matcher plus what to do with matched requests.

    Attributes:
        matcher: Which requests this route takes.
        response: Synthetic answer, or None to continue unmodified.
    """

    matcher: RequestMatcher
    response: SyntheticResponse | None = None


class Action(str, Enum):
    FULFILL = "fulfill"
    CONTINUE = "continue"
    BLOCK = "block"


@dataclass(frozen=True)
class Decision:
    action: Action
    route: Route | None = None


class InterceptionPolicy:
    """Ordered routes plus the action for requests no route matches."""

    def __init__(
        self,
        routes: list[Route] | None = None,
        default: Action = Action.CONTINUE,
        block_reason: str = "BlockedByClient",
    ):
        """Initialize policy.

        Args:
            routes: Routes tried in order, first match wins.
            default: Action.CONTINUE or Action.BLOCK for unmatched requests.
            block_reason: Network.ErrorReason used when blocking.
        """
        if default is Action.FULFILL:
            raise ValueError("Default action must be CONTINUE or BLOCK")
        self.routes = list(routes or [])
        self.default = default
        self.block_reason = block_reason

    @classmethod
    def respond_to_all(cls, response: SyntheticResponse) -> "InterceptionPolicy":
        """Answer every request with the same synthetic response."""
        return cls([Route(RequestMatcher.all(), response)])

    @classmethod
    def allow_only(cls, *globs: str) -> "InterceptionPolicy":
        """Continue requests matching any glob, block the rest."""
        return cls([Route(RequestMatcher.glob(g)) for g in globs], default=Action.BLOCK)

    def decide(self, url: str) -> Decision:
        for route in self.routes:
            if route.matcher.matches(url):
                action = Action.FULFILL if route.response is not None else Action.CONTINUE
                return Decision(action, route)
        return Decision(self.default)


@dataclass(frozen=True)
class InterceptedRequest:
    """What the interceptor did with one paused request."""

    request_id: str
    url: str
    method: str
    resource_type: str | None
    action: Action
    error: str | None = None


class NetworkInterceptor:
    """Applies an InterceptionPolicy to every request of a CDP session.

    Use as a context manager around the navigation:

        with NetworkInterceptor(cdp, policy) as interceptor:
            driver.get(url)
        interceptor.handled.items()
    """

    def __init__(self, cdp: "CDPSession", policy: InterceptionPolicy, fetch: FetchService | None = None):
        """Initialize interceptor.

        Args:
            cdp: Session whose requests to intercept.
            policy: Decides per request.
            fetch: Fetch service to use, a new one over cdp by default.
        """
        self.cdp = cdp
        self.policy = policy
        self.fetch = fetch or FetchService(cdp)
        self.handled: Collector[InterceptedRequest] = Collector(name="intercepted requests")
        self._subscription: "Subscription | None" = None
        self._previous_patterns: list[dict] | None = None

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        """Subscribe to paused requests, then enable Fetch for every URL.

        Patterns already enabled on the Fetch service are replaced until stop().
        """
        if self.active:
            return
        self._previous_patterns = list(self.fetch.patterns) if self.fetch.enabled else None
        self._subscription = self.cdp.subscribe(REQUEST_PAUSED, self._on_request_paused)
        try:
            self.fetch.enable([request_pattern("*", "Request")])
        except Exception:
            self.cdp.unsubscribe(self._subscription)
            self._subscription = None
            raise

    def stop(self) -> None:
        """Restore the Fetch state found at start() and drop the subscription."""
        if not self.active:
            return
        try:
            if self.cdp.is_connected:
                if self._previous_patterns is None:
                    self.fetch.disable()
                else:
                    self.fetch.enable(self._previous_patterns)
        finally:
            self.cdp.unsubscribe(self._subscription)
            self._subscription = None
            self._previous_patterns = None

    def __enter__(self) -> "NetworkInterceptor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _on_request_paused(self, event: CDPEvent) -> None:
        request = event.get("request", {})
        request_id = event.get("requestId")
        url = request.get("url", "")
        decision = self.policy.decide(url)

        error = None
        try:
            if decision.action is Action.FULFILL:
                response = decision.route.response
                self.fetch.fulfill_request(
                    request_id,
                    status=response.status,
                    headers=response.headers,
                    body=response.body,
                    reason=response.reason,
                )
            elif decision.action is Action.BLOCK:
                self.fetch.fail_request(request_id, self.policy.block_reason)
            elif "responseStatusCode" in event.params:
                self.fetch.continue_response(request_id)
            else:
                self.fetch.continue_request(request_id)
        except Exception as e:
            error = str(e)
            logger.error(f"Failed to {decision.action.value} {url}: {e}")

        logger.debug(f"{decision.action.value}: {url}")
        self.handled.append(
            InterceptedRequest(
                request_id=request_id,
                url=url,
                method=request.get("method", "GET"),
                resource_type=event.get("resourceType"),
                action=decision.action,
                error=error,
            )
        )


__all__ = [
    "RequestMatcher",
    "MatchKind",
    "SyntheticResponse",
    "Route",
    "Action",
    "Decision",
    "InterceptionPolicy",
    "InterceptedRequest",
    "NetworkInterceptor",
]
