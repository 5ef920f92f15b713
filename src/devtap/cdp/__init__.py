"""Chrome DevTools Protocol client with native event storage.

Store events as-is, deliver them to subscribers in order, query on demand.

PUBLIC API:
  - CDPSession: Page-level CDP client with commands and subscriptions
  - CDPEvent: Immutable observed event
  - EventDispatcher: Ordered off-socket event delivery
  - EventStore: DuckDB event recorder
  - Subscription: Handle returned by subscribe()
  - ANY_EVENT: Wildcard event type
"""

from devtap.cdp.dispatcher import ANY_EVENT, EventDispatcher, Subscription
from devtap.cdp.models import CDPEvent
from devtap.cdp.session import CDPSession
from devtap.cdp.store import EventStore

__all__ = ["CDPSession", "CDPEvent", "EventDispatcher", "EventStore", "Subscription", "ANY_EVENT"]
