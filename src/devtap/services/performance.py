"""Performance domain - runtime metrics.

PUBLIC API:
  - PerformanceService: Performance.* commands
"""

import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)

type TimeDomain = Literal["timeTicks", "threadTicks"]


class PerformanceService:
    """Performance.* commands."""

    def __init__(self, cdp: "CDPSession"):
        self.cdp = cdp

    def enable(self, time_domain: TimeDomain | None = None) -> None:
        params = {"timeDomain": time_domain} if time_domain else None
        self.cdp.execute("Performance.enable", params)

    def disable(self) -> None:
        self.cdp.execute("Performance.disable")

    def get_metrics(self) -> dict[str, float]:
        """Current metrics keyed by name (e.g. "Nodes", "JSHeapUsedSize")."""
        result = self.cdp.execute("Performance.getMetrics")
        return {metric["name"]: metric["value"] for metric in result.get("metrics", [])}


__all__ = ["PerformanceService"]
