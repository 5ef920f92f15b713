"""Typed CDP command groups, one per domain.

PUBLIC API:
  - DomainServices: All services bound to one CDP session
  - BrowserService, EmulationService, NetworkService, LogService, SecurityService, PerformanceService, FetchService
"""

from typing import TYPE_CHECKING

from devtap.services.browser import BrowserService
from devtap.services.emulation import EmulationService
from devtap.services.fetch import FetchService
from devtap.services.log import LogService
from devtap.services.network import NetworkService
from devtap.services.performance import PerformanceService
from devtap.services.security import SecurityService

if TYPE_CHECKING:
    from devtap.cdp import CDPSession


class DomainServices:
    """Bundle of domain services sharing one session."""

    def __init__(self, cdp: "CDPSession"):
        self.browser = BrowserService(cdp)
        self.emulation = EmulationService(cdp)
        self.network = NetworkService(cdp)
        self.log = LogService(cdp)
        self.security = SecurityService(cdp)
        self.performance = PerformanceService(cdp)
        self.fetch = FetchService(cdp)


__all__ = [
    "DomainServices",
    "BrowserService",
    "EmulationService",
    "NetworkService",
    "LogService",
    "SecurityService",
    "PerformanceService",
    "FetchService",
]
