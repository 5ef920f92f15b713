"""Security domain commands."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)


class SecurityService:
    """Security.* commands."""

    def __init__(self, cdp: "CDPSession"):
        self.cdp = cdp

    def enable(self) -> None:
        self.cdp.execute("Security.enable")

    def disable(self) -> None:
        self.cdp.execute("Security.disable")

    def set_ignore_certificate_errors(self, ignore: bool = True) -> None:
        """Accept invalid certificates for every navigation in this browser."""
        self.cdp.execute("Security.setIgnoreCertificateErrors", {"ignore": ignore})
        if ignore:
            logger.warning("Certificate errors are ignored for this session")


__all__ = ["SecurityService"]
