"""Browser domain - permissions and version."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)


class BrowserService:
    """Browser.* commands."""

    def __init__(self, cdp: "CDPSession"):
        self.cdp = cdp

    def grant_permissions(self, permissions: list[str], origin: str | None = None) -> None:
        """Grant permissions (e.g. "geolocation") without a prompt.

        Args:
            permissions: Browser.PermissionType names.
            origin: Limit the grant to one origin, None for all.
        """
        params: dict = {"permissions": list(permissions)}
        if origin:
            params["origin"] = origin
        self.cdp.execute("Browser.grantPermissions", params)
        logger.info(f"Granted {', '.join(permissions)} to {origin or 'all origins'}")

    def reset_permissions(self) -> None:
        self.cdp.execute("Browser.resetPermissions")

    def get_version(self) -> dict:
        """Product, revision and user agent of the running browser."""
        return self.cdp.execute("Browser.getVersion")


__all__ = ["BrowserService"]
