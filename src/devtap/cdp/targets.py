"""Page target discovery over Chrome's HTTP debugging endpoint.

PUBLIC API:
  - list_pages: Page targets exposed at a debugger address
  - find_page: Pick the page target to attach to
"""

import logging

import httpx

from devtap.errors import SetupError

logger = logging.getLogger(__name__)


def list_pages(debugger_address: str, timeout: float = 2) -> list[dict]:
    """List page targets with a WebSocket debugger URL.

    Args:
        debugger_address: "host:port" of Chrome's remote debugging server.
        timeout: HTTP timeout in seconds.

    Returns:
        Target info dicts from /json, pages only.

    Raises:
        SetupError: If the endpoint is unreachable or returns garbage.
    """
    try:
        resp = httpx.get(f"http://{debugger_address}/json", timeout=timeout)
        resp.raise_for_status()
        targets = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to list pages at {debugger_address}: {e}")
        raise SetupError(f"Cannot reach Chrome debugger at {debugger_address}: {e}") from e

    return [t for t in targets if t.get("type") == "page" and "webSocketDebuggerUrl" in t]


def find_page(debugger_address: str, target_id: str | None = None, timeout: float = 2) -> dict:
    """Find the page to attach to.

    Args:
        debugger_address: "host:port" of Chrome's remote debugging server.
        target_id: Exact target id to pick. Defaults to the first page.
        timeout: HTTP timeout in seconds.

    Returns:
        Target info dict with 'webSocketDebuggerUrl'.

    Raises:
        SetupError: If no matching page exists.
    """
    pages = list_pages(debugger_address, timeout=timeout)
    if not pages:
        raise SetupError(f"No pages available at {debugger_address}")

    if target_id is None:
        return pages[0]

    for page in pages:
        if page.get("id") == target_id:
            return page
    raise SetupError(f"Page {target_id} not found at {debugger_address}")


__all__ = ["list_pages", "find_page"]
