"""Helper functions for CDP event processing.

Extract and format data from CDP events for logging and assertions.
"""

from typing import Any, Iterable, Mapping

from devtap.cdp.models import CDPEvent


def group_by_request(events: Iterable[dict]) -> dict[str, list[dict]]:
    """Group Network.* event messages by requestId, preserving order."""
    grouped: dict[str, list[dict]] = {}
    for event in events:
        request_id = event.get("params", {}).get("requestId")
        if request_id:
            grouped.setdefault(request_id, []).append(event)
    return grouped


def build_network_row(request_id: str, events: list[dict]) -> dict:
    """Build one row from the CDP network events of a request.

    Network requests have multiple events that need correlation:
    - Network.requestWillBeSent: request details
    - Network.responseReceived: response details
    - Network.requestServedFromCache: cache hit
    - Network.loadingFinished: final size
    - Network.loadingFailed: error state and blocked reason

    Returns:
        Dict with one flat field per property
    """
    row: dict[str, Any] = {
        "id": request_id,
        "method": "",
        "status": None,
        "url": "",
        "type": None,
        "size": None,
        "from_cache": False,
        "failed": False,
        "error": None,
        "blocked_reason": None,
    }

    for event in events:
        method = event.get("method", "")
        params = event.get("params", {})

        if method == "Network.requestWillBeSent":
            request = params.get("request", {})
            row["url"] = request.get("url", "")
            row["method"] = request.get("method", "")
            row["type"] = row["type"] or params.get("type")

        elif method == "Network.responseReceived":
            response = params.get("response", {})
            row["status"] = response.get("status")
            row["url"] = row["url"] or response.get("url", "")
            # Use CDP's resource type directly
            row["type"] = params.get("type")

        elif method == "Network.requestServedFromCache":
            row["from_cache"] = True

        elif method == "Network.loadingFinished":
            row["size"] = params.get("encodedDataLength", 0)

        elif method == "Network.loadingFailed":
            row["failed"] = True
            row["type"] = params.get("type", row["type"])
            row["error"] = params.get("errorText")
            row["blocked_reason"] = params.get("blockedReason")

    return row


def build_console_row(event: Mapping[str, Any]) -> dict:
    """Build row from a CDP console event.

    Console events are simpler - one event per message.
    """
    method = event.get("method", "")
    params = event.get("params", {})

    if method == "Runtime.consoleAPICalled":
        # JavaScript console.* call
        args = params.get("args", [])

        return {
            "level": params.get("type", "log"),  # log, debug, info, error, warning
            "message": _extract_console_message(args),
            "source": "console",
            "url": None,
        }

    elif method == "Log.entryAdded":
        # Browser log entry
        entry = params.get("entry", {})

        return {
            "level": entry.get("level", "info"),  # verbose, info, warning, error
            "message": entry.get("text", ""),
            "source": entry.get("source", "other"),  # xml, javascript, network, etc.
            "url": entry.get("url"),
        }

    return {"level": "info", "message": str(event)[:100], "source": "unknown", "url": None}


def describe_response(event: CDPEvent) -> dict:
    """Flatten a Network.responseReceived event for logging."""
    response = event.get("response", {})
    return {
        "request_id": event.get("requestId"),
        "url": response.get("url"),
        "status": response.get("status"),
        "status_text": response.get("statusText"),
        "headers": response.get("headers", {}),
        "protocol": response.get("protocol"),
        "remote_ip": response.get("remoteIPAddress"),
        "remote_port": response.get("remotePort"),
        "mime_type": response.get("mimeType"),
        "connection_id": response.get("connectionId"),
        "type": event.get("type"),
    }


def _extract_console_message(args: list[dict]) -> str:
    """Extract message from console arguments - use CDP's representation.

    CDP already provides description or value for most cases.
    """
    if not args:
        return ""

    first_arg = args[0]

    # CDP provides description for objects, or value for primitives
    if "description" in first_arg:
        return first_arg["description"]
    elif "value" in first_arg:
        return str(first_arg["value"])
    else:
        return f"[{first_arg.get('type', 'unknown')}]"


def truncate_url(url: str, max_length: int = 60) -> str:
    """Truncate URL for log lines, keeping domain and end of path."""
    if len(url) <= max_length:
        return url

    if "://" in url:
        protocol, rest = url.split("://", 1)

        if "/" in rest:
            domain, path = rest.split("/", 1)
            available = max_length - len(protocol) - 3 - len(domain) - 4  # "://" + "..." + "/"
            if available > 10:
                return f"{protocol}://{domain}/...{path[-available:]}"

    return url[: max_length - 3] + "..."


__all__ = ["group_by_request", "build_network_row", "build_console_row", "describe_response", "truncate_url"]
