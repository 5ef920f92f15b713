"""Emulation domain commands - device metrics and geolocation.

PUBLIC API:
  - EmulationService: Emulation.* commands over a CDP session
  - device_metrics: Build Emulation.setDeviceMetricsOverride params
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devtap.cdp import CDPSession

logger = logging.getLogger(__name__)


def device_metrics(
    width: int,
    height: int,
    device_scale_factor: float = 0,
    mobile: bool = False,
    orientation_type: str | None = None,
    orientation_angle: int = 0,
) -> dict:
    """Params for Emulation.setDeviceMetricsOverride.

    Args:
        width: Viewport width in CSS pixels, 0 disables the override.
        height: Viewport height in CSS pixels, 0 disables the override.
        device_scale_factor: 0 keeps the host's factor.
        mobile: Emulate a mobile device (meta viewport, overlay scrollbars).
        orientation_type: e.g. "portraitPrimary", None to leave unset.
        orientation_angle: Orientation angle in degrees.
    """
    params = {
        "width": width,
        "height": height,
        "deviceScaleFactor": device_scale_factor,
        "mobile": mobile,
    }
    if orientation_type:
        params["screenOrientation"] = {"type": orientation_type, "angle": orientation_angle}
    return params


class EmulationService:
    """Emulation.* commands."""

    def __init__(self, cdp: "CDPSession"):
        self.cdp = cdp

    def set_device_metrics(
        self,
        width: int,
        height: int,
        device_scale_factor: float = 0,
        mobile: bool = False,
        orientation_type: str | None = None,
        orientation_angle: int = 0,
    ) -> None:
        """Override viewport size and device characteristics. Set before navigating."""
        params = device_metrics(width, height, device_scale_factor, mobile, orientation_type, orientation_angle)
        self.cdp.execute("Emulation.setDeviceMetricsOverride", params)
        logger.info(f"Emulating {width}x{height} (mobile={mobile})")

    def clear_device_metrics(self) -> None:
        self.cdp.execute("Emulation.clearDeviceMetricsOverride")

    def set_geolocation(self, latitude: float, longitude: float, accuracy: float = 100) -> None:
        """Override navigator.geolocation for this page."""
        self.cdp.execute(
            "Emulation.setGeolocationOverride",
            {"latitude": latitude, "longitude": longitude, "accuracy": accuracy},
        )
        logger.info(f"Geolocation overridden to {latitude}, {longitude} (+/-{accuracy}m)")

    def clear_geolocation(self) -> None:
        self.cdp.execute("Emulation.clearGeolocationOverride")


__all__ = ["EmulationService", "device_metrics"]
