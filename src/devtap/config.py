"""Configuration management for devtap.

Handles browser and timeout settings from devtap.toml.

Example devtap.toml:

    [browser]
    headless = true
    arguments = ["--disable-gpu"]

    [timeouts]
    command = 30.0
    event = 10.0
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional
import logging
import tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "devtap.toml"

# toml table -> {toml key: HarnessConfig field}
_TABLES = {
    "browser": {
        "headless": "headless",
        "maximize": "maximize",
        "window_width": "window_width",
        "window_height": "window_height",
        "arguments": "arguments",
        "binary_location": "binary_location",
        "driver_path": "driver_path",
    },
    "timeouts": {
        "command": "command_timeout",
        "event": "event_timeout",
        "connect": "connect_timeout",
        "poll_interval": "poll_interval",
    },
    "logging": {
        "level": "log_level",
    },
}


@dataclass
class HarnessConfig:
    """Settings for one harness run.

    Attributes:
        headless: Run Chrome without a window.
        maximize: Maximize the window after startup.
        window_width: Initial window width in pixels.
        window_height: Initial window height in pixels.
        arguments: Extra Chrome command-line switches.
        binary_location: Chrome binary, None for the default lookup.
        driver_path: chromedriver path, None for Selenium Manager.
        command_timeout: Seconds to wait for a CDP command response.
        event_timeout: Default bound for event waits.
        connect_timeout: Seconds to wait for the CDP WebSocket to open.
        poll_interval: Sleep between condition checks.
        log_level: Level for the devtap logger.
    """

    headless: bool = False
    maximize: bool = True
    window_width: int = 1280
    window_height: int = 900
    arguments: list[str] = field(default_factory=list)
    binary_location: Optional[str] = None
    driver_path: Optional[str] = None
    command_timeout: float = 30.0
    event_timeout: float = 10.0
    connect_timeout: float = 5.0
    poll_interval: float = 0.1
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict) -> "HarnessConfig":
        """Build from parsed devtap.toml content. Unknown keys are ignored with a warning."""
        known = {f.name for f in fields(cls)}
        values = {}

        for table, mapping in _TABLES.items():
            section = data.get(table, {})
            if not isinstance(section, dict):
                logger.warning(f"Ignoring [{table}]: expected a table")
                continue
            for key, value in section.items():
                name = mapping.get(key)
                if name is None or name not in known:
                    logger.warning(f"Ignoring unknown setting {table}.{key}")
                    continue
                values[name] = value

        return cls(**values)


def _find_config_file() -> Optional[Path]:
    """Find devtap.toml in current or parent directories."""
    current = Path.cwd()

    for parent in [current] + list(current.parents):
        config_file = parent / CONFIG_FILENAME
        if config_file.exists():
            return config_file

    return None


def _load_config(path: Optional[Path] = None) -> dict:
    """Load raw configuration from file."""
    if path is None:
        path = _find_config_file()

    if path is None or not path.exists():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def load_config(path: Optional[Path] = None) -> HarnessConfig:
    """Load HarnessConfig from an explicit file, or the discovered devtap.toml."""
    data = _load_config(path)
    config = HarnessConfig.from_dict(data)
    logger.debug(f"Loaded config: {config}")
    return config


# Global instance
_config: Optional[HarnessConfig] = None


def get_config() -> HarnessConfig:
    """Get or create the global harness config."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config so the next get_config() reloads it."""
    global _config
    _config = None


__all__ = ["HarnessConfig", "load_config", "get_config", "reset_config", "CONFIG_FILENAME"]
