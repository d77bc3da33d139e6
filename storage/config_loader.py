"""
Config loader

Reads config/config.yaml (a JSON config.json is valid YAML, so the original
flat `clientId` style file loads too).
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"
DEFAULT_COMMAND_TEMPLATE = "streamlink {{url}} best"


class ConfigError(Exception):
    """Config file exists but cannot be used."""


def load_config(path: Optional[Union[str, Path]] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load the YAML config.

    Args:
        path: Config file path. Missing file → empty config.

    Raises:
        ConfigError: unreadable file, invalid YAML, or a non-mapping document
    """
    if path is None:
        return {}
    path = Path(path)
    if not path.exists():
        LOGGER.info(f"No config file at {path}, using defaults")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(config).__name__}")

    LOGGER.info(f"⚙️ Config loaded from {path}")
    return config


def section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a config section as a dict (missing or null → {})."""
    value = config.get(name)
    return value if isinstance(value, dict) else {}
