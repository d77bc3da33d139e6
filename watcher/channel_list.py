"""
Channel list helpers

Parsing of the user-entered list (one login per line, as typed in the
editor or uploaded from a .txt file) and channel URLs.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Union

LOGGER = logging.getLogger(__name__)

CHANNEL_URL_BASE = "https://twitch.tv"


def dedupe_channels(names: Iterable[str]) -> List[str]:
    """Trim, drop blanks and exact duplicates. Casing is kept for display."""
    cleaned = (name.strip() for name in names if name is not None)
    return list(dict.fromkeys(name for name in cleaned if name))


def parse_channel_text(text: str) -> List[str]:
    return dedupe_channels(text.splitlines())


def load_channel_file(path: Union[str, Path]) -> List[str]:
    """
    Load a channel list from a text file (one name per line).

    Args:
        path: .txt file path

    Returns:
        De-duplicated channel list, file order kept
    """
    path = Path(path)
    channels = parse_channel_text(path.read_text(encoding="utf-8"))
    LOGGER.info(f"📋 {len(channels)} channels loaded from {path}")
    return channels


def channel_url(name: str) -> str:
    return f"{CHANNEL_URL_BASE}/{name}"
