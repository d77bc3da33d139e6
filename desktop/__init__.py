"""
Desktop - launch action (process or clipboard)
"""

from desktop.launchers import (
    ClipboardLauncher,
    LaunchError,
    Launcher,
    ProcessLauncher,
    build_launch_command,
    create_launcher,
    launch_channel,
)

__all__ = [
    "ClipboardLauncher",
    "LaunchError",
    "Launcher",
    "ProcessLauncher",
    "build_launch_command",
    "create_launcher",
    "launch_channel",
]
