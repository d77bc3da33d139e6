"""
Status board - console rendering of each poll snapshot
"""
import logging
from datetime import datetime
from typing import Optional

from desktop.launchers import build_launch_command
from watcher.message_bus import MessageBus, TOPIC_SNAPSHOT
from watcher.message_types import ChannelStatus, StatusSnapshot

LOGGER = logging.getLogger(__name__)


def format_viewers(viewers: Optional[str]) -> str:
    if not viewers:
        return "Viewers hidden"
    try:
        return f"{int(viewers):,} viewers"
    except ValueError:
        return f"{viewers} viewers"


class StatusBoard:
    """Logs the status summary and one line per live channel after every poll."""

    def __init__(self, bus: MessageBus, command_template: Optional[str] = None):
        self.command_template = command_template
        self.last_snapshot: Optional[StatusSnapshot] = None
        bus.subscribe(TOPIC_SNAPSHOT, self._handle_snapshot)

    async def _handle_snapshot(self, snapshot: StatusSnapshot):
        self.last_snapshot = snapshot
        for line in self.render(snapshot):
            LOGGER.info(line)

    def render(self, snapshot: StatusSnapshot) -> list:
        live = snapshot.state.live_channels()
        checked = datetime.fromtimestamp(snapshot.checked_at).strftime("%H:%M:%S") if snapshot.checked_at else "-"
        lines = [
            f"📊 Channels Monitored: {len(snapshot.channels)} | "
            f"Currently Live: {len(live)} | Last Check: {checked}"
        ]
        lines.extend(self._live_line(status) for status in live)
        return lines

    def _live_line(self, status: ChannelStatus) -> str:
        line = (
            f"   🔴 {status.name} - {format_viewers(status.viewers)} - "
            f"{status.game or 'Just Chatting'} - {status.title or 'No Title'}"
        )
        if self.command_template:
            line += f"\n      ▶️ {build_launch_command(self.command_template, status.name)}"
        return line
