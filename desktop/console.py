#!/usr/bin/env python3
"""
🖥️ Console controller - interactive commands while polling runs

start / stop / check / interval N / channels / load FILE / add NAME /
remove NAME / launch NAME / status / setup / logout / help / quit
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from desktop.launchers import Launcher, launch_channel
from watcher.channel_list import dedupe_channels, load_channel_file
from watcher.message_types import Credentials
from watcher.poll_scheduler import POLLING_INTERVALS, PollScheduler
from watcher.status_board import StatusBoard

LOGGER = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands: start | stop | check | interval <"
    + "|".join(str(m) for m in POLLING_INTERVALS)
    + "> | channels | load <file> | add <name> | remove <name> | "
    "launch <name> | status | setup | logout | help | quit"
)


class ConsoleController:
    """Maps console commands onto the scheduler, board and launcher."""

    def __init__(
        self,
        scheduler: PollScheduler,
        board: StatusBoard,
        launcher: Launcher,
        command_template: str,
        setup: Optional[Callable[[], Awaitable[Optional[Credentials]]]] = None,
    ):
        self.scheduler = scheduler
        self.board = board
        self.launcher = launcher
        self.command_template = command_template
        self.setup = setup
        self.running = True

    async def run(self, input_fn: Callable[[str], str] = input):
        """Read commands until `quit` or end of input."""
        print(HELP_TEXT)
        while self.running:
            try:
                line = await asyncio.to_thread(input_fn, "> ")
            except EOFError:
                break
            reply = await self.handle(line)
            if reply:
                print(reply)

    async def handle(self, line: str) -> str:
        parts = line.strip().split(maxsplit=1)
        if not parts:
            return ""
        command, arg = parts[0].lower(), (parts[1].strip() if len(parts) > 1 else "")

        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            return f"Unknown command '{command}'. {HELP_TEXT}"
        return await handler(arg)

    async def _cmd_help(self, arg: str) -> str:
        return HELP_TEXT

    async def _cmd_quit(self, arg: str) -> str:
        self.running = False
        return "Bye!"

    async def _cmd_start(self, arg: str) -> str:
        if self.scheduler.credentials is None:
            return "No credentials: run 'setup' first"
        self.scheduler.start()
        return f"Polling every {self.scheduler.interval_minutes}m"

    async def _cmd_stop(self, arg: str) -> str:
        self.scheduler.stop()
        return "Polling stopped"

    async def _cmd_check(self, arg: str) -> str:
        if self.scheduler.is_checking:
            return "Checking..."
        result = await self.scheduler.check_now()
        if result is None:
            error = self.scheduler.last_error
            return f"Check failed: {error}" if error else "Check skipped"
        return f"{len(result.state.live_channels())} live"

    async def _cmd_interval(self, arg: str) -> str:
        try:
            minutes = int(arg)
        except ValueError:
            minutes = None
        if minutes not in POLLING_INTERVALS:
            return f"Interval must be one of {', '.join(str(m) for m in POLLING_INTERVALS)} (minutes)"
        self.scheduler.set_interval(minutes)
        return f"Poll interval: {minutes}m"

    async def _cmd_channels(self, arg: str) -> str:
        channels = self.scheduler.channels
        return f"Tracking {len(channels)} channels: {', '.join(channels) or '-'}"

    async def _cmd_load(self, arg: str) -> str:
        if not arg:
            return "Usage: load <file.txt>"
        try:
            channels = load_channel_file(arg)
        except OSError as e:
            return f"Cannot read {arg}: {e}"
        self.scheduler.set_channels(channels)
        return f"Tracking {len(channels)} channels"

    async def _cmd_add(self, arg: str) -> str:
        if not arg:
            return "Usage: add <name>"
        channels: List[str] = dedupe_channels(self.scheduler.channels + arg.split())
        self.scheduler.set_channels(channels)
        return f"Tracking {len(channels)} channels"

    async def _cmd_remove(self, arg: str) -> str:
        if not arg:
            return "Usage: remove <name>"
        channels = [c for c in self.scheduler.channels if c != arg]
        self.scheduler.set_channels(channels)
        return f"Tracking {len(channels)} channels"

    async def _cmd_launch(self, arg: str) -> str:
        status = self.scheduler.snapshot.get(arg) if arg else None
        if status is None or not status.is_live:
            return f"{arg or '?'} is not live"
        feedback = await launch_channel(self.launcher, self.command_template, status.name)
        return f"{feedback}!"

    async def _cmd_status(self, arg: str) -> str:
        snapshot = self.board.last_snapshot
        if snapshot is None:
            return "No check yet"
        return "\n".join(self.board.render(snapshot))

    async def _cmd_setup(self, arg: str) -> str:
        if self.setup is None:
            return "Manual setup unavailable"
        creds = await self.setup()
        if creds is None:
            return "Setup cancelled"
        self.scheduler.set_credentials(creds, persist=False)
        return "Credentials saved (Manual Entry, no auto-refresh)"

    async def _cmd_logout(self, arg: str) -> str:
        self.scheduler.logout()
        return "Logged out"
