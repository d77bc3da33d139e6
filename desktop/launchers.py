#!/usr/bin/env python3
"""
🚀 Launchers - "launch" action for a live channel

The command template gets `{{url}}` replaced by the channel URL, then goes to
one of two launchers chosen at startup:
- ProcessLauncher   : runs the command in a shell (desktop)
- ClipboardLauncher : copies the command to the clipboard (fallback)
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from watcher.channel_list import channel_url

LOGGER = logging.getLogger(__name__)

URL_PLACEHOLDER = "{{url}}"


class LaunchError(Exception):
    """The launch action failed (non-zero exit, clipboard unavailable)."""


def build_launch_command(template: str, channel: str) -> str:
    """Replace every `{{url}}` in the template with the channel URL."""
    return template.replace(URL_PLACEHOLDER, channel_url(channel))


class Launcher(ABC):
    """Interface commune des launchers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifiant config ('process', 'clipboard')."""

    @property
    @abstractmethod
    def feedback(self) -> str:
        """Libellé affiché après succès."""

    @abstractmethod
    async def launch(self, command: str) -> str:
        """
        Exécute l'action.

        Returns:
            Sortie éventuelle (stdout pour un process)

        Raises:
            LaunchError
        """

    def close(self):
        """Libère les ressources du launcher (no-op par défaut)."""


class ProcessLauncher(Launcher):
    name = "process"
    feedback = "Launched"

    async def launch(self, command: str) -> str:
        LOGGER.info(f"▶️ Executing: {command}")
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise LaunchError(str(e)) from e

        if proc.returncode != 0:
            error = stderr.decode("utf-8", errors="replace").strip() or f"exit code {proc.returncode}"
            LOGGER.error(f"❌ exec error: {error}")
            raise LaunchError(error)
        return stdout.decode("utf-8", errors="replace")


class ClipboardLauncher(Launcher):
    """
    Copies the command to the clipboard through a hidden Tk root.

    The root owns the clipboard selection, so it stays alive (and keeps
    answering paste requests) until the next copy or close(). Tk objects
    are bound to the thread that created the interpreter: the root is
    created, pumped and destroyed on the event-loop thread.
    """
    name = "clipboard"
    feedback = "Copied"

    PUMP_INTERVAL = 0.1

    def __init__(self):
        self._root = None
        self._pump_task: Optional[asyncio.Task] = None

    async def launch(self, command: str) -> str:
        # Tk is only loaded when the clipboard variant is actually used
        import tkinter

        if self._root is None:
            try:
                self._root = tkinter.Tk()
            except tkinter.TclError as e:
                raise LaunchError(f"Clipboard unavailable: {e}") from e
            self._root.withdraw()

        try:
            self._root.clipboard_clear()
            self._root.clipboard_append(command)
            self._root.update()
        except tkinter.TclError as e:
            self.close()
            raise LaunchError(f"Clipboard copy failed: {e}") from e

        if self._pump_task is None or self._pump_task.done():
            self._pump_task = asyncio.create_task(self._pump(tkinter.TclError))
        LOGGER.info("📋 Launch command copied to clipboard")
        return command

    async def _pump(self, tcl_error: Type[Exception]):
        """Process Tk events so other applications can read the selection."""
        while self._root is not None:
            try:
                self._root.update()
            except tcl_error as e:
                LOGGER.debug(f"Clipboard root gone: {e}")
                self._root = None
                return
            await asyncio.sleep(self.PUMP_INTERVAL)

    def close(self):
        if self._pump_task is not None:
            self._pump_task.cancel()
            self._pump_task = None
        if self._root is not None:
            import tkinter

            root, self._root = self._root, None
            try:
                root.destroy()
            except tkinter.TclError as e:
                LOGGER.debug(f"Clipboard root already gone: {e}")
                return
            LOGGER.debug("📋 Clipboard root released")


LAUNCHERS: Dict[str, Type[Launcher]] = {
    ProcessLauncher.name: ProcessLauncher,
    ClipboardLauncher.name: ClipboardLauncher,
}


def create_launcher(kind: str = ProcessLauncher.name) -> Launcher:
    try:
        return LAUNCHERS[kind]()
    except KeyError:
        raise ValueError(f"Unknown launcher '{kind}' (expected one of {', '.join(LAUNCHERS)})") from None


async def launch_channel(launcher: Launcher, template: str, channel: str) -> str:
    """
    Run the launch action for a channel.

    Returns:
        The launcher feedback label, or "Error" on failure
    """
    command = build_launch_command(template, channel)
    try:
        await launcher.launch(command)
    except LaunchError as e:
        LOGGER.error(f"❌ Launch failed for {channel}: {e}")
        return "Error"
    return launcher.feedback
