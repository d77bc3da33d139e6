#!/usr/bin/env python3
"""
📢 Live Announcer - desktop toasts for live transitions and poll errors

Subscribes to stream.live / stream.offline / system.error on the MessageBus
and turns them into desktop notifications (plyer) plus an optional sound cue.

Configurable messages and enable/disable per event type.
"""
import asyncio
import logging
import sys
from typing import Dict, Optional

from plyer import notification

from desktop.launchers import LaunchError, Launcher
from watcher.message_bus import MessageBus, TOPIC_ERROR, TOPIC_LIVE, TOPIC_OFFLINE
from watcher.message_types import ChannelWentLive, ChannelWentOffline, PollFailed

LOGGER = logging.getLogger(__name__)

APP_NAME = "StreamWatcher"
TOAST_TIMEOUT = 5


class LiveAnnouncer:
    """
    Notification sink.

    Toasts are best-effort: a platform without a notification backend only
    loses the toast, never the poll.
    """

    def __init__(
        self,
        bus: MessageBus,
        config: Optional[Dict] = None,
        sound_launcher: Optional[Launcher] = None,
    ):
        """
        Args:
            bus: MessageBus for pub/sub
            config: `notifications` section of the config
            sound_launcher: Launcher used to run `sound_command`
        """
        self.bus = bus
        self.config = config or {}
        self.sound_launcher = sound_launcher

        self.enabled = self.config.get("enabled", True)
        self.sound = self.config.get("sound", True)
        self.sound_command = self.config.get("sound_command")
        self.notify_offline = self.config.get("notify_offline", False)
        self.live_message = self.config.get(
            "live_message",
            "{name} is now live playing {game}!"
        )

        self.bus.subscribe(TOPIC_LIVE, self._handle_live)
        self.bus.subscribe(TOPIC_OFFLINE, self._handle_offline)
        self.bus.subscribe(TOPIC_ERROR, self._handle_error)

        LOGGER.info(
            f"📢 LiveAnnouncer initialized - "
            f"toasts={self.enabled}, sound={self.sound}, offline={self.notify_offline}"
        )

    async def _handle_live(self, event: ChannelWentLive):
        try:
            message = self.live_message.format(
                name=event.name,
                game=event.game or "something",
                title=event.title or "No Title",
                viewers=event.viewers or "?",
                url=event.url,
            )
        except (KeyError, IndexError, ValueError) as e:
            LOGGER.error(f"❌ Error formatting live message: {e}")
            message = f"{event.name} is now live!"

        await self.toast("Channel Live!", message)
        await self.play_sound()

    async def _handle_offline(self, event: ChannelWentOffline):
        if not self.notify_offline:
            LOGGER.debug("🔇 Offline toast disabled, skipping")
            return
        await self.toast("Channel Offline", f"{event.name} ended the stream.")

    async def _handle_error(self, event: PollFailed):
        title = "Auth Error" if event.kind == "auth" else "Check Failed"
        message = event.message
        if event.credentials_cleared:
            message = f"{message} (credentials cleared, run setup again)"
        await self.toast(title, message)

    async def toast(self, title: str, message: str):
        LOGGER.info(f"🔔 {title} - {message}")
        if not self.enabled:
            return
        try:
            await asyncio.to_thread(
                notification.notify,
                title=title,
                message=message,
                app_name=APP_NAME,
                timeout=TOAST_TIMEOUT,
            )
        except NotImplementedError:
            LOGGER.debug("No notification backend on this platform; toast skipped")
        except Exception as e:
            LOGGER.warning(f"⚠️ Notification failed: {e}")

    async def play_sound(self):
        if not self.sound:
            return
        if self.sound_command and self.sound_launcher is not None:
            try:
                await self.sound_launcher.launch(self.sound_command)
            except LaunchError as e:
                LOGGER.warning(f"⚠️ Sound cue failed: {e}")
            return
        sys.stdout.write("\a")
        sys.stdout.flush()
