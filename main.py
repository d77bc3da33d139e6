#!/usr/bin/env python3
"""
StreamWatcher - Twitch live-channel poller

Polls Helix /streams for a list of channels, raises one desktop toast per
live session, prints a status board after every check and can launch a live
channel (streamlink, player, clipboard...).
"""

import argparse
import asyncio
import logging
import pathlib
import sys
from typing import List, Optional

import aiohttp
from dotenv import load_dotenv

from desktop.console import ConsoleController
from desktop.launchers import (
    ProcessLauncher,
    build_launch_command,
    create_launcher,
    launch_channel,
)
from storage.config_loader import (
    DEFAULT_COMMAND_TEMPLATE,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    load_config,
    section,
)
from storage.credential_sources import prompt_manual_credentials, resolve_credentials
from storage.credential_store import CredentialStore
from twitchapi.auth_manager import AuthManager
from twitchapi.http import DEFAULT_TIMEOUT
from twitchapi.transports.helix_streams import HelixStreamsClient
from watcher.channel_list import dedupe_channels, load_channel_file
from watcher.live_announcer import LiveAnnouncer
from watcher.message_bus import MessageBus, TOPIC_ERROR
from watcher.message_types import PollFailed
from watcher.poll_scheduler import DEFAULT_INTERVAL_MINUTES, POLLING_INTERVALS, PollScheduler
from watcher.status_board import StatusBoard

# Logger will be configured in setup_logging()
LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(description="StreamWatcher - Twitch live-channel poller")
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to config file (default: {DEFAULT_CONFIG_PATH})'
    )
    parser.add_argument(
        '--channel',
        action='append',
        default=[],
        help='Channel to track (repeatable, overrides the config list)'
    )
    parser.add_argument(
        '--channels-file',
        type=str,
        help='Text file with one channel per line'
    )
    parser.add_argument(
        '--interval',
        type=int,
        choices=POLLING_INTERVALS,
        help=f'Poll interval in minutes (default: {DEFAULT_INTERVAL_MINUTES})'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single check, print the board and exit'
    )
    parser.add_argument(
        '--launch',
        metavar='NAME',
        help='Run the launch command for NAME if it is live, then exit'
    )
    parser.add_argument(
        '--logout',
        action='store_true',
        help='Delete the stored credentials and exit'
    )
    parser.add_argument(
        '--no-notify',
        action='store_true',
        help='Disable desktop toasts'
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        help='No interactive console, poll until CTRL+C'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log level (default: logging.level from config, else INFO)'
    )
    return parser.parse_args(argv)


def setup_logging(level: str = "INFO") -> pathlib.Path:
    """Root logger: logs/streamwatcher.log + console"""
    logs_base = pathlib.Path("logs")
    logs_base.mkdir(exist_ok=True)
    log_file = logs_base / "streamwatcher.log"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ],
        force=True  # Override any existing config
    )
    return log_file


def credentials_cleared_hint(interactive: bool) -> str:
    if interactive:
        return "🔐 Credentials cleared: type 'setup' to enter new ones"
    return (
        "🔐 Credentials cleared: polling paused. Restart with a client secret "
        "(config or TWITCH_CLIENT_SECRET) or run interactively to enter new credentials"
    )


def resolve_channels(args, config: dict) -> List[str]:
    """CLI --channel > --channels-file > config channels_file > config channels"""
    if args.channel:
        return dedupe_channels(args.channel)

    channels_file = args.channels_file or config.get("channels_file")
    if channels_file:
        return load_channel_file(channels_file)

    channels = config.get("channels") or []
    if isinstance(channels, str):
        channels = channels.split(",")
    return dedupe_channels(str(c) for c in channels)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging(args.log_level or "INFO")
        LOGGER.error(f"❌ {e}")
        return 2

    log_file = setup_logging(args.log_level or section(config, "logging").get("level", "INFO"))

    twitch_config = section(config, "twitch")
    watcher_config = section(config, "watcher")
    notify_config = dict(section(config, "notifications"))
    storage_config = section(config, "storage")
    if args.no_notify:
        notify_config["enabled"] = False

    store = CredentialStore(
        path=storage_config.get("credentials_file", ".streamwatcher.json"),
        key_file=storage_config.get("key_file", ".streamwatcher.key"),
    )
    if args.logout:
        store.clear()
        print("👋 Stored credentials removed")
        return 0

    try:
        channels = resolve_channels(args, config)
    except OSError as e:
        LOGGER.error(f"❌ Cannot read channel list: {e}")
        return 2

    interval = args.interval or watcher_config.get("interval_minutes", DEFAULT_INTERVAL_MINUTES)
    if interval not in POLLING_INTERVALS:
        LOGGER.warning(f"⚠️ Interval {interval}min not in {POLLING_INTERVALS}, using {DEFAULT_INTERVAL_MINUTES}")
        interval = DEFAULT_INTERVAL_MINUTES
    command_template = watcher_config.get("command_template", DEFAULT_COMMAND_TEMPLATE)
    timeout = float(twitch_config.get("timeout", DEFAULT_TIMEOUT))

    try:
        launcher = create_launcher(watcher_config.get("launcher", ProcessLauncher.name))
    except ValueError as e:
        LOGGER.error(f"❌ {e}")
        return 2

    print("=" * 70)
    print("StreamWatcher - Twitch live-channel poller")
    print(f"Channels: {len(channels)} | Interval: {interval}min | Launcher: {launcher.name}")
    print(f"Logs: {log_file}")
    print("=" * 70)

    credentials, source = resolve_credentials(config, store=store)

    async with aiohttp.ClientSession() as session:
        auth = AuthManager(session=session, timeout=timeout)
        streams = HelixStreamsClient(session=session, timeout=timeout)
        bus = MessageBus()

        async def manual_setup():
            return await prompt_manual_credentials(auth, store=store)

        if credentials is None:
            credentials = await manual_setup()
            if credentials is None:
                LOGGER.error("❌ No Twitch credentials: nothing to poll with")
                return 1
            source = "manual entry"
        LOGGER.info(f"🔑 Credentials source: {source}")

        scheduler = PollScheduler(
            streams=streams,
            auth=auth,
            bus=bus,
            credentials=credentials,
            channels=channels,
            interval_minutes=interval,
            store=store,
        )
        LiveAnnouncer(bus, config=notify_config, sound_launcher=ProcessLauncher())
        board = StatusBoard(bus, command_template=command_template)

        if args.once or args.launch:
            result = await scheduler.check_now()
            await bus.wait_all()
            if result is None:
                return 1
            if args.launch:
                status = result.state.get(args.launch)
                if status is None or not status.is_live:
                    print(f"⚪ {args.launch} is not live")
                    return 1
                try:
                    feedback = await launch_channel(launcher, command_template, status.name)
                finally:
                    launcher.close()
                print(f"▶️ {feedback}: {build_launch_command(command_template, status.name)}")
                return 0 if feedback != "Error" else 1
            return 0

        interactive = not args.headless and sys.stdin.isatty()

        async def on_poll_failed(event: PollFailed):
            if event.credentials_cleared:
                print(credentials_cleared_hint(interactive))

        bus.subscribe(TOPIC_ERROR, on_poll_failed)

        scheduler.start()
        LOGGER.info(f"📡 Polling started ({len(channels)} channels every {interval}min)")

        try:
            if not interactive:
                # Boucle infinie qui répond bien à KeyboardInterrupt
                while True:
                    await asyncio.sleep(1)
            else:
                console = ConsoleController(
                    scheduler,
                    board,
                    launcher,
                    command_template,
                    setup=manual_setup,
                )
                await console.run()
        except (KeyboardInterrupt, asyncio.CancelledError):
            LOGGER.info("CTRL+C détecté, arrêt en cours...")
        finally:
            LOGGER.info("Arret...")
            scheduler.stop()
            await scheduler.wait_idle()
            await bus.wait_all()
            launcher.close()
            LOGGER.info("Termine")

    return 0


def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nAu revoir !")
    except Exception as e:
        LOGGER.error(f"Erreur fatale: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    cli()
