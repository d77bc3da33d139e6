"""
🚌 MessageBus - fan-out of poll results to the sinks

The PollScheduler publishes transitions, snapshots and failures; the
LiveAnnouncer, StatusBoard and main's credential hint subscribe. Each
delivery runs in its own task so a slow toast never delays the next poll.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Set

LOGGER = logging.getLogger(__name__)

# Topics
TOPIC_LIVE = "stream.live"            # ChannelWentLive
TOPIC_OFFLINE = "stream.offline"      # ChannelWentOffline
TOPIC_SNAPSHOT = "status.snapshot"    # StatusSnapshot
TOPIC_ERROR = "system.error"          # PollFailed
TOPIC_SYSTEM = "system.event"         # SystemEvent

Handler = Callable[[Any], Awaitable[None]]


class MessageBus:
    """Topic → async handlers, delivered fire-and-forget."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, topic: str, handler: Handler):
        self._handlers.setdefault(topic, []).append(handler)
        LOGGER.debug(f"📌 {topic} -> {handler.__name__}")

    async def publish(self, topic: str, event: Any):
        """
        Schedule every handler of `topic` with `event`. Returns immediately.

        Args:
            topic: One of the TOPIC_* constants
            event: Message type matching the topic
        """
        handlers = self._handlers.get(topic)
        if not handlers:
            LOGGER.debug(f"No subscriber for {topic}, {type(event).__name__} dropped")
            return

        for handler in handlers:
            task = asyncio.create_task(self._deliver(topic, handler, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, topic: str, handler: Handler, event: Any):
        try:
            await handler(event)
        except Exception as e:
            LOGGER.error(f"❌ {handler.__name__} failed on {topic}: {e}", exc_info=True)

    async def wait_all(self):
        """Wait until every delivery, including ones scheduled meanwhile, has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
