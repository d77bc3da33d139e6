#!/usr/bin/env python3
"""
🧮 Reconciler - merges a fresh Helix batch into the previous snapshot

For every tracked channel:
- live now, not live before, not yet alerted → ChannelWentLive, key alerted
- absent now, live before → key un-alerted (re-arms), last_changed = now
- otherwise the previous last_changed is kept

A channel seen live on its very first observation alerts: the baseline of an
unknown channel is offline.
"""
import logging
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from watcher.channel_list import channel_url
from watcher.message_types import (
    ChannelStatus,
    ChannelWentLive,
    ChannelWentOffline,
    WatchState,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    state: WatchState
    went_live: Tuple[ChannelWentLive, ...] = ()
    went_offline: Tuple[ChannelWentOffline, ...] = ()


def reconcile(
    previous: WatchState,
    channels: Sequence[str],
    live: Iterable[ChannelStatus],
    now: float,
) -> ReconcileResult:
    """
    Compute the next WatchState and the transition events.

    Args:
        previous: Snapshot from the previous successful poll
        channels: Tracked channels, user casing
        live: Live entries returned by Helix for this poll
        now: Poll timestamp (epoch seconds)

    Returns:
        ReconcileResult with the new snapshot and the events to publish
    """
    live_by_key: Dict[str, ChannelStatus] = {s.name.lower(): s for s in live}

    statuses: Dict[str, ChannelStatus] = {}
    alerted: Set[str] = set(previous.alerted)
    went_live: List[ChannelWentLive] = []
    went_offline: List[ChannelWentOffline] = []

    for channel in channels:
        key = channel.lower()
        if key in statuses:
            continue
        existing: Optional[ChannelStatus] = previous.statuses.get(key)
        was_live = bool(existing and existing.is_live)
        fresh = live_by_key.get(key)

        if fresh is not None:
            if not was_live and key not in alerted:
                went_live.append(ChannelWentLive(
                    name=channel,
                    title=fresh.title,
                    game=fresh.game,
                    viewers=fresh.viewers,
                    thumbnail_url=fresh.thumbnail_url,
                    url=channel_url(channel),
                ))
                alerted.add(key)

            statuses[key] = ChannelStatus(
                name=channel,
                is_live=True,
                title=fresh.title,
                game=fresh.game,
                viewers=fresh.viewers,
                thumbnail_url=fresh.thumbnail_url,
                last_checked=now,
                last_changed=existing.last_changed if was_live else now,
            )
        else:
            if was_live:
                alerted.discard(key)
                went_offline.append(ChannelWentOffline(name=channel))
                last_changed = now
            else:
                last_changed = existing.last_changed if existing else now

            statuses[key] = ChannelStatus(
                name=channel,
                is_live=False,
                last_checked=now,
                last_changed=last_changed,
            )

    # Untracked channels leave the snapshot, and the alerted set with them
    alerted.intersection_update(statuses)

    state = WatchState(statuses=MappingProxyType(statuses), alerted=frozenset(alerted))
    return ReconcileResult(state=state, went_live=tuple(went_live), went_offline=tuple(went_offline))


class Reconciler:
    """
    Owner of the current WatchState.

    The snapshot is only ever replaced, never mutated, so a reader holding a
    reference always sees a consistent StatusMap/AlertedSet pair.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._state = WatchState()

    @property
    def state(self) -> WatchState:
        return self._state

    def apply(self, channels: Sequence[str], live: Iterable[ChannelStatus]) -> ReconcileResult:
        result = reconcile(self._state, channels, live, self.clock())
        self._state = result.state

        for event in result.went_live:
            LOGGER.info(f"🔴 {event.name}: STREAM ONLINE ({event.game or 'no category'})")
        for event in result.went_offline:
            LOGGER.info(f"⚪ {event.name}: stream offline")
        LOGGER.debug(
            f"Reconciled {len(channels)} channels: "
            f"{len(result.state.live_channels())} live, {len(result.state.alerted)} alerted"
        )
        return result

    def reset(self):
        self._state = WatchState()
