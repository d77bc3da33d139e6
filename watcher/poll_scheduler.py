#!/usr/bin/env python3
"""
📡 Poll Scheduler - Polling-based live detection

Fires a Helix lookup every N minutes for the tracked channels, refreshes the
app token on 401, reconciles the batch and publishes transitions on the
MessageBus.

States: IDLE → CHECKING (→ REFRESHING → CHECKING) → IDLE
At most one check is in flight: a tick arriving during a check is dropped.
"""
import asyncio
import logging
from enum import Enum
from typing import List, Optional, Sequence, Set, TYPE_CHECKING

from twitchAPI.type import TwitchAPIException

from twitchapi.errors import ApiError, AuthError, NetworkError, Unauthorized
from watcher.message_bus import (
    MessageBus,
    TOPIC_ERROR,
    TOPIC_LIVE,
    TOPIC_OFFLINE,
    TOPIC_SNAPSHOT,
    TOPIC_SYSTEM,
)
from watcher.message_types import (
    ChannelStatus,
    Credentials,
    PollFailed,
    StatusSnapshot,
    SystemEvent,
    WatchState,
)
from watcher.reconciler import ReconcileResult, Reconciler

if TYPE_CHECKING:
    from storage.credential_store import CredentialStore
    from twitchapi.auth_manager import AuthManager
    from twitchapi.transports.helix_streams import HelixStreamsClient

LOGGER = logging.getLogger(__name__)

POLLING_INTERVALS = (1, 2, 5, 10, 15, 30)
DEFAULT_INTERVAL_MINUTES = 2


class PollState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    REFRESHING = "refreshing"


def _failure_kind(error: Exception) -> str:
    if isinstance(error, AuthError):
        return "auth"
    if isinstance(error, Unauthorized):
        return "unauthorized"
    if isinstance(error, NetworkError):
        return "network"
    if isinstance(error, ApiError):
        return "api"
    return "unknown"


class PollScheduler:
    """
    Owns the credential lifecycle and drives the Reconciler.

    Credentials are cleared only when authorization fails and no client
    secret is available to mint a new token.
    """

    def __init__(
        self,
        streams: 'HelixStreamsClient',
        auth: 'AuthManager',
        bus: MessageBus,
        reconciler: Optional[Reconciler] = None,
        credentials: Optional[Credentials] = None,
        channels: Sequence[str] = (),
        interval_minutes: float = DEFAULT_INTERVAL_MINUTES,
        store: Optional['CredentialStore'] = None,
    ):
        """
        Args:
            streams: Helix /streams client
            auth: Token provider
            bus: MessageBus for transitions, snapshots and errors
            reconciler: State owner (a fresh one by default)
            credentials: Initial credentials (None until setup completes)
            channels: Tracked channels, user casing
            interval_minutes: Polling period
            store: Persistence for credential changes (optional)
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.streams = streams
        self.auth = auth
        self.bus = bus
        self.reconciler = reconciler or Reconciler()
        self.store = store

        self._credentials = credentials
        self._channels: List[str] = list(channels)
        self._interval_minutes = interval_minutes

        self._state = PollState.IDLE
        self._checking = False
        self._polling = False
        self._timer: Optional[asyncio.Task] = None
        self._checks: Set[asyncio.Task] = set()

        self.last_error: Optional[Exception] = None
        self.last_check: Optional[float] = None

        LOGGER.info(
            f"📡 PollScheduler initialized - {len(self._channels)} channels, "
            f"interval={interval_minutes}min"
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def is_checking(self) -> bool:
        return self._checking

    @property
    def is_polling(self) -> bool:
        return self._polling

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    @property
    def interval_minutes(self) -> float:
        return self._interval_minutes

    @property
    def snapshot(self) -> WatchState:
        return self.reconciler.state

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_channels(self, channels: Sequence[str]):
        self._channels = list(channels)
        LOGGER.info(f"📋 Tracking {len(self._channels)} channels")
        self._restart_timer()

    def set_credentials(self, credentials: Optional[Credentials], persist: bool = True):
        """Replace the held credentials (persisted) and re-arm the timer."""
        self._credentials = credentials
        if persist:
            self._persist(credentials)
        self._restart_timer()

    def logout(self):
        LOGGER.info("👋 Logout: clearing credentials")
        self.set_credentials(None)

    def set_interval(self, minutes: float):
        if minutes <= 0:
            raise ValueError("interval must be positive")
        self._interval_minutes = minutes
        LOGGER.info(f"⏱️ Poll interval set to {minutes}min")
        self._restart_timer()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def start(self):
        """Start polling: immediate check, then one every interval. Needs a running loop."""
        self._polling = True
        self._restart_timer()

    def stop(self):
        """Stop polling. An in-flight check completes but is not re-armed."""
        self._polling = False
        self._cancel_timer()
        LOGGER.info("🛑 Polling stopped")

    async def wait_idle(self):
        """Wait for spawned checks to finish."""
        if self._checks:
            await asyncio.gather(*list(self._checks), return_exceptions=True)

    def _restart_timer(self):
        self._cancel_timer()
        if not self._polling:
            return
        if self._credentials is None:
            LOGGER.warning("⚠️ Polling enabled but no credentials: waiting for setup")
            return
        self._timer = asyncio.create_task(self._run_timer())

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self):
        LOGGER.info(f"🔄 Poll timer armed (interval={self._interval_minutes}min)")
        while True:
            self._spawn_check()
            await asyncio.sleep(self._interval_minutes * 60)

    def _spawn_check(self):
        task = asyncio.create_task(self.check_now())
        self._checks.add(task)
        task.add_done_callback(self._on_check_done)

    def _on_check_done(self, task: asyncio.Task):
        self._checks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOGGER.error(f"❌ Unexpected error during poll: {error}", exc_info=error)

    # ------------------------------------------------------------------
    # Check
    # ------------------------------------------------------------------

    async def check_now(self) -> Optional[ReconcileResult]:
        """
        Run one poll cycle.

        Returns:
            The ReconcileResult, or None when skipped (check in flight, no
            credentials) or failed (see last_error)
        """
        if self._checking:
            LOGGER.debug("⏭️ Check already in flight, tick dropped")
            return None
        credentials = self._credentials
        if credentials is None:
            LOGGER.debug("No credentials, check skipped")
            return None

        self._checking = True
        self._state = PollState.CHECKING
        channels = list(self._channels)
        try:
            try:
                live = await self._fetch_with_refresh(credentials, channels)
            except TwitchAPIException as e:
                await self._report_failure(e, credentials)
                return None

            result = self.reconciler.apply(channels, live)
            self.last_error = None
            self.last_check = self.reconciler.clock()
            await self._publish(result, channels)
            return result
        finally:
            self._checking = False
            self._state = PollState.IDLE

    async def _fetch_with_refresh(self, credentials: Credentials, channels: List[str]) -> List[ChannelStatus]:
        if not credentials.has_token:
            if not credentials.has_secret:
                raise AuthError("Missing Access Token and Client Secret")
            LOGGER.info("🔄 Token missing, generating new one...")
            credentials = await self._refresh(credentials)

        try:
            return await self.streams.fetch_live(channels, credentials.client_id, credentials.access_token)
        except Unauthorized as e:
            if not credentials.has_secret:
                LOGGER.error("❌ Token rejected (401) and no client secret to refresh it")
                raise AuthError(str(e), status=401) from e

        LOGGER.warning("⚠️ Token expired (401), refreshing using secret...")
        credentials = await self._refresh(credentials)
        live = await self.streams.fetch_live(channels, credentials.client_id, credentials.access_token)
        LOGGER.info("✅ Refresh successful")
        return live

    async def _refresh(self, credentials: Credentials) -> Credentials:
        self._state = PollState.REFRESHING
        token = await self.auth.mint_token(credentials.client_id, credentials.client_secret)
        refreshed = credentials.with_token(token)

        # Credentials replaced mid-check by the user are not clobbered
        if self._credentials is credentials:
            self._credentials = refreshed
            self._persist(refreshed)

        await self.bus.publish(TOPIC_SYSTEM, SystemEvent(
            kind="auth.token_refreshed",
            payload={"client_id": credentials.client_id},
        ))
        self._state = PollState.CHECKING
        return refreshed

    async def _report_failure(self, error: Exception, credentials: Credentials):
        self.last_error = error
        cleared = False
        if isinstance(error, AuthError) and not credentials.has_secret:
            if self._credentials is credentials:
                LOGGER.warning("⚠️ Clearing credentials: manual setup required")
                self.set_credentials(None)
                cleared = True

        LOGGER.error(f"❌ Check failed: {error}")
        await self.bus.publish(TOPIC_ERROR, PollFailed(
            kind=_failure_kind(error),
            message=str(error) or "Error querying Twitch API",
            credentials_cleared=cleared,
        ))

    async def _publish(self, result: ReconcileResult, channels: List[str]):
        for event in result.went_live:
            await self.bus.publish(TOPIC_LIVE, event)
        for event in result.went_offline:
            await self.bus.publish(TOPIC_OFFLINE, event)
        await self.bus.publish(TOPIC_SNAPSHOT, StatusSnapshot(
            state=result.state,
            channels=tuple(channels),
            checked_at=self.last_check,
        ))

    def _persist(self, credentials: Optional[Credentials]):
        if self.store is None:
            return
        try:
            if credentials is None:
                self.store.clear()
            else:
                self.store.save(credentials)
        except OSError as e:
            LOGGER.error(f"❌ Could not persist credentials: {e}")
