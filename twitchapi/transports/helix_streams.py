#!/usr/bin/env python3
"""Helix Streams Transport - batched live lookups

GET /helix/streams pour une liste de logins :
- jusqu'à 100 `user_login` par requête (limite Helix)
- seuls les streams live sont renvoyés : absence = offline
- 401 → Unauthorized, abandon immédiat (pas de merge partiel)
"""

import asyncio
import logging
import time
from typing import Callable, Iterable, List, Optional

import aiohttp

from twitchapi.auth_manager import clean_client_id, clean_token
from twitchapi.errors import ApiError, NetworkError, Unauthorized
from twitchapi.http import DEFAULT_TIMEOUT, HELIX_BASE_URL, helix_headers, session_scope
from watcher.message_types import ChannelStatus

LOGGER = logging.getLogger(__name__)

MAX_LOGINS_PER_REQUEST = 100
THUMBNAIL_WIDTH = 400
THUMBNAIL_HEIGHT = 225


def chunk_logins(channel_names: Iterable[str], size: int = MAX_LOGINS_PER_REQUEST) -> List[List[str]]:
    """Lowercase, de-duplicate (first seen wins) and split into request-sized batches."""
    unique = list(dict.fromkeys(name.lower() for name in channel_names if name))
    return [unique[i:i + size] for i in range(0, len(unique), size)]


def _thumbnail(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return url.replace("{width}", str(THUMBNAIL_WIDTH)).replace("{height}", str(THUMBNAIL_HEIGHT))


class HelixStreamsClient:
    """
    Client Helix pour l'endpoint /streams (App Token).

    Le token est fourni à chaque appel : le refresh est piloté par le
    PollScheduler, pas par ce client.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        streams_url: str = f"{HELIX_BASE_URL}/streams",
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            session: aiohttp session partagée (optionnelle)
            streams_url: URL de l'endpoint streams
            timeout: Timeout par requête en secondes
            clock: Source du timestamp last_checked/last_changed
        """
        self.session = session
        self.streams_url = streams_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.clock = clock
        LOGGER.debug(f"HelixStreamsClient init (timeout={timeout}s)")

    async def fetch_live(self, channel_names: Iterable[str], client_id: str, token: str) -> List[ChannelStatus]:
        """Return a live ChannelStatus for every channel Twitch reports as streaming.

        Args:
            channel_names: Logins to look up (any casing, duplicates allowed)
            client_id: Client ID
            token: App access token

        Raises:
            Unauthorized: a batch was answered with 401
            ApiError: a batch was answered with another non-success status
            NetworkError: transport failure or timeout
        """
        batches = chunk_logins(channel_names)
        if not batches:
            return []

        headers = helix_headers(clean_client_id(client_id), clean_token(token))
        raw_streams: List[dict] = []

        async with session_scope(self.session) as session:
            for index, batch in enumerate(batches, start=1):
                LOGGER.debug(f"[HELIX] get_streams batch {index}/{len(batches)} ({len(batch)} logins)")
                raw_streams.extend(await self._fetch_batch(session, batch, headers))

        now = self.clock()
        statuses = [self._to_status(stream, now) for stream in raw_streams]
        LOGGER.debug(f"[HELIX] {len(statuses)} live / {sum(len(b) for b in batches)} queried")
        return statuses

    async def _fetch_batch(self, session: aiohttp.ClientSession, batch: List[str], headers: dict) -> List[dict]:
        params = [("user_login", name) for name in batch]
        try:
            async with session.get(self.streams_url, params=params, headers=headers, timeout=self.timeout) as resp:
                if resp.status == 401:
                    LOGGER.warning("⚠️ Helix answered 401 (token expired or invalid)")
                    raise Unauthorized()
                if resp.status < 200 or resp.status >= 300:
                    LOGGER.error(f"❌ Helix streams error: {resp.status} {resp.reason}")
                    raise ApiError(resp.status, resp.reason or "")
                payload = await resp.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise ApiError(200, f"malformed response: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            LOGGER.error(f"❌ Helix streams request failed: {e!r}")
            raise NetworkError(f"Network error querying Twitch: {e!r}") from e

        if not isinstance(payload, dict):
            raise ApiError(200, f"malformed response: expected an object, got {type(payload).__name__}")
        data = payload.get("data") or []
        if not isinstance(data, list):
            raise ApiError(200, f"malformed response: 'data' is {type(data).__name__}")
        return data

    @staticmethod
    def _to_status(stream: dict, now: float) -> ChannelStatus:
        viewers = stream.get("viewer_count")
        return ChannelStatus(
            name=stream.get("user_login", ""),
            is_live=True,
            title=stream.get("title"),
            game=stream.get("game_name"),
            viewers=str(viewers) if viewers is not None else None,
            thumbnail_url=_thumbnail(stream.get("thumbnail_url")),
            last_checked=now,
            last_changed=now,
        )
