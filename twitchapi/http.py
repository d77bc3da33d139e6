"""
twitchapi/http.py
=================

Shared aiohttp plumbing for the Twitch transports.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

HELIX_BASE_URL = "https://api.twitch.tv/helix"
OAUTH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
DEFAULT_TIMEOUT = 10.0


@asynccontextmanager
async def session_scope(session: Optional[aiohttp.ClientSession]) -> AsyncIterator[aiohttp.ClientSession]:
    """
    Yield the injected session, or a throwaway one closed on exit.

    Args:
        session: Long-lived session owned by the caller (never closed here)
    """
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession() as own_session:
        yield own_session


def helix_headers(client_id: str, token: str) -> dict:
    """Headers expected by every Helix endpoint."""
    return {
        "Client-Id": client_id,
        "Authorization": f"Bearer {token}",
    }
