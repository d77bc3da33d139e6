#!/usr/bin/env python3
"""
Credential sources

Resolution order at startup, first source yielding a client id wins:
1. config file
2. environment variables (a .env file is loaded by main)
3. local credential store
4. interactive manual entry (validated before it is saved)
"""

import asyncio
import getpass
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from storage.config_loader import section
from watcher.message_types import Credentials

if TYPE_CHECKING:
    from storage.credential_store import CredentialStore
    from twitchapi.auth_manager import AuthManager

LOGGER = logging.getLogger(__name__)

ENV_CLIENT_ID = "TWITCH_CLIENT_ID"
ENV_CLIENT_SECRET = "TWITCH_CLIENT_SECRET"
ENV_ACCESS_TOKEN = "TWITCH_ACCESS_TOKEN"

MANUAL_ENTRY_ATTEMPTS = 3


def _first(mapping: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = mapping.get(key)
        if value:
            return str(value).strip()
    return None


def _build(client_id: Optional[str], secret: Optional[str], token: Optional[str]) -> Optional[Credentials]:
    if not client_id:
        return None
    return Credentials(client_id=client_id, access_token=token or "", client_secret=secret or None)


def from_config(config: Dict[str, Any]) -> Optional[Credentials]:
    """
    Credentials from the config file.

    Accepts the `twitch:` section (client_id / client_secret / access_token)
    and the flat keys of a config.json (clientId, TWITCH_CLIENT_ID, ...).
    """
    twitch = section(config, "twitch")
    creds = _build(
        _first(twitch, "client_id"),
        _first(twitch, "client_secret"),
        _first(twitch, "access_token"),
    )
    if creds:
        return creds
    return _build(
        _first(config, "clientId", ENV_CLIENT_ID),
        _first(config, "clientSecret", ENV_CLIENT_SECRET),
        _first(config, "accessToken", ENV_ACCESS_TOKEN),
    )


def from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[Credentials]:
    environ = os.environ if environ is None else environ
    return _build(
        _first(environ, ENV_CLIENT_ID),
        _first(environ, ENV_CLIENT_SECRET),
        _first(environ, ENV_ACCESS_TOKEN),
    )


def resolve_credentials(
    config: Dict[str, Any],
    store: Optional['CredentialStore'] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[Credentials], str]:
    """
    Walk the non-interactive sources in order.

    Returns:
        (credentials, source label); (None, "none") when nothing usable exists
    """
    sources = [
        ("config file", lambda: from_config(config)),
        ("environment variables", lambda: from_env(environ)),
        ("credential store", lambda: store.load() if store else None),
    ]
    for label, loader in sources:
        creds = loader()
        if creds:
            LOGGER.info(f"[TwitchAuth] Credentials loaded from {label}.")
            LOGGER.info(f"[TwitchAuth] Secret Present: {creds.has_secret}")
            return creds, label

    LOGGER.info("[TwitchAuth] No credentials found.")
    return None, "none"


async def prompt_manual_credentials(
    auth: 'AuthManager',
    store: Optional['CredentialStore'] = None,
    input_fn: Callable[[str], str] = input,
    secret_fn: Callable[[str], str] = getpass.getpass,
    attempts: int = MANUAL_ENTRY_ATTEMPTS,
) -> Optional[Credentials]:
    """
    Ask for a client id and app access token, validate them, save them.

    Manually entered credentials carry no secret: when the token expires the
    user is sent back here.

    Returns:
        Validated Credentials, or None after `attempts` failures / empty input
    """
    print("\n🔐 Twitch Setup")
    print("To query the Twitch API directly, you need a Client ID and an App Access Token.")
    print("Register an app on https://dev.twitch.tv/console, then generate an App Access Token.\n")

    for attempt in range(1, attempts + 1):
        client_id = (await asyncio.to_thread(input_fn, "Client ID: ")).strip()
        token = (await asyncio.to_thread(secret_fn, "App Access Token (Bearer): ")).strip()
        if not client_id or not token:
            LOGGER.warning("⚠️ Setup cancelled: client id and token are both required")
            return None

        if await auth.validate(client_id, token):
            creds = Credentials(client_id=client_id, access_token=token)
            if store is not None:
                store.save(creds)
            return creds

        print(f"❌ Twitch rejected these credentials ({attempt}/{attempts})")

    return None
