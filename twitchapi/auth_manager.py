#!/usr/bin/env python3
"""
AuthManager
Client-credentials token minting and credential probing for Helix
"""

import asyncio
import logging
import re
from typing import Optional

import aiohttp

from twitchapi.errors import AuthError, NetworkError
from twitchapi.http import (
    DEFAULT_TIMEOUT,
    HELIX_BASE_URL,
    OAUTH_TOKEN_URL,
    helix_headers,
    session_scope,
)

LOGGER = logging.getLogger(__name__)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)
_OAUTH_PREFIX = re.compile(r"^oauth:", re.IGNORECASE)


def clean_token(token: Optional[str]) -> str:
    """Strip a pasted 'Bearer ' / 'oauth:' prefix and surrounding whitespace."""
    if not token:
        return ""
    return _OAUTH_PREFIX.sub("", _BEARER_PREFIX.sub("", token.strip())).strip()


def clean_client_id(client_id: Optional[str]) -> str:
    return (client_id or "").strip()


class AuthManager:
    """
    Gère le cycle de vie des App Access Tokens
    - mint_token : échange client_id/client_secret (client-credentials grant)
    - validate   : probe Helix minimal pour vérifier un couple client_id/token

    Pas de retry ici : la politique de retry appartient au PollScheduler.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        token_url: str = OAUTH_TOKEN_URL,
        probe_url: str = f"{HELIX_BASE_URL}/streams",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = session
        self.token_url = token_url
        self.probe_url = probe_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        LOGGER.debug(f"AuthManager init (timeout={timeout}s)")

    async def mint_token(self, client_id: str, client_secret: str) -> str:
        """
        Obtient un nouvel App Access Token.

        Args:
            client_id: Client ID de l'application Twitch
            client_secret: Secret de l'application

        Returns:
            Le bearer token (opaque)

        Raises:
            AuthError: arguments vides, statut non-2xx ou réponse sans token
            NetworkError: échec transport
        """
        client_id = clean_client_id(client_id)
        client_secret = clean_token(client_secret)
        if not client_id or not client_secret:
            raise AuthError("Cannot generate token: client id and client secret are required")

        data = {
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "client_credentials",
        }

        LOGGER.info("🔄 Generating app access token via client-credentials grant...")
        try:
            async with session_scope(self.session) as session:
                async with session.post(self.token_url, data=data, timeout=self.timeout) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        body = await resp.text()
                        LOGGER.error(f"❌ Token generation failed: {resp.status} - {body}")
                        raise AuthError(
                            f"Failed to generate token: {resp.status} {body}",
                            status=resp.status,
                            body=body,
                        )
                    result = await resp.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise AuthError(f"Failed to generate token: unreadable response ({e})") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            LOGGER.error(f"❌ Token endpoint unreachable: {e}")
            raise NetworkError(f"Token request failed: {e}") from e

        token = result.get("access_token") if isinstance(result, dict) else None
        if not token:
            raise AuthError(f"Failed to generate token: response had no access_token ({result})")

        LOGGER.info(f"✅ App access token generated (expires_in={result.get('expires_in', '?')}s)")
        return token

    async def validate(self, client_id: str, token: str) -> bool:
        """
        Vérifie qu'un couple client_id/token est accepté par Helix.

        Ne lève jamais : toute erreur (réseau comprise) donne False.

        Args:
            client_id: Client ID
            token: Access token (préfixes Bearer/oauth: tolérés)

        Returns:
            True si Helix répond 2xx
        """
        client_id = clean_client_id(client_id)
        token = clean_token(token)
        if not client_id or not token:
            LOGGER.warning("⚠️ Validation skipped: client id or token missing")
            return False

        try:
            async with session_scope(self.session) as session:
                async with session.get(
                    self.probe_url,
                    params={"first": "1"},
                    headers=helix_headers(client_id, token),
                    timeout=self.timeout,
                ) as resp:
                    ok = 200 <= resp.status < 300
                    if ok:
                        LOGGER.info("✅ Credentials validated")
                    else:
                        LOGGER.warning(f"⚠️ Credentials rejected ({resp.status})")
                    return ok
        except Exception as e:
            LOGGER.warning(f"⚠️ Credential validation failed: {e}")
            return False
