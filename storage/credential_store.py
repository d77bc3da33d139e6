#!/usr/bin/env python3
"""
CredentialStore
Persistance locale des credentials Twitch (JSON, secrets chiffrés)
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import InvalidToken

from storage.crypto import SecretEncryptor
from watcher.message_types import Credentials

LOGGER = logging.getLogger(__name__)


class CredentialStore:
    """
    Stocke un seul jeu de credentials dans un fichier JSON :

        {"client_id": "...", "access_token": "<fernet>", "client_secret": "<fernet>"}

    client_id reste en clair, token et secret sont chiffrés.
    """

    def __init__(
        self,
        path: Union[str, Path] = ".streamwatcher.json",
        encryptor: Optional[SecretEncryptor] = None,
        key_file: Union[str, Path] = ".streamwatcher.key",
    ):
        self.path = Path(path)
        self._encryptor = encryptor
        self._key_file = key_file

    @property
    def encryptor(self) -> SecretEncryptor:
        # Key file is only created once something needs encrypting
        if self._encryptor is None:
            self._encryptor = SecretEncryptor(key_file=self._key_file)
        return self._encryptor

    def load(self) -> Optional[Credentials]:
        """
        Charge les credentials sauvegardés

        Returns:
            Credentials ou None si absent/illisible
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            LOGGER.error(f"❌ Erreur lecture {self.path}: {e}")
            return None

        client_id = data.get("client_id")
        if not client_id:
            return None

        try:
            access_token = self._decrypt(data.get("access_token"))
            client_secret = self._decrypt(data.get("client_secret")) or None
        except InvalidToken:
            LOGGER.error(f"❌ Stored secrets in {self.path} cannot be decrypted with the current key")
            return None

        LOGGER.info(f"✅ Credentials chargés depuis {self.path}")
        return Credentials(client_id=client_id, access_token=access_token, client_secret=client_secret)

    def save(self, credentials: Credentials) -> None:
        """
        Sauvegarde les credentials (remplace le contenu précédent)

        Args:
            credentials: Credentials à sauvegarder
        """
        data = {
            "client_id": credentials.client_id,
            "access_token": self._encrypt(credentials.access_token),
            "client_secret": self._encrypt(credentials.client_secret),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        LOGGER.info(f"✅ Credentials sauvegardés dans {self.path} (secret: {credentials.has_secret})")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            LOGGER.info(f"🗑️ Credentials supprimés ({self.path})")

    def _encrypt(self, value: Optional[str]) -> str:
        return self.encryptor.encrypt(value) if value else ""

    def _decrypt(self, value: Optional[str]) -> str:
        return self.encryptor.decrypt(value) if value else ""
