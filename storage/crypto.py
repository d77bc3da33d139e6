"""
StreamWatcher Storage - Secret Encryption
Chiffrement du client secret et de l'access token avec Fernet (AES-128-CBC + HMAC)
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

LOGGER = logging.getLogger(__name__)


class SecretEncryptor:
    """
    Gère le chiffrement/déchiffrement des secrets Twitch avec Fernet

    Fernet = AES-128-CBC + HMAC-SHA256
    - Authentification ET chiffrement
    - Protection contre tampering
    """

    def __init__(self, key_file: Union[str, Path] = ".streamwatcher.key"):
        """
        Initialize encryptor with encryption key

        Args:
            key_file: Path to the encryption key file (created if missing)
        """
        self.key_file = Path(key_file)
        self.key: Optional[bytes] = None
        self.fernet: Optional[Fernet] = None

        self._load_or_generate_key()

    def _load_or_generate_key(self):
        """Load existing key or generate new one"""
        if self.key_file.exists():
            self.key = self.key_file.read_bytes().strip()
            self.fernet = Fernet(self.key)
            LOGGER.debug(f"🔑 Encryption key loaded from {self.key_file}")
            return

        self.key = Fernet.generate_key()
        self.fernet = Fernet(self.key)

        self.key_file.parent.mkdir(parents=True, exist_ok=True)
        self.key_file.write_bytes(self.key)
        # Owner only
        os.chmod(self.key_file, 0o600)

        LOGGER.info(f"🔑 New encryption key generated and saved to {self.key_file}")
        LOGGER.warning("⚠️ Without this key file the stored secrets cannot be decrypted")

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a secret string

        Args:
            plaintext: Secret to encrypt

        Returns:
            Fernet token (url-safe base64 text)
        """
        if not self.fernet:
            raise RuntimeError("Encryptor not initialized")
        return self.fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, encrypted: str) -> str:
        """
        Decrypt a secret string

        Raises:
            InvalidToken: wrong key or tampered value
        """
        if not self.fernet:
            raise RuntimeError("Encryptor not initialized")
        try:
            return self.fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            LOGGER.error("❌ Decryption failed: Invalid token or wrong key")
            raise

    def get_key_fingerprint(self) -> str:
        """SHA256 of the key, first 16 chars (for logs)"""
        if not self.key:
            return "NO_KEY"
        return hashlib.sha256(self.key).hexdigest()[:16]
