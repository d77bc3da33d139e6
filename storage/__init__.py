"""
StreamWatcher Storage Module
Config file, credential sources and encrypted local credential store
"""

from .credential_store import CredentialStore
from .crypto import SecretEncryptor

__all__ = ['CredentialStore', 'SecretEncryptor']
