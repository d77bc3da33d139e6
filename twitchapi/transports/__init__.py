"""
twitchapi/transports/
=====================

Clients de transport pour l'API Twitch.

Modules:
- helix_streams : lookups /helix/streams par lots de 100 (App Token)
"""

from twitchapi.transports.helix_streams import HelixStreamsClient, chunk_logins

__all__ = ["HelixStreamsClient", "chunk_logins"]
