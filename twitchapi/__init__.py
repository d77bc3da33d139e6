"""
twitchapi/
==========

Module dédié à TOUTE la gestion de l'API Twitch.

Organisation:
- auth_manager.py : App Access Token (client-credentials) + probe de validation
- errors.py : AuthError / Unauthorized / ApiError / NetworkError
- http.py : plumbing aiohttp partagé
- transports/ : Clients API Twitch
  - helix_streams.py : /helix/streams par lots (lecture seule)

Philosophie:
- Séparation claire : watcher/ = logique de polling, twitchapi/ = Twitch-specific
- Testable : Code Twitch isolé = mocking facile
"""

from twitchapi.auth_manager import AuthManager
from twitchapi.errors import ApiError, AuthError, NetworkError, Unauthorized

__all__ = ["AuthManager", "AuthError", "Unauthorized", "ApiError", "NetworkError"]
