"""
twitchapi/errors.py
===================

Error taxonomy for Twitch calls.

Rooted in the pyTwitchAPI exception hierarchy so a caller can catch either
the library's classes or ours:

- AuthError     : bad/missing credentials, failed token mint
- Unauthorized  : 401 on a Helix query (expired/invalid token)
- ApiError      : any other non-success HTTP status
- NetworkError  : transport failure (DNS, reset, timeout)
"""
from typing import Optional

from twitchAPI.type import (
    TwitchAPIException,
    TwitchAuthorizationException,
    UnauthorizedException,
)


class AuthError(TwitchAuthorizationException):
    """Credentials missing or rejected by the token endpoint."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class Unauthorized(UnauthorizedException):
    """Helix answered 401: the token is expired or does not match the client id."""

    def __init__(self, message: str = "Unauthorized: Invalid Client ID or Access Token."):
        super().__init__(message)
        self.status = 401


class ApiError(TwitchAPIException):
    """Helix answered with a non-success status other than 401."""

    def __init__(self, status: int, reason: str = ""):
        super().__init__(f"Twitch API Error: {status} {reason}".strip())
        self.status = status
        self.reason = reason


class NetworkError(TwitchAPIException):
    """The request never produced an HTTP response."""


__all__ = ["AuthError", "Unauthorized", "ApiError", "NetworkError"]
