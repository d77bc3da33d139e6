"""
Pytest configuration for CI tests
Provides common fixtures and test config (no real Twitch credentials needed)
"""
from typing import Any, List, Optional

import pytest

from watcher.message_bus import MessageBus
from watcher.message_types import ChannelStatus, Credentials


class FakeResponse:
    """Minimal stand-in for an aiohttp response used as `async with`."""

    def __init__(
        self,
        status: int = 200,
        json_data: Any = None,
        text: str = "",
        reason: str = "OK",
        json_error: Optional[Exception] = None,
    ):
        self.status = status
        self.reason = reason
        self._json = json_data
        self._text = text
        self._json_error = json_error

    async def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._json

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Records get/post calls and replays queued responses.

    A queued exception is raised instead of returning a response.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[tuple] = []

    def _next(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)


def live_status(name: str, game: Optional[str] = "Chess", title: str = "hello", viewers: str = "42") -> ChannelStatus:
    """Entry as returned by the Helix client for a live channel"""
    return ChannelStatus(name=name.lower(), is_live=True, title=title, game=game, viewers=viewers)


@pytest.fixture
def fake_session():
    """Factory: fake_session(FakeResponse(...), ...)"""
    def _make(*responses):
        return FakeSession(list(responses))
    return _make


@pytest.fixture
def bus():
    return MessageBus()


@pytest.fixture
def secret_credentials():
    """Client id + secret, no token yet"""
    return Credentials(client_id="test_client_id", client_secret="test_secret")


@pytest.fixture
def manual_credentials():
    """Manual entry: token but no secret (cannot refresh)"""
    return Credentials(client_id="test_client_id", access_token="manual_token")


@pytest.fixture
def mock_config():
    """Mock configuration for tests"""
    return {
        'twitch': {
            'client_id': 'cfg_client_id',
            'client_secret': 'cfg_secret',
            'timeout': 5,
        },
        'channels': ['foo', 'BAR'],
        'watcher': {
            'interval_minutes': 5,
            'command_template': 'mpv {{url}}',
            'launcher': 'process',
        },
        'notifications': {
            'enabled': True,
            'sound': False,
        },
    }
