"""
Tests pour twitchapi/transports/helix_streams.py
Lots de 100 logins, 401, erreurs API et réseau, mapping des entrées
"""
import asyncio

import aiohttp
import pytest

from conftest import FakeResponse
from twitchapi.errors import ApiError, NetworkError, Unauthorized
from twitchapi.transports.helix_streams import HelixStreamsClient, chunk_logins


def stream_entry(login, viewers=1234, game="Just Chatting"):
    return {
        "user_login": login,
        "user_name": login.capitalize(),
        "title": f"{login} stream",
        "game_name": game,
        "viewer_count": viewers,
        "thumbnail_url": f"https://static-cdn.jtvnw.net/previews-ttv/live_user_{login}-{{width}}x{{height}}.jpg",
    }


@pytest.mark.unit
class TestChunkLogins:
    """Découpage des logins"""

    def test_lowercases_and_dedupes(self):
        assert chunk_logins(["Foo", "foo", "BAR", ""]) == [["foo", "bar"]]

    def test_batches_of_100(self):
        batches = chunk_logins([f"user{i}" for i in range(250)])
        assert [len(b) for b in batches] == [100, 100, 50]

    def test_empty(self):
        assert chunk_logins([]) == []


@pytest.mark.unit
class TestFetchLive:
    """HelixStreamsClient.fetch_live"""

    @pytest.mark.asyncio
    async def test_empty_list_makes_no_request(self, fake_session):
        session = fake_session()
        client = HelixStreamsClient(session=session)

        assert await client.fetch_live([], "cid", "tok") == []
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_150_names_make_two_requests(self, fake_session):
        session = fake_session(
            FakeResponse(json_data={"data": [stream_entry("user3")]}),
            FakeResponse(json_data={"data": [stream_entry("user120")]}),
        )
        client = HelixStreamsClient(session=session)

        result = await client.fetch_live([f"user{i}" for i in range(150)], "cid", "tok")

        assert len(session.calls) == 2
        first_params = session.calls[0][2]["params"]
        second_params = session.calls[1][2]["params"]
        assert len(first_params) == 100
        assert len(second_params) == 50
        assert first_params[0] == ("user_login", "user0")
        assert [s.name for s in result] == ["user3", "user120"]

    @pytest.mark.asyncio
    async def test_headers_and_url(self, fake_session):
        session = fake_session(FakeResponse(json_data={"data": []}))
        client = HelixStreamsClient(session=session, streams_url="https://example.test/helix/streams")

        await client.fetch_live(["foo"], " cid ", "Bearer tok")

        method, url, kwargs = session.calls[0]
        assert method == "GET"
        assert url == "https://example.test/helix/streams"
        assert kwargs["headers"] == {"Client-Id": "cid", "Authorization": "Bearer tok"}

    @pytest.mark.asyncio
    async def test_maps_live_entries(self, fake_session):
        session = fake_session(FakeResponse(json_data={"data": [stream_entry("foo", viewers=0)]}))
        client = HelixStreamsClient(session=session, clock=lambda: 55.0)

        [status] = await client.fetch_live(["Foo"], "cid", "tok")

        assert status.name == "foo"
        assert status.is_live is True
        assert status.title == "foo stream"
        assert status.game == "Just Chatting"
        assert status.viewers == "0"
        assert status.thumbnail_url.endswith("live_user_foo-400x225.jpg")
        assert status.last_checked == 55.0

    @pytest.mark.asyncio
    async def test_missing_optional_fields(self, fake_session):
        session = fake_session(FakeResponse(json_data={"data": [{"user_login": "foo"}]}))
        client = HelixStreamsClient(session=session)

        [status] = await client.fetch_live(["foo"], "cid", "tok")

        assert status.viewers is None
        assert status.thumbnail_url is None

    @pytest.mark.asyncio
    async def test_401_aborts_remaining_batches(self, fake_session):
        session = fake_session(
            FakeResponse(status=401, reason="Unauthorized"),
            FakeResponse(json_data={"data": []}),
        )
        client = HelixStreamsClient(session=session)

        with pytest.raises(Unauthorized):
            await client.fetch_live([f"user{i}" for i in range(150)], "cid", "tok")
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_other_status_raises_api_error(self, fake_session):
        session = fake_session(FakeResponse(status=503, reason="Service Unavailable"))
        client = HelixStreamsClient(session=session)

        with pytest.raises(ApiError) as exc_info:
            await client.fetch_live(["foo"], "cid", "tok")
        assert exc_info.value.status == 503
        assert "503 Service Unavailable" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_json_raises_api_error(self, fake_session):
        session = fake_session(FakeResponse(json_error=ValueError("Expecting value")))
        client = HelixStreamsClient(session=session)

        with pytest.raises(ApiError):
            await client.fetch_live(["foo"], "cid", "tok")

    @pytest.mark.asyncio
    async def test_null_data_means_nobody_live(self, fake_session):
        session = fake_session(FakeResponse(json_data={"data": None}))
        client = HelixStreamsClient(session=session)

        assert await client.fetch_live(["foo"], "cid", "tok") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"data": "oops"},
        {"data": {"user_login": "foo"}},
        ["not", "an", "object"],
    ])
    async def test_unexpected_shape_raises_api_error(self, fake_session, payload):
        session = fake_session(FakeResponse(json_data=payload))
        client = HelixStreamsClient(session=session)

        with pytest.raises(ApiError) as exc_info:
            await client.fetch_live(["foo"], "cid", "tok")
        assert "malformed response" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        aiohttp.ClientConnectionError("connection reset"),
        asyncio.TimeoutError(),
    ])
    async def test_transport_failure_raises_network_error(self, fake_session, error):
        session = fake_session(error)
        client = HelixStreamsClient(session=session)

        with pytest.raises(NetworkError):
            await client.fetch_live(["foo"], "cid", "tok")
