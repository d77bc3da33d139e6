"""
Tests pour storage/ (config, sources de credentials, store chiffré)
"""
import json
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from storage.config_loader import ConfigError, load_config, section
from storage.credential_sources import (
    from_config,
    from_env,
    prompt_manual_credentials,
    resolve_credentials,
)
from storage.credential_store import CredentialStore
from storage.crypto import SecretEncryptor
from watcher.message_types import Credentials


@pytest.mark.unit
class TestConfigLoader:
    """storage/config_loader.py"""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == {}

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("watcher:\n  interval_minutes: 5\nchannels: [foo, bar]\n", encoding="utf-8")

        config = load_config(path)

        assert config["channels"] == ["foo", "bar"]
        assert section(config, "watcher") == {"interval_minutes": 5}
        assert section(config, "missing") == {}

    def test_json_config_is_accepted(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"clientId": "cid", "clientSecret": "s"}), encoding="utf-8")

        assert load_config(path)["clientId"] == "cid"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("twitch: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)


@pytest.mark.unit
class TestCredentialSources:
    """Ordre config → env → store"""

    def test_from_config_section(self, mock_config):
        creds = from_config(mock_config)

        assert creds.client_id == "cfg_client_id"
        assert creds.client_secret == "cfg_secret"
        assert creds.access_token == ""

    def test_from_config_flat_keys(self):
        creds = from_config({"clientId": "cid", "accessToken": "tok"})

        assert creds == Credentials(client_id="cid", access_token="tok")
        assert not creds.has_secret

    def test_from_config_without_client_id(self):
        assert from_config({"twitch": {"client_secret": "orphan"}}) is None

    def test_from_env(self):
        creds = from_env({"TWITCH_CLIENT_ID": "env_cid", "TWITCH_CLIENT_SECRET": "env_secret"})

        assert creds.client_id == "env_cid"
        assert creds.has_secret

    def test_config_wins_over_env(self, mock_config):
        creds, source = resolve_credentials(mock_config, environ={"TWITCH_CLIENT_ID": "env_cid"})

        assert creds.client_id == "cfg_client_id"
        assert source == "config file"

    def test_env_wins_over_store(self):
        store = MagicMock()
        creds, source = resolve_credentials({}, store=store, environ={"TWITCH_CLIENT_ID": "env_cid"})

        assert creds.client_id == "env_cid"
        assert source == "environment variables"
        store.load.assert_not_called()

    def test_store_is_last(self):
        store = MagicMock()
        store.load.return_value = Credentials(client_id="stored", access_token="tok")

        creds, source = resolve_credentials({}, store=store, environ={})

        assert creds.client_id == "stored"
        assert source == "credential store"

    def test_nothing_found(self):
        assert resolve_credentials({}, store=None, environ={}) == (None, "none")


@pytest.mark.unit
class TestManualEntry:
    """prompt_manual_credentials"""

    @pytest.mark.asyncio
    async def test_validated_credentials_are_saved(self):
        auth = MagicMock()
        auth.validate = AsyncMock(return_value=True)
        store = MagicMock()

        creds = await prompt_manual_credentials(
            auth, store=store, input_fn=lambda prompt: " cid ", secret_fn=lambda prompt: "tok",
        )

        assert creds == Credentials(client_id="cid", access_token="tok")
        assert not creds.has_secret
        auth.validate.assert_awaited_once_with("cid", "tok")
        store.save.assert_called_once_with(creds)

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        auth = MagicMock()
        auth.validate = AsyncMock(return_value=False)
        store = MagicMock()

        creds = await prompt_manual_credentials(
            auth, store=store, input_fn=lambda prompt: "cid", secret_fn=lambda prompt: "bad", attempts=3,
        )

        assert creds is None
        assert auth.validate.await_count == 3
        store.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_input_cancels(self):
        auth = MagicMock()
        auth.validate = AsyncMock(return_value=True)

        creds = await prompt_manual_credentials(auth, input_fn=lambda prompt: "", secret_fn=lambda prompt: "tok")

        assert creds is None
        auth.validate.assert_not_awaited()


@pytest.mark.unit
class TestCredentialStore:
    """Store JSON avec token/secret chiffrés"""

    def test_round_trip_encrypts_secrets(self, tmp_path):
        store = CredentialStore(path=tmp_path / "creds.json", key_file=tmp_path / "key")
        creds = Credentials(client_id="cid", access_token="tok_plain", client_secret="secret_plain")

        store.save(creds)

        raw = (tmp_path / "creds.json").read_text(encoding="utf-8")
        assert "secret_plain" not in raw
        assert "tok_plain" not in raw
        assert json.loads(raw)["client_id"] == "cid"
        assert store.load() == creds

    def test_manual_credentials_have_no_secret(self, tmp_path):
        store = CredentialStore(path=tmp_path / "creds.json", key_file=tmp_path / "key")
        store.save(Credentials(client_id="cid", access_token="tok"))

        loaded = store.load()

        assert loaded.client_secret is None
        assert json.loads((tmp_path / "creds.json").read_text())["client_secret"] == ""

    def test_missing_file(self, tmp_path):
        assert CredentialStore(path=tmp_path / "none.json", key_file=tmp_path / "key").load() is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "creds.json"
        path.write_text("{not json", encoding="utf-8")

        assert CredentialStore(path=path, key_file=tmp_path / "key").load() is None

    def test_wrong_key(self, tmp_path):
        path = tmp_path / "creds.json"
        CredentialStore(path=path, key_file=tmp_path / "key_a").save(
            Credentials(client_id="cid", access_token="tok")
        )

        assert CredentialStore(path=path, key_file=tmp_path / "key_b").load() is None

    def test_clear(self, tmp_path):
        path = tmp_path / "creds.json"
        store = CredentialStore(path=path, key_file=tmp_path / "key")
        store.save(Credentials(client_id="cid", access_token="tok"))

        store.clear()
        store.clear()

        assert not path.exists()


@pytest.mark.unit
class TestSecretEncryptor:
    """storage/crypto.py"""

    def test_key_is_reused(self, tmp_path):
        key_file = tmp_path / "key"
        token = SecretEncryptor(key_file=key_file).encrypt("hello")

        assert SecretEncryptor(key_file=key_file).decrypt(token) == "hello"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_key_file_is_owner_only(self, tmp_path):
        key_file = tmp_path / "key"
        SecretEncryptor(key_file=key_file)

        assert os.stat(key_file).st_mode & 0o777 == 0o600

    def test_fingerprint(self, tmp_path):
        encryptor = SecretEncryptor(key_file=tmp_path / "key")

        assert len(encryptor.get_key_fingerprint()) == 16
