from __future__ import annotations

import json
from pathlib import Path

import pytest

from rapport_mcp.credentials import Credentials, CredentialStore
from rapport_mcp.errors import AuthError, ConfigError
from rapport_mcp.settings import DEFAULT_CALLBACK_PORT, Settings


def test_round_trip(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "nested" / "config.json")
    store.save(Credentials(access_token="a", refresh_token="r", user_id="u"))

    loaded = store.load()
    assert loaded == Credentials(access_token="a", refresh_token="r", user_id="u")
    assert loaded.authenticated
    assert json.loads(store.path.read_text()) == {
        "access_token": "a",
        "refresh_token": "r",
        "user_id": "u",
    }


def test_missing_file_is_unauthenticated(tmp_path: Path) -> None:
    credentials = CredentialStore(tmp_path / "config.json").load()
    assert credentials == Credentials()
    assert not credentials.authenticated


def test_corrupt_file_is_unauthenticated(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert CredentialStore(path).load() == Credentials()
    path.write_text("[1, 2]")
    assert CredentialStore(path).load() == Credentials()


def test_clear_reports_whether_a_file_existed(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "config.json")
    store.save(Credentials(access_token="a"))
    assert store.clear() is True
    assert store.clear() is False
    assert not store.path.exists()


def test_require_user_id(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "config.json")
    with pytest.raises(AuthError) as excinfo:
        store.require_user_id()
    assert "rapport-mcp login" in str(excinfo.value)

    store.save(Credentials(access_token="a", user_id="user-7"))
    assert store.require_user_id() == "user-7"


def test_settings_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://db.example.test/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("RAPPORT_MCP_HOME", str(tmp_path))
    monkeypatch.setenv("RAPPORT_CALLBACK_PORT", "4000")
    monkeypatch.delenv("RAPPORT_LOGIN_TIMEOUT", raising=False)
    monkeypatch.setenv("RAPPORT_LOG_LEVEL", "debug")

    settings = Settings.from_env(dotenv=False)

    assert settings.supabase_url == "https://db.example.test"
    assert settings.credentials_path == tmp_path / "config.json"
    assert settings.callback_port == 4000
    assert settings.callback_url == "http://localhost:4000/callback"
    assert settings.login_timeout == 300
    assert settings.log_level == "DEBUG"
    settings.require_store_config()


def test_settings_defaults(monkeypatch) -> None:
    for name in (
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "RAPPORT_MCP_HOME",
        "RAPPORT_CALLBACK_PORT",
        "RAPPORT_AUTH_URL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env(dotenv=False)

    assert settings.home_dir.name == ".rapport-mcp"
    assert settings.callback_port == DEFAULT_CALLBACK_PORT
    with pytest.raises(ConfigError) as excinfo:
        settings.require_store_config()
    assert "SUPABASE_URL" in excinfo.value.message
    assert "SUPABASE_ANON_KEY" in excinfo.value.message


def test_settings_rejects_bad_port(monkeypatch) -> None:
    monkeypatch.setenv("RAPPORT_CALLBACK_PORT", "http")
    with pytest.raises(ConfigError):
        Settings.from_env(dotenv=False)
