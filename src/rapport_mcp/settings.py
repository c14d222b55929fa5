"""Runtime configuration read from the environment (and an optional ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_AUTH_URL = "http://localhost:5176/mcp/auth"
DEFAULT_CALLBACK_PORT = 3456
DEFAULT_LOGIN_TIMEOUT = 5 * 60
DEFAULT_LOG_LEVEL = "INFO"
CONFIG_DIR_NAME = ".rapport-mcp"


def _default_home() -> Path:
    return Path.home() / CONFIG_DIR_NAME


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(
            code="E1001_CONFIG_ERROR",
            message=f"Invalid integer for {name}: {raw!r}",
            hint=f"Set {name} to a whole number or unset it.",
        ) from exc


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    home_dir: Path
    auth_url: str = DEFAULT_AUTH_URL
    callback_port: int = DEFAULT_CALLBACK_PORT
    login_timeout: int = DEFAULT_LOGIN_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def credentials_path(self) -> Path:
        return self.home_dir / "config.json"

    @property
    def callback_url(self) -> str:
        return f"http://localhost:{self.callback_port}/callback"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        home = os.environ.get("RAPPORT_MCP_HOME")
        return cls(
            supabase_url=os.environ.get("SUPABASE_URL", "").rstrip("/"),
            supabase_anon_key=os.environ.get("SUPABASE_ANON_KEY", ""),
            home_dir=Path(home).expanduser() if home else _default_home(),
            auth_url=os.environ.get("RAPPORT_AUTH_URL", DEFAULT_AUTH_URL),
            callback_port=_int_env("RAPPORT_CALLBACK_PORT", DEFAULT_CALLBACK_PORT),
            login_timeout=_int_env("RAPPORT_LOGIN_TIMEOUT", DEFAULT_LOGIN_TIMEOUT),
            log_level=os.environ.get("RAPPORT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def require_store_config(self) -> None:
        missing = [
            name
            for name, value in (
                ("SUPABASE_URL", self.supabase_url),
                ("SUPABASE_ANON_KEY", self.supabase_anon_key),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                code="E1001_CONFIG_ERROR",
                message=f"Missing configuration: {', '.join(missing)}",
                hint="Export the variables or add them to a .env file.",
            )
