from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .errors import not_authenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    access_token: str | None = None
    refresh_token: str | None = None
    user_id: str | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token)

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credentials":
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            user_id=data.get("user_id"),
        )


class CredentialStore:
    """Token file shared by the login command and the MCP server."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Credentials:
        if not self.path.exists():
            return Credentials()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {exc}")
            return Credentials()
        if not isinstance(data, dict):
            logger.warning(f"Ignoring credentials file without a JSON object: {self.path}")
            return Credentials()
        return Credentials.from_dict(data)

    def save(self, credentials: Credentials) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(credentials.to_dict(), indent=2), encoding="utf-8")

    def clear(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True

    def require_user_id(self) -> str:
        user_id = self.load().user_id
        if not user_id:
            raise not_authenticated()
        return user_id
