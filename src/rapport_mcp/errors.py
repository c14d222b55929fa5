from __future__ import annotations

from dataclasses import dataclass

NOT_AUTHENTICATED_MESSAGE = "Not authenticated. Run `rapport-mcp login` to authenticate."


@dataclass
class RapportError(Exception):
    code: str
    message: str
    hint: str

    def __str__(self) -> str:
        return self.message


class ConfigError(RapportError):
    pass


class AuthError(RapportError):
    pass


class StoreError(RapportError):
    pass


class ToolInputError(RapportError):
    pass


def not_authenticated() -> AuthError:
    return AuthError(
        code="E1101_NOT_AUTHENTICATED",
        message=NOT_AUTHENTICATED_MESSAGE,
        hint="Run `rapport-mcp login` and complete the browser sign-in.",
    )
