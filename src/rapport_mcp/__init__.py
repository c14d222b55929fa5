"""Rapport canvas MCP server package."""

from .canvas_tools import CanvasTools
from .credentials import Credentials, CredentialStore
from .errors import AuthError, ConfigError, RapportError, StoreError, ToolInputError
from .settings import Settings
from .store import ProjectStore

__all__ = [
    "AuthError",
    "CanvasTools",
    "ConfigError",
    "CredentialStore",
    "Credentials",
    "ProjectStore",
    "RapportError",
    "Settings",
    "StoreError",
    "ToolInputError",
]
