"""PostgREST client for the ``projects`` table holding each user's canvas."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from .credentials import Credentials
from .errors import StoreError, not_authenticated
from .settings import Settings

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
DEFAULT_TIMEOUT = 30.0


def _error_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "error_description", "error", "hint"):
            if payload.get(key):
                return str(payload[key])
    return response.reason_phrase


class ProjectStore:
    """Reads and writes one project row per call.

    Rows are addressed by ``id`` and/or ``user_id`` filters; writes are plain
    PATCH requests so concurrent editors get last-write-wins semantics.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        access_token: str,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {access_token}",
        }
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, credentials: Credentials) -> "ProjectStore":
        settings.require_store_config()
        if not credentials.access_token:
            raise not_authenticated()
        return cls(settings.supabase_url, settings.supabase_anon_key, credentials.access_token)

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{PROJECTS_TABLE}"

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _filters(project_id: Optional[str], user_id: Optional[str]) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if project_id is not None:
            params["id"] = f"eq.{project_id}"
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        if not params:
            raise ValueError("A project id or user id filter is required")
        return params

    def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, self.table_url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(f"{method} {self.table_url} failed: {exc}")
            raise StoreError(
                code="E3001_STORE_UNREACHABLE",
                message=f"Could not reach the project store: {exc}",
                hint="Check SUPABASE_URL and your network connection.",
            ) from exc
        if response.status_code >= 400:
            reason = _error_reason(response)
            logger.warning(f"{method} {self.table_url} returned {response.status_code}: {reason}")
            raise StoreError(
                code="E3003_STORE_REJECTED",
                message=f"{reason} (HTTP {response.status_code})",
                hint="Check the project id and that your login is still valid.",
            )
        return response

    def fetch_project(
        self,
        columns: Sequence[str],
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch exactly one row; zero or several matches raise ``StoreError``."""
        params = {"select": ",".join(columns), **self._filters(project_id, user_id)}
        headers = {**self._headers, "Accept": SINGLE_OBJECT_MEDIA_TYPE}
        response = self._request("GET", params=params, headers=headers)
        row = response.json()
        if not isinstance(row, dict):
            raise StoreError(
                code="E3002_STORE_BAD_RESPONSE",
                message="Expected a single project row",
                hint="Make sure the filter matches exactly one project.",
            )
        return row

    def update_project(
        self,
        project_id: str,
        values: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> None:
        params = self._filters(project_id, user_id)
        headers = {**self._headers, "Prefer": "return=minimal"}
        self._request("PATCH", params=params, headers=headers, json=values)
        logger.info(f"Updated project {project_id} ({', '.join(sorted(values))})")
