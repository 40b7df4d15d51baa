"""Async HTTP client for the Worktable API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from worktable.errors.exceptions import ERROR_CODES, TransientIOError, WorktableError

logger = logging.getLogger(__name__)


def error_from_response(response: httpx.Response) -> WorktableError:
    """Rebuild the server's error as the matching WorktableError subclass."""
    try:
        error = response.json().get("error") or {}
    except ValueError:
        error = {}
    code = error.get("code", "HTTP_ERROR")
    message = error.get("message") or f"HTTP {response.status_code}"
    cls = ERROR_CODES.get(code, WorktableError)
    exc = cls.__new__(cls)
    WorktableError.__init__(exc, code, message, error.get("details"), response.status_code)
    return exc


class WorktableAPIClient:
    """Thin async wrapper over the workspace, auth and organization endpoints.

    Network failures and 5xx responses raise TransientIOError; other error
    responses raise the WorktableError subclass named by the server's error code.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001/api/v1",
        token: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def _request(self, method: str, path: str, body: dict | None = None) -> Any:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            r = await self._http.request(method, f"{self.base_url}{path}", json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.debug("Request %s %s failed: %s", method, path, exc)
            raise TransientIOError(f"{method} {path} failed: {exc}") from exc

        if r.status_code >= 500:
            raise TransientIOError(f"{method} {path} returned {r.status_code}")
        if r.status_code >= 400:
            raise error_from_response(r)
        if r.status_code == 204:
            return None
        return r.json()

    # --- Auth ---

    async def register(self, email: str, password: str, organisation_name: str | None = None) -> dict:
        """Create an account; the returned access token is kept for later calls."""
        body: dict[str, Any] = {"email": email, "password": password}
        if organisation_name:
            body["organisation_name"] = organisation_name
        data = await self._request("POST", "/auth/register", body)
        self.token = data["access_token"]
        return data

    async def login(self, email: str, password: str) -> dict:
        data = await self._request("POST", "/auth/login", {"email": email, "password": password})
        self.token = data["access_token"]
        return data

    async def get_current_user(self) -> dict:
        return await self._request("GET", "/users/me")

    # --- Organizations ---

    async def list_orgs(self) -> list[dict]:
        return await self._request("GET", "/orgs")

    async def create_org(self, name: str) -> dict:
        return await self._request("POST", "/orgs", {"name": name})

    async def switch_org(self, org_id: str) -> dict:
        """Make *org_id* the active organization. Returns ``{organization, user}``."""
        return await self._request("POST", "/orgs/switch", {"orgId": org_id})

    # --- Workspace ---

    async def fetch_workspace(self) -> dict:
        """Fetch the active organization's table document (defaults if none saved yet)."""
        return await self._request("GET", "/workspace")

    async def save_workspace(self, org_id: str, payload: dict) -> dict:
        """Upsert the organization's table document with *payload* (title/content/columns/rows)."""
        return await self._request("PUT", "/workspace", {"orgId": org_id, **payload})

    async def list_column_types(self) -> list[dict]:
        return await self._request("GET", "/workspace/column-types")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
