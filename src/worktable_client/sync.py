"""Debounced synchronization of a TableState with the server.

The client edits its local ``TableState`` eagerly. Each edit restarts a
quiet-period timer and only the state after the last edit is sent. The server
copy is replaced wholesale on every save (last write wins).

Saves that fail are logged and remembered in ``last_error``. Nothing is
rolled back and nothing is retried on a timer: the next edit schedules the
next save, which carries the newer state anyway.
"""

from __future__ import annotations

import asyncio
import logging

from worktable.errors.exceptions import AuthenticationError, WorktableError
from worktable_client.api_client import WorktableAPIClient
from worktable_client.config import ClientConfig
from worktable_client.scheduler import Debouncer
from worktable_client.table import TableState

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0


class WorkspaceSync:
    """Keeps one TableState in step with the active organization's document."""

    def __init__(
        self,
        client: WorktableAPIClient,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        state: TableState | None = None,
    ) -> None:
        self.client = client
        self.state = state or TableState()
        self.org_id: str | None = None
        self.loaded = False
        self.saving = False
        self.last_error: WorktableError | None = None
        self._debouncer = Debouncer(debounce_seconds, self.save)
        self._save_lock = asyncio.Lock()
        self._unsubscribe = self.state.subscribe(self._on_change)
        # Edits wait for the first successful load
        self.state.editable = False

    @classmethod
    def from_config(cls, config: ClientConfig, token: str | None = None) -> WorkspaceSync:
        client = WorktableAPIClient(config.api_url, token=token, timeout=config.request_timeout)
        return cls(client, debounce_seconds=config.debounce_seconds)

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    async def start(self) -> None:
        """Resolve the caller's active organization and load its table."""
        user = await self.client.get_current_user()
        await self.load(user.get("current_org_id"))

    async def load(self, org_id: str | None = None) -> None:
        """Fetch the document once and replace local state with it.

        Without *org_id* the organization of the last attempt is retried, e.g.
        after the reload following a switch failed. Loading is not an edit, so
        it never schedules a save. Until a load succeeds the table refuses edits.
        """
        org_id = org_id or self.org_id
        if not org_id:
            raise AuthenticationError("No active organization for this session")
        try:
            document = await self.client.fetch_workspace()
        except WorktableError as exc:
            self.last_error = exc
            logger.warning("Loading workspace of org %s failed (%s): %s", org_id, exc.code, exc.message)
            raise
        served_org = document.get("org_id") or org_id
        if served_org != org_id:
            # Another session switched the active organization; follow the server
            logger.warning("Expected workspace of org %s, server returned org %s", org_id, served_org)
        self.state.load(document)
        self.org_id = served_org
        self.loaded = True
        self.state.editable = True
        self.last_error = None

    def _on_change(self, state: TableState) -> None:
        if self.loaded and self.org_id:
            self._debouncer.schedule()

    async def save(self) -> bool:
        """Send the full current state. Returns False if the save failed."""
        async with self._save_lock:
            if not self.loaded or not self.org_id:
                return False
            version = self.state.version
            org_id = self.org_id
            self.saving = True
            try:
                await self.client.save_workspace(org_id, self.state.to_payload())
            except WorktableError as exc:
                self.last_error = exc
                logger.warning(
                    "Autosave failed for org %s (%s): %s",
                    org_id, exc.code, exc.message,
                )
                return False
            finally:
                self.saving = False

            self.last_error = None
            self.state.mark_saved(version)
            logger.debug("Saved workspace of org %s at version %d", org_id, version)
            return True

    async def flush(self) -> None:
        """Send a pending save immediately instead of waiting for the quiet period."""
        await self._debouncer.flush()

    async def switch_organization(self, org_id: str) -> dict:
        """Switch the active organization and reload the table for it.

        Pending edits are saved to the current organization first. If the
        switch is refused (not a member, unknown organization) the local state
        and active organization are left untouched and the error propagates.
        If the switch succeeds but the reload fails, the error propagates with
        the new organization recorded; ``load()`` retries it.
        """
        await self.flush()
        result = await self.client.switch_org(org_id)

        self._debouncer.cancel()
        self.loaded = False
        self.org_id = result["organization"]["org_id"]
        self.state.reset()
        self.state.editable = False
        await self.load()
        return result

    async def close(self) -> None:
        """Flush outstanding edits, stop listening and release the HTTP client."""
        await self.flush()
        await self._debouncer.drain()
        self._unsubscribe()
        await self.client.aclose()
