"""Tests for debounced synchronization of the table with the server."""

import asyncio

import pytest

from worktable.errors.exceptions import AuthenticationError, AuthorizationError, TransientIOError
from worktable_client.api_client import WorktableAPIClient
from worktable_client.sync import WorkspaceSync
from worktable_client.table import TableEditError

DEBOUNCE = 0.05
# Long enough that only explicit flushes reach the in-process server
E2E_DEBOUNCE = 10
ORG_A = "org_aaaaaaaaaaaaaaaa"
ORG_B = "org_bbbbbbbbbbbbbbbb"


class FakeClient:
    """Records calls and serves canned documents per organization."""

    def __init__(self, documents=None, current_org=ORG_A):
        self.documents = documents or {}
        self.current_org = current_org
        self.saves = []
        self.fail_saves = 0
        self.closed = False
        self.fail_fetches = 0

    async def get_current_user(self):
        return {"user_id": "usr_1", "current_org_id": self.current_org}

    async def fetch_workspace(self):
        if self.fail_fetches:
            self.fail_fetches -= 1
            raise TransientIOError("GET /workspace failed: connection reset")
        doc = self.documents.get(self.current_org, {})
        return {"org_id": self.current_org, **doc}

    async def save_workspace(self, org_id, payload):
        if self.fail_saves:
            self.fail_saves -= 1
            raise TransientIOError("PUT /workspace failed: connection reset")
        self.saves.append((org_id, payload))
        self.documents[org_id] = payload
        return {"org_id": org_id, **payload}

    async def switch_org(self, org_id):
        if org_id not in self.documents:
            raise AuthorizationError(f"User is not a member of organization '{org_id}'")
        self.current_org = org_id
        return {"organization": {"org_id": org_id}, "user": {"current_org_id": org_id}}

    async def aclose(self):
        self.closed = True


TABLE = {
    "title": "Roadmap",
    "content": "",
    "columns": [{"key": "task", "label": "Task", "inputType": "text"}],
    "rows": [{"_id": "row_1", "task": "write spec"}],
}


@pytest.fixture
async def fake_sync():
    fake = FakeClient({ORG_A: dict(TABLE), ORG_B: {"title": "Other", "columns": [], "rows": []}})
    sync = WorkspaceSync(fake, debounce_seconds=DEBOUNCE)
    await sync.start()
    yield sync, fake
    await sync.close()


@pytest.mark.asyncio
async def test_load_never_schedules_a_save(fake_sync):
    sync, fake = fake_sync
    assert sync.loaded
    assert sync.org_id == ORG_A
    assert sync.state.title == "Roadmap"
    assert not sync.save_pending

    await asyncio.sleep(DEBOUNCE * 3)
    assert fake.saves == []


@pytest.mark.asyncio
async def test_rapid_edits_send_one_save_with_final_state(fake_sync):
    sync, fake = fake_sync
    row_id = sync.state.row_ids[0]

    sync.state.edit_cell(row_id, "task", "draft")
    await asyncio.sleep(DEBOUNCE / 5)
    sync.state.edit_cell(row_id, "task", "final")
    assert sync.save_pending

    await asyncio.sleep(DEBOUNCE * 4)

    assert len(fake.saves) == 1
    org_id, payload = fake.saves[0]
    assert org_id == ORG_A
    assert payload["rows"] == [{"_id": row_id, "task": "final"}]
    assert not sync.state.dirty


@pytest.mark.asyncio
async def test_failed_save_keeps_local_state_and_next_edit_retries(fake_sync):
    sync, fake = fake_sync
    fake.fail_saves = 1
    row_id = sync.state.row_ids[0]

    sync.state.edit_cell(row_id, "task", "offline edit")
    await asyncio.sleep(DEBOUNCE * 4)

    assert fake.saves == []
    assert isinstance(sync.last_error, TransientIOError)
    assert sync.state.cells(row_id)["task"] == "offline edit"
    assert sync.state.dirty
    assert not sync.save_pending

    sync.state.set_title("Roadmap v2")
    await asyncio.sleep(DEBOUNCE * 4)

    assert len(fake.saves) == 1
    assert fake.saves[0][1]["rows"][0]["task"] == "offline edit"
    assert sync.last_error is None
    assert not sync.state.dirty


@pytest.mark.asyncio
async def test_switch_flushes_pending_edits_to_old_org(fake_sync):
    sync, fake = fake_sync
    sync.state.set_title("Last words")

    await sync.switch_organization(ORG_B)

    assert fake.saves[0][0] == ORG_A
    assert fake.saves[0][1]["title"] == "Last words"
    assert sync.org_id == ORG_B
    assert sync.state.title == "Other"
    assert sync.state.rows == []

    await asyncio.sleep(DEBOUNCE * 3)
    assert len(fake.saves) == 1


@pytest.mark.asyncio
async def test_refused_switch_leaves_state_untouched(fake_sync):
    sync, fake = fake_sync
    before = sync.state.to_payload()

    with pytest.raises(AuthorizationError):
        await sync.switch_organization("org_cccccccccccccccc")

    assert sync.org_id == ORG_A
    assert sync.loaded
    assert sync.state.to_payload() == before


@pytest.mark.asyncio
async def test_failed_reload_after_switch_can_be_retried(fake_sync):
    sync, fake = fake_sync
    fake.fail_fetches = 1

    with pytest.raises(TransientIOError):
        await sync.switch_organization(ORG_B)

    assert sync.org_id == ORG_B
    assert not sync.loaded
    assert isinstance(sync.last_error, TransientIOError)
    with pytest.raises(TableEditError):
        sync.state.set_title("lost edit")
    assert not sync.save_pending

    await sync.load()

    assert sync.loaded
    assert sync.state.title == "Other"
    sync.state.set_title("Other v2")
    await sync.flush()
    assert fake.saves[-1] == (ORG_B, sync.state.to_payload())


@pytest.mark.asyncio
async def test_edits_are_refused_before_first_load():
    sync = WorkspaceSync(FakeClient({ORG_A: dict(TABLE)}), debounce_seconds=DEBOUNCE)
    with pytest.raises(TableEditError):
        sync.state.add_column()
    await sync.start()
    assert sync.state.add_column()
    await sync.close()


@pytest.mark.asyncio
async def test_load_without_active_org():
    sync = WorkspaceSync(FakeClient(current_org=None), debounce_seconds=DEBOUNCE)
    with pytest.raises(AuthenticationError):
        await sync.start()
    assert not sync.loaded


@pytest.mark.asyncio
async def test_close_flushes_and_closes_client():
    fake = FakeClient({ORG_A: dict(TABLE)})
    sync = WorkspaceSync(fake, debounce_seconds=10)
    await sync.start()
    sync.state.set_content("unsaved")

    await sync.close()

    assert [payload["content"] for _, payload in fake.saves] == ["unsaved"]
    assert fake.closed


# ── Against the in-process API ─────────────────────────────────────────────────


@pytest.fixture
async def api(client, alice):
    return WorktableAPIClient("http://test/api/v1", token=alice["access_token"], http_client=client)


@pytest.mark.asyncio
async def test_end_to_end_edit_and_reload(api, client, alice):
    sync = WorkspaceSync(api, debounce_seconds=E2E_DEBOUNCE)
    await sync.start()
    assert sync.org_id == alice["organization"]["org_id"]

    key = sync.state.add_column("Task")
    row_id = sync.state.add_row()
    sync.state.edit_cell(row_id, key, "ship it")
    await sync.flush()

    other = WorkspaceSync(api, debounce_seconds=E2E_DEBOUNCE)
    await other.start()
    assert other.state.row_ids == [row_id]
    assert other.state.cells(row_id) == {key: "ship it"}
    assert other.state.column(key)["label"] == "Task"

    await sync.close()
    await other.close()


@pytest.mark.asyncio
async def test_end_to_end_switch_reloads_other_org(api, alice):
    sync = WorkspaceSync(api, debounce_seconds=E2E_DEBOUNCE)
    await sync.start()
    home = sync.org_id
    sync.state.set_title("Home table")

    labs = await api.create_org("Alice Labs")
    await sync.switch_organization(labs["org_id"])

    assert sync.org_id == labs["org_id"]
    assert sync.state.title == "Untitled Workspace"

    await api.switch_org(home)
    assert (await api.fetch_workspace())["title"] == "Home table"
    await sync.close()


@pytest.mark.asyncio
async def test_end_to_end_forbidden_switch(api, bob):
    sync = WorkspaceSync(api, debounce_seconds=E2E_DEBOUNCE)
    await sync.start()

    with pytest.raises(AuthorizationError):
        await sync.switch_organization(bob["organization"]["org_id"])

    assert sync.loaded
    await sync.close()


@pytest.mark.asyncio
async def test_api_client_maps_validation_errors(api, alice):
    from worktable.errors.exceptions import ValidationError

    with pytest.raises(ValidationError) as exc_info:
        await api.save_workspace(alice["organization"]["org_id"], {"title": "", "columns": [], "rows": []})
    assert exc_info.value.field == "title"
    assert exc_info.value.status_code == 400
