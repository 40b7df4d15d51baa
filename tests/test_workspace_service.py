"""Tests for fetching and upserting the per-organization workspace document."""

import pytest
from sqlalchemy import func, select

from worktable.db.models.workspace import WorkspaceRow
from worktable.errors.exceptions import InvalidIdentifierError, ValidationError
from worktable.repositories.org_repo import OrgRepository
from worktable.services.workspace_service import fetch_workspace, is_valid_org_id, upsert_workspace

COLUMNS = [
    {"key": "task", "label": "Task", "inputType": "text"},
    {"key": "status", "label": "Status", "inputType": "select", "options": ["todo", "done"]},
]
ROWS = [{"_id": "row_1", "task": "write spec", "status": "todo"}]


async def _seed_org(db_session, name="Acme") -> str:
    org = await OrgRepository(db_session).create_org(name=name, created_by="usr_seed")
    await db_session.commit()
    return org.org_id


async def _count(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(WorkspaceRow))).scalar_one()


def test_org_id_format():
    assert is_valid_org_id("org_0123456789abcdef")
    assert not is_valid_org_id("org_0123456789ABCDEF")
    assert not is_valid_org_id("org_123")
    assert not is_valid_org_id("0123456789abcdef")
    assert not is_valid_org_id(None)


@pytest.mark.asyncio
async def test_fetch_without_document_returns_default_and_never_writes(db_session):
    org_id = await _seed_org(db_session)

    doc = await fetch_workspace(db_session, org_id)

    assert doc.org_id == org_id
    assert doc.title == "Untitled Workspace"
    assert doc.content == ""
    assert doc.columns == []
    assert doc.rows == []
    assert doc.workspace_id is None
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_upsert_creates_then_fetch_returns_it(db_session):
    org_id = await _seed_org(db_session)

    saved = await upsert_workspace(db_session, org_id, "Roadmap", None, COLUMNS, ROWS, "usr_author")

    assert saved.workspace_id.startswith("wks_")
    assert saved.content == ""
    assert saved.created_by == "usr_author"

    fetched = (await fetch_workspace(db_session, org_id)).to_wire()
    assert fetched["title"] == "Roadmap"
    assert fetched["columns"] == COLUMNS
    assert fetched["rows"] == ROWS


@pytest.mark.asyncio
async def test_upsert_replaces_wholesale_keeping_creator(db_session):
    org_id = await _seed_org(db_session)
    first = await upsert_workspace(db_session, org_id, "Roadmap", "v1", COLUMNS, ROWS, "usr_a")

    second = await upsert_workspace(db_session, org_id, "Plan", "v2", COLUMNS[:1], [], "usr_b")

    assert second.workspace_id == first.workspace_id
    assert second.created_by == "usr_a"
    assert second.title == "Plan"
    assert second.content == "v2"
    assert [c.key for c in second.columns] == ["task"]
    assert second.rows == []
    assert await _count(db_session) == 1


@pytest.mark.asyncio
async def test_upsert_is_idempotent(db_session):
    org_id = await _seed_org(db_session)
    first = await upsert_workspace(db_session, org_id, "Roadmap", "", COLUMNS, ROWS, "usr_a")
    second = await upsert_workspace(db_session, org_id, "Roadmap", "", COLUMNS, ROWS, "usr_a")

    assert second.to_wire() == first.to_wire()
    assert await _count(db_session) == 1


@pytest.mark.asyncio
async def test_documents_are_isolated_per_org(db_session):
    org_a = await _seed_org(db_session, "A")
    org_b = await _seed_org(db_session, "B")
    await upsert_workspace(db_session, org_a, "A table", "", COLUMNS, ROWS, "usr_a")

    doc_b = await fetch_workspace(db_session, org_b)

    assert doc_b.title == "Untitled Workspace"
    assert doc_b.rows == []


@pytest.mark.asyncio
async def test_server_tolerates_orphan_keys_and_rows_without_id(db_session):
    org_id = await _seed_org(db_session)
    rows = [{"task": "legacy", "col_gone": "stale"}]
    saved = await upsert_workspace(db_session, org_id, "T", "", COLUMNS[:1], rows, "usr_a")
    assert saved.rows == rows


@pytest.mark.asyncio
async def test_unknown_input_type_is_accepted(db_session):
    org_id = await _seed_org(db_session)
    columns = [{"key": "stars", "label": "Stars", "inputType": "rating"}]
    saved = await upsert_workspace(db_session, org_id, "T", "", columns, [], "usr_a")
    assert saved.to_wire()["columns"] == columns


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "org_id, title, columns, rows, field",
    [
        (None, "T", [], [], "orgId"),
        ("org_0123456789abcdef", None, [], [], "title"),
        ("org_0123456789abcdef", "", [], [], "title"),
        ("org_0123456789abcdef", "T", None, [], "columns"),
        ("org_0123456789abcdef", "T", [], None, "rows"),
    ],
)
async def test_upsert_missing_fields(db_session, org_id, title, columns, rows, field):
    with pytest.raises(ValidationError) as exc_info:
        await upsert_workspace(db_session, org_id, title, "", columns, rows, "usr_a")
    assert exc_info.value.field == field
    assert exc_info.value.status_code == 400
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_upsert_rejects_malformed_org_id(db_session):
    with pytest.raises(InvalidIdentifierError) as exc_info:
        await upsert_workspace(db_session, "acme", "T", "", [], [], "usr_a")
    assert exc_info.value.code == "INVALID_IDENTIFIER"
    assert exc_info.value.field == "orgId"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "columns",
    [
        [{"label": "No key"}],
        ["task"],
        [{"key": "_id", "label": "Id"}],
        [{"key": "a", "label": "A"}, {"key": "a", "label": "Again"}],
    ],
)
async def test_upsert_rejects_bad_columns(db_session, columns):
    with pytest.raises(ValidationError) as exc_info:
        await upsert_workspace(db_session, "org_0123456789abcdef", "T", "", columns, [], "usr_a")
    assert exc_info.value.field == "columns"


@pytest.mark.asyncio
async def test_upsert_rejects_non_object_rows(db_session):
    with pytest.raises(ValidationError) as exc_info:
        await upsert_workspace(db_session, "org_0123456789abcdef", "T", "", [], ["row"], "usr_a")
    assert exc_info.value.field == "rows"


@pytest.mark.asyncio
async def test_timestamps_are_utc_after_reload(db_engine, db_session):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    org_id = await _seed_org(db_session)
    saved = await upsert_workspace(db_session, org_id, "Roadmap", "", COLUMNS, ROWS, "usr_a")

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as other_session:
        reloaded = await fetch_workspace(other_session, org_id)

    assert reloaded.updated_at.tzinfo is not None
    assert reloaded.to_wire() == saved.to_wire()
