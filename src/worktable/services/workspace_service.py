"""Fetch and upsert of the per-organization workspace table document.

The server is the source of truth for each organization's table, but it is a
deliberately thin one: a save replaces the title, content, column list and row
list wholesale (last write wins, no merge), and rows are stored as the client
sent them. Cleaning row keys after a column is deleted is the client's job.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.models.workspace import WorkspaceRow
from worktable.errors.exceptions import InvalidIdentifierError, ValidationError
from worktable.models.workspace import ColumnDefinition, WorkspaceDocument
from worktable.repositories.workspace_repo import WorkspaceRepository
from worktable.services.id_generator import has_id_shape, id_pattern

logger = logging.getLogger(__name__)

ORG_ID_PATTERN = id_pattern("org_")


def is_valid_org_id(value: Any) -> bool:
    return has_id_shape(value, ORG_ID_PATTERN)


def default_document(org_id: str) -> WorkspaceDocument:
    """The empty document reported for an organization that has never saved."""
    return WorkspaceDocument(org_id=org_id)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_document(row: WorkspaceRow) -> WorkspaceDocument:
    return WorkspaceDocument(
        workspace_id=row.workspace_id,
        org_id=row.org_id,
        title=row.title,
        content=row.content or "",
        columns=row.columns or [],
        rows=row.rows or [],
        created_by=row.created_by,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def validate_columns(columns: list[Any]) -> list[dict]:
    """Parse column definitions into their normalized wire form.

    Raises ValidationError(field="columns") for malformed definitions or
    repeated keys.
    """
    normalized: list[dict] = []
    seen: set[str] = set()
    for index, raw in enumerate(columns):
        try:
            column = ColumnDefinition.model_validate(raw)
        except pydantic.ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            raise ValidationError(
                f"Invalid column definition at position {index}",
                field="columns",
                details={"index": index, "errors": errors},
            ) from exc
        if column.key in seen:
            raise ValidationError(
                f"Duplicate column key '{column.key}'",
                field="columns",
                details={"index": index},
            )
        seen.add(column.key)
        normalized.append(column.to_wire())
    return normalized


def validate_rows(rows: list[Any]) -> list[dict]:
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(
                f"Row at position {index} must be an object",
                field="rows",
                details={"index": index},
            )
    return list(rows)


async def fetch_workspace(session: AsyncSession, org_id: str) -> WorkspaceDocument:
    """Return the organization's document, or the default one. Never writes."""
    row = await WorkspaceRepository(session).get_by_org(org_id)
    if row is None:
        return default_document(org_id)
    return to_document(row)


async def upsert_workspace(
    session: AsyncSession,
    org_id: str | None,
    title: str | None,
    content: str | None,
    columns: list[Any] | None,
    rows: list[Any] | None,
    author_id: str,
) -> WorkspaceDocument:
    """Create or replace the document keyed by *org_id* and commit.

    Raises:
        ValidationError: org_id, title, columns or rows missing, or malformed.
        InvalidIdentifierError: org_id is not a well-formed organization id.
    """
    missing = [
        name
        for name, present in (
            ("orgId", bool(org_id)),
            ("title", bool(title)),
            ("columns", columns is not None),
            ("rows", rows is not None),
        )
        if not present
    ]
    if missing:
        raise ValidationError(
            "Missing required fields: orgId, title, columns, and rows are necessary.",
            field=missing[0],
            details={"missing": missing},
        )
    if not is_valid_org_id(org_id):
        raise InvalidIdentifierError("organization", str(org_id), field="orgId")

    normalized_columns = validate_columns(columns)
    normalized_rows = validate_rows(rows)
    fields = dict(
        org_id=org_id,
        created_by=author_id,
        title=title,
        content=content or "",
        columns=normalized_columns,
        rows=normalized_rows,
    )

    repo = WorkspaceRepository(session)
    try:
        row = await repo.upsert(**fields)
        await session.commit()
    except IntegrityError:
        # A concurrent first save for the same org won the insert; replace it instead
        await session.rollback()
        logger.info("Workspace insert raced for org %s, retrying as update", org_id)
        row = await repo.upsert(**fields)
        await session.commit()

    logger.info(
        "Workspace saved for org %s (%d columns, %d rows)",
        org_id, len(normalized_columns), len(normalized_rows),
    )
    return to_document(row)
