"""Workspace table document routes."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.dependencies import CurrentUser, TraceId, get_db
from worktable.errors.exceptions import AuthenticationError, AuthorizationError
from worktable.logging_config import bind_request_context
from worktable.models.workspace import WorkspaceUpsert
from worktable.services import schema_registry, workspace_service
from worktable.services.membership_service import find_membership

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Workspace"])


@router.get("/workspace")
async def get_workspace(
    user: CurrentUser,
    trace_id: TraceId,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return the active organization's table document, or the empty default."""
    if not user.current_org_id:
        raise AuthenticationError("No active organization for this session")
    bind_request_context(trace_id, user_id=user.user_id, org_id=user.current_org_id)

    document = await workspace_service.fetch_workspace(db, user.current_org_id)
    return document.to_wire()


@router.put("/workspace")
async def save_workspace(
    body: WorkspaceUpsert,
    user: CurrentUser,
    trace_id: TraceId,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Create or replace the table document of ``orgId``."""
    bind_request_context(trace_id, user_id=user.user_id, org_id=body.org_id)
    # Tenant isolation: only members may write an organization's document.
    # Malformed or missing ids fall through to the service's own validation.
    if body.org_id and workspace_service.is_valid_org_id(body.org_id):
        if find_membership(user, body.org_id) is None:
            raise AuthorizationError(f"User is not a member of organization '{body.org_id}'")

    document = await workspace_service.upsert_workspace(
        db,
        org_id=body.org_id,
        title=body.title,
        content=body.content,
        columns=body.columns,
        rows=body.rows,
        author_id=user.user_id,
    )
    return document.to_wire()


@router.get("/workspace/column-types")
async def list_column_types() -> list[dict]:
    """Publish the column input-type vocabulary with defaults and widgets."""
    return [rule.describe() for rule in schema_registry.list_rules()]
