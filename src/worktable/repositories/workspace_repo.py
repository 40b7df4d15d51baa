"""Workspace document repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.models.workspace import WorkspaceRow
from worktable.repositories.base import BaseRepository
from worktable.services.id_generator import generate_id


class WorkspaceRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, WorkspaceRow)

    async def get_by_org(self, org_id: str) -> WorkspaceRow | None:
        return await self.get_one_by("org_id", org_id)

    async def upsert(
        self,
        org_id: str,
        created_by: str,
        title: str,
        content: str,
        columns: list,
        rows: list,
    ) -> WorkspaceRow:
        """Replace the organization's document, creating it on first save."""
        existing = await self.get_by_org(org_id)
        if existing:
            return await self.update(
                existing, title=title, content=content, columns=columns, rows=rows
            )
        return await self.create(
            workspace_id=generate_id("wks_"),
            org_id=org_id,
            created_by=created_by,
            title=title,
            content=content,
            columns=columns,
            rows=rows,
        )
