"""Organization repository."""

import re

from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.models.org import OrgRow
from worktable.repositories.base import BaseRepository
from worktable.services.id_generator import generate_id


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:80] or "org"


class OrgRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, OrgRow)

    async def get(self, org_id: str) -> OrgRow | None:
        return await self.get_one_by("org_id", org_id)

    async def get_by_name(self, name: str) -> OrgRow | None:
        return await self.get_one_by("name", name)

    async def create_org(self, name: str, created_by: str) -> OrgRow:
        org_id = generate_id("org_")
        # Suffix with the id so slugs of similar names never collide
        slug = f"{slugify(name)}-{org_id[-6:]}"
        return await self.create(org_id=org_id, name=name, slug=slug, created_by=created_by)
