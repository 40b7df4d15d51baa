"""Repository for User and Membership records."""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.models.user import MembershipRow, UserRow
from worktable.repositories.base import BaseRepository
from worktable.services.id_generator import generate_id


class UserRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UserRow)

    async def get(self, user_id: str) -> UserRow | None:
        return await self.get_one_by("user_id", user_id)

    async def get_by_email(self, email: str) -> UserRow | None:
        return await self.get_one_by("email", email)

    async def create_user(self, email: str, display_name: str, hashed_password: str) -> UserRow:
        return await self.create(
            user_id=generate_id("usr_"),
            email=email,
            display_name=display_name,
            hashed_password=hashed_password,
            is_active=True,
            memberships=[],
        )

    async def add_membership(self, user: UserRow, org_id: str, org_name: str, role: str) -> MembershipRow:
        membership = MembershipRow(
            membership_id=generate_id("mem_"),
            user_id=user.user_id,
            org_id=org_id,
            org_name=org_name,
            role=role,
            joined_at=datetime.now(timezone.utc),
        )
        user.memberships.append(membership)
        await self.session.flush()
        return membership

    async def set_current_org(self, user: UserRow, org_id: str) -> None:
        user.current_org_id = org_id
        await self.session.flush()

    async def update_last_login(self, user: UserRow) -> None:
        user.last_login = datetime.now(timezone.utc)
        await self.session.flush()
