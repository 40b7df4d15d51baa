"""Account, organization and active-organization bookkeeping.

These are the collaborators the workspace table needs: every user belongs to
at least one organization and has exactly one active organization, which
decides whose workspace document a fetch returns.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from worktable.db.models.org import OrgRow
from worktable.db.models.user import UserRow
from worktable.errors.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from worktable.models.enums import MembershipRole
from worktable.repositories.org_repo import OrgRepository
from worktable.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


def find_membership(user: UserRow, org_id: str):
    for membership in user.memberships:
        if membership.org_id == org_id:
            return membership
    return None


async def register_account(
    session: AsyncSession,
    email: str,
    hashed_password: str,
    display_name: str | None = None,
    organisation_name: str | None = None,
) -> tuple[UserRow, OrgRow]:
    """Create a user, their first organization and the Owner membership linking them."""
    user_repo = UserRepository(session)
    org_repo = OrgRepository(session)

    if await user_repo.get_by_email(email):
        raise ValidationError("Email already exists", field="email")

    local_part = email.split("@")[0]
    org_name = organisation_name or f"{local_part}'s Org"
    if await org_repo.get_by_name(org_name):
        raise ValidationError("Organisation already exists", field="organisation_name")

    user = await user_repo.create_user(
        email=email,
        display_name=display_name or local_part,
        hashed_password=hashed_password,
    )
    org = await org_repo.create_org(name=org_name, created_by=user.user_id)
    await user_repo.add_membership(user, org.org_id, org.name, MembershipRole.OWNER)
    await user_repo.set_current_org(user, org.org_id)
    await session.commit()

    logger.info("Registered user %s with org %s", user.user_id, org.org_id)
    return user, org


async def create_organization(session: AsyncSession, user: UserRow, name: str) -> OrgRow:
    """Create another organization owned by *user*. The active organization is unchanged."""
    org_repo = OrgRepository(session)
    if await org_repo.get_by_name(name):
        raise ValidationError("Organisation already exists", field="name")

    org = await org_repo.create_org(name=name, created_by=user.user_id)
    await UserRepository(session).add_membership(user, org.org_id, org.name, MembershipRole.OWNER)
    await session.commit()
    return org


async def switch_active_org(session: AsyncSession, user_id: str, org_id: str) -> tuple[OrgRow, UserRow]:
    """Point the user's active organization at *org_id*.

    Raises:
        NotFoundError: the user or the organization does not exist.
        AuthorizationError: the user is not a member of the organization.
    """
    user_repo = UserRepository(session)
    user = await user_repo.get(user_id)
    if not user:
        raise NotFoundError("User", user_id)
    org = await OrgRepository(session).get(org_id)
    if not org:
        raise NotFoundError("Organization", org_id)
    if find_membership(user, org_id) is None:
        raise AuthorizationError(f"User is not a member of organization '{org_id}'")

    await user_repo.set_current_org(user, org_id)
    await session.commit()
    logger.info("User %s switched to org %s", user_id, org_id)
    return org, user


async def add_member_and_switch(
    session: AsyncSession,
    owner: UserRow,
    org_id: str,
    email: str,
) -> tuple[OrgRow, UserRow]:
    """Add an existing user to an organization the caller owns, and make it their active one."""
    org = await OrgRepository(session).get(org_id)
    if not org:
        raise NotFoundError("Organization", org_id)
    owner_membership = find_membership(owner, org_id)
    if owner_membership is None or owner_membership.role != MembershipRole.OWNER:
        raise AuthorizationError("Only an organization owner can add members")

    user_repo = UserRepository(session)
    member = await user_repo.get_by_email(email)
    if not member:
        raise NotFoundError("User", email)
    if find_membership(member, org_id) is not None:
        raise ConflictError(f"User '{email}' is already a member of this organization")

    await user_repo.add_membership(member, org.org_id, org.name, MembershipRole.MEMBER)
    await user_repo.set_current_org(member, org.org_id)
    await session.commit()
    return org, member
