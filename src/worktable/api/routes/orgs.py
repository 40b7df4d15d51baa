"""Organization membership and active-organization routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.dependencies import CurrentUser, get_db
from worktable.models.user import (
    AddMemberRequest,
    MembershipResponse,
    OrgCreate,
    OrgResponse,
    OrgSwitchResponse,
    SwitchOrgRequest,
    UserResponse,
)
from worktable.services import membership_service

router = APIRouter(tags=["Organizations"])


@router.get("/orgs", response_model=list[MembershipResponse])
async def list_my_orgs(user: CurrentUser):
    """List the caller's memberships in join order."""
    return [MembershipResponse.model_validate(m) for m in user.memberships]


@router.post("/orgs", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    org = await membership_service.create_organization(db, user, body.name)
    return OrgResponse.model_validate(org)


@router.post("/orgs/switch", response_model=OrgSwitchResponse)
async def switch_org(
    body: SwitchOrgRequest,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Make *orgId* the caller's active organization."""
    org, updated = await membership_service.switch_active_org(db, user.user_id, body.org_id)
    return OrgSwitchResponse(
        organization=OrgResponse.model_validate(org),
        user=UserResponse.model_validate(updated),
    )


@router.post("/orgs/{org_id}/members", response_model=OrgSwitchResponse, status_code=201)
async def add_member(
    org_id: str,
    body: AddMemberRequest,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Add an existing user to the organization and switch them to it."""
    org, member = await membership_service.add_member_and_switch(db, user, org_id, body.email)
    return OrgSwitchResponse(
        organization=OrgResponse.model_validate(org),
        user=UserResponse.model_validate(member),
    )
