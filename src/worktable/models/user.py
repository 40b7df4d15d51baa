"""Pydantic models for users, organizations and authentication."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ── Request models ─────────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: str | None = Field(None, min_length=1, max_length=200)
    organisation_name: str | None = Field(None, min_length=1, max_length=200)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class OrgCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class SwitchOrgRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    org_id: str = Field(..., alias="orgId", min_length=1)


class AddMemberRequest(BaseModel):
    email: EmailStr


# ── Response models ────────────────────────────────────────────────────────────

class MembershipResponse(BaseModel):
    org_id: str
    org_name: str
    role: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    user_id: str
    email: str
    display_name: str
    current_org_id: str | None
    memberships: list[MembershipResponse]
    is_active: bool
    last_login: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrgResponse(BaseModel):
    org_id: str
    name: str
    slug: str
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class OrgSwitchResponse(BaseModel):
    organization: OrgResponse
    user: UserResponse


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int


class RegisterResponse(TokenResponse):
    user: UserResponse
    organization: OrgResponse
