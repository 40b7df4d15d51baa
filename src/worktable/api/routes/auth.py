"""Account registration, login and token endpoints."""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.api.middleware.auth import decode_token
from worktable.config import settings
from worktable.dependencies import CurrentUser, RedisConn, get_db
from worktable.errors.exceptions import AuthenticationError, ValidationError
from worktable.models.user import (
    OrgResponse,
    RefreshRequest,
    RegisterResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from worktable.repositories.user_repo import UserRepository
from worktable.services.membership_service import register_account

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

_REVOKED_KEY = "worktable:token:revoked:{}"


# ── Token and password helpers ─────────────────────────────────────────────────

def _make_tokens(user_id: str, email: str) -> tuple[str, str]:
    """Return (access_token, refresh_token)."""
    from jose import jwt

    now = datetime.now(timezone.utc)
    access_payload = {
        "sub": user_id,
        "email": email,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "type": "access",
    }
    refresh_payload = {
        "sub": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_refresh_token_expire_days),
        "type": "refresh",
        # Unique per issue so revoking one refresh token never revokes another
        "jti": secrets.token_hex(8),
    }

    key = settings.jwt_secret
    algo = settings.jwt_algorithm
    return jwt.encode(access_payload, key, algorithm=algo), jwt.encode(refresh_payload, key, algorithm=algo)


def _token_response(user_id: str, email: str) -> dict:
    access_token, refresh_token = _make_tokens(user_id, email)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": settings.jwt_access_token_expire_minutes * 60,
    }


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    h = hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()
    return f"{salt}:{h}"


def verify_password(password: str, hashed: str) -> bool:
    parts = hashed.split(":", 1)
    if len(parts) != 2:
        return False
    salt, stored = parts
    h = hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()
    return secrets.compare_digest(h, stored)


def _revocation_key(token: str) -> str:
    return _REVOKED_KEY.format(hashlib.sha256(token.encode()).hexdigest())


# ── Auth endpoints ─────────────────────────────────────────────────────────────

@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
async def register(body: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create an account plus its first organization; the caller is logged in immediately."""
    user, org = await register_account(
        db,
        email=body.email,
        hashed_password=hash_password(body.password),
        display_name=body.display_name,
        organisation_name=body.organisation_name,
    )
    return RegisterResponse(
        **_token_response(user.user_id, user.email),
        user=UserResponse.model_validate(user),
        organization=OrgResponse.model_validate(org),
    )


@router.post("/auth/login", response_model=TokenResponse)
async def login(body: UserLogin, db: AsyncSession = Depends(get_db)):
    repo = UserRepository(db)
    user = await repo.get_by_email(body.email)
    if not user or not user.is_active:
        raise ValidationError("User does not exist", field="email")
    if not user.hashed_password or not verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Incorrect password", field="password")

    await repo.update_last_login(user)
    await db.commit()
    return TokenResponse(**_token_response(user.user_id, user.email))


@router.post("/auth/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, redis: RedisConn, db: AsyncSession = Depends(get_db)):
    """Exchange a live, unrevoked refresh token for a new token pair."""
    try:
        payload = decode_token(body.refresh_token)
    except ValueError as exc:
        raise AuthenticationError(str(exc), field="refresh_token") from exc
    if payload.get("type") != "refresh":
        raise AuthenticationError("Not a refresh token", field="refresh_token")
    if redis is not None and await redis.get(_revocation_key(body.refresh_token)):
        raise AuthenticationError("Token has been revoked", field="refresh_token")

    user = await UserRepository(db).get(payload["sub"])
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return TokenResponse(**_token_response(user.user_id, user.email))


@router.post("/auth/logout", status_code=204)
async def logout(body: RefreshRequest, redis: RedisConn) -> None:
    """Revoke the refresh token until it would have expired anyway. No-op without Redis."""
    if redis is None:
        logger.debug("Logout without Redis: refresh token not revoked")
        return
    await redis.setex(
        _revocation_key(body.refresh_token),
        settings.jwt_refresh_token_expire_days * 86400,
        "1",
    )


@router.get("/users/me", response_model=UserResponse)
async def get_me(user: CurrentUser):
    return UserResponse.model_validate(user)
