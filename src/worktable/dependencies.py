"""FastAPI dependency providers: database session, Redis, trace id and the calling user."""

from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from worktable.api.middleware.auth import ANONYMOUS
from worktable.db.models.user import UserRow
from worktable.errors.exceptions import AuthenticationError
from worktable.repositories.user_repo import UserRepository


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request, shared by every dependency that asks for it."""
    async with request.app.state.db_session_factory() as session:
        yield session


async def get_redis(request: Request) -> Any:
    return getattr(request.app.state, "redis", None)


def get_trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "unknown")


async def get_principal(request: Request) -> dict:
    """The token principal set by AuthMiddleware, or 401."""
    principal = getattr(request.state, "user", None) or {}
    if "_auth_error" in principal:
        raise AuthenticationError(principal["_auth_error"])
    if principal.get("sub") in (None, "", ANONYMOUS):
        raise AuthenticationError("Authentication required")
    return principal


async def get_current_user_row(
    principal: dict = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> UserRow:
    """The caller's user row with memberships loaded; deleted or inactive users are unauthenticated."""
    user = await UserRepository(db).get(principal["sub"])
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return user


RedisConn = Annotated[Any, Depends(get_redis)]
TraceId = Annotated[str, Depends(get_trace_id)]
CurrentUser = Annotated[UserRow, Depends(get_current_user_row)]
