"""JWT Bearer authentication middleware."""

import logging

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from worktable.config import settings

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"

_PUBLIC_PATHS = frozenset({
    "/api/v1/health",
    "/api/v1/health/live",
    "/api/v1/health/ready",
    "/api/v1/auth/register",
    "/api/v1/auth/login",
    "/api/v1/auth/refresh",
    "/openapi.json",
})
_PUBLIC_PREFIXES = ("/docs", "/redoc")


def decode_token(token: str) -> dict:
    """Verify signature, issuer, audience and expiry. Raises ValueError when any fails."""
    from jose import JWTError, jwt

    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        logger.debug("JWT decode failed: %s", exc)
        raise ValueError(f"Invalid token: {exc}") from exc


def principal_from_header(auth_header: str) -> dict:
    """Map an Authorization header to ``{"sub", "email"}``.

    Missing headers yield the anonymous principal; bad or non-access tokens
    yield it too, tagged with ``_auth_error`` so protected routes answer 401.
    """
    if not auth_header.startswith("Bearer "):
        return {"sub": ANONYMOUS}
    try:
        payload = decode_token(auth_header[len("Bearer "):])
    except ValueError:
        return {"sub": ANONYMOUS, "_auth_error": "invalid_token"}
    if payload.get("type") != "access":
        return {"sub": ANONYMOUS, "_auth_error": "not_access_token"}
    return {"sub": payload.get("sub", ""), "email": payload.get("email", "")}


class AuthMiddleware(BaseHTTPMiddleware):
    """Attach the caller's principal to ``request.state.user``; routes decide whether it suffices."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in _PUBLIC_PATHS or path.startswith(_PUBLIC_PREFIXES):
            request.state.user = {"sub": ANONYMOUS}
            return await call_next(request)

        principal = principal_from_header(request.headers.get("authorization", ""))
        request.state.user = principal
        if principal["sub"] not in (ANONYMOUS, ""):
            structlog.contextvars.bind_contextvars(user_id=principal["sub"])
        return await call_next(request)
