"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, select

from worktable.db.models.workspace import WorkspaceRow

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "worktable-api"
SERVICE_VERSION = "1.0.0"


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@router.get("/health/live")
async def liveness():
    """Process is up; no dependencies are consulted."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(request: Request):
    """Ready once the workspace table answers a query and Redis (when configured) pings."""
    checks: dict[str, str] = {}
    workspaces = None

    try:
        async with request.app.state.db_session_factory() as session:
            workspaces = (
                await session.execute(select(func.count()).select_from(WorkspaceRow))
            ).scalar_one()
        checks["database"] = "ok"
    except Exception as exc:
        logger.warning("Readiness: database check failed: %s", exc)
        checks["database"] = f"error: {exc}"

    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            logger.warning("Readiness: redis ping failed: %s", exc)
            checks["redis"] = f"error: {exc}"

    ready = all(v in ("ok", "disabled") for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks, "workspaces": workspaces},
    )
