"""Master API router mounted at /api/v1."""

from fastapi import APIRouter
from worktable.api.routes import (
    auth,
    health,
    orgs,
    workspace,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router)
api_router.include_router(orgs.router)
api_router.include_router(workspace.router)
