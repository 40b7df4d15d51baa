"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worktable.api.middleware.auth import AuthMiddleware
from worktable.api.middleware.trace_id import TraceIdMiddleware
from worktable.api.router import api_router
from worktable.config import settings
from worktable.db.engine import create_db_engine, create_session_factory, create_tables
from worktable.errors.handlers import register_exception_handlers
from worktable.logging_config import configure_logging

configure_logging(log_level=settings.log_level, json_output=settings.json_logs)

logger = logging.getLogger(__name__)


def _connect_redis():
    """Redis client for refresh-token revocation, or None when unavailable."""
    if settings.local_mode:
        return None
    try:
        import redis.asyncio as aioredis
        return aioredis.from_url(settings.redis_url, decode_responses=True)
    except Exception as exc:
        logger.warning("Redis not available, token revocation disabled: %s", exc)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)
    backend = engine.dialect.name

    # No migrations: missing tables and indexes are created on every startup, any backend
    await create_tables(engine)
    logger.info("Database tables ensured (%s)", backend)

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)
    app.state.redis = _connect_redis()

    logger.info("Worktable API started (db=%s, redis=%s)", backend, app.state.redis is not None)
    try:
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.close()
        await engine.dispose()
        logger.info("Worktable API shutdown complete")


def _instrument(app: FastAPI) -> None:
    """Expose /metrics when the optional ``metrics`` extra is installed."""
    try:
        from prometheus_fastapi_instrumentator import Instrumentator
    except ImportError:
        logger.debug("prometheus-fastapi-instrumentator not installed, /metrics disabled")
        return
    Instrumentator(
        should_group_status_codes=True,
        should_respect_env_var=False,
        excluded_handlers=["/api/v1/health.*", "/metrics"],
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Worktable API",
        version="1.0.0",
        description="Multi-tenant workspaces with a dynamic-schema table per organization.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Last added runs first: the trace id is bound before authentication logs anything
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    register_exception_handlers(app)
    _instrument(app)
    app.include_router(api_router)
    return app


app = create_app()
