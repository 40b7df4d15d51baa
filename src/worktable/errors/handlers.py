"""FastAPI exception handlers producing a uniform ErrorResponse."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from worktable.errors.exceptions import AuthorizationError, WorktableError
from worktable.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_json(request: Request, code: str, message: str, details, status_code: int) -> JSONResponse:
    trace_id = getattr(request.state, "trace_id", "unknown")
    error_response = ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            details=details,
            trace_id=trace_id,
            timestamp=datetime.now(timezone.utc),
        ),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(WorktableError)
    async def worktable_error_handler(request: Request, exc: WorktableError):
        if isinstance(exc, AuthorizationError):
            user = getattr(request.state, "user", {}) or {}
            logger.warning(
                "org_access_denied",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "user_sub": user.get("sub", "anonymous"),
                    "reason": str(exc),
                },
            )
        return _error_json(request, exc.code, exc.message, exc.details, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        # loc is ("body", "<field>", ...) for body errors
        field = None
        if errors:
            loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
            field = loc[0] if loc else None
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        details = {"field": field} if field else None
        return _error_json(request, "VALIDATION_ERROR", message, details, 400)
