"""Structured logging for the API server.

Modules log through ``logging.getLogger(__name__)``; structlog's
``ProcessorFormatter`` renders those records with the request context bound
by the middleware (trace id, user id, org id).
"""

import logging
import sys

import structlog

# Libraries whose INFO output drowns the request log
_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx", "httpcore")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Route stdlib and structlog output through one stdout handler.

    Args:
        log_level: debug/info/warning/error; unknown names fall back to info.
        json_output: JSON lines for deployed servers, colored console otherwise.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    shared = _shared_processors()
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(trace_id: str, user_id: str | None = None, org_id: str | None = None) -> None:
    """Attach request identifiers to every log line emitted in this async context."""
    context = {"trace_id": trace_id, "user_id": user_id, "org_id": org_id}
    structlog.contextvars.bind_contextvars(**{k: v for k, v in context.items() if v})


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
