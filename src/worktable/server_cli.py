"""``worktable-server``: run the Worktable API under uvicorn."""

import argparse
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worktable-server",
        description="Serve per-organization workspace tables over HTTP",
    )
    parser.add_argument("--host", default=None, help="Bind host (default: WORKTABLE_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: WORKTABLE_PORT or 3001)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite file database, tables created on startup, no Redis",
    )
    parser.add_argument("--database-url", default=None, help="Override WORKTABLE_DATABASE_URL")
    parser.add_argument("--log-level", default=None, help="Override WORKTABLE_LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # Settings are read when worktable.config is first imported, so export overrides before that
    overrides = {
        "WORKTABLE_LOCAL_MODE": "1" if args.local else None,
        "WORKTABLE_DATABASE_URL": args.database_url,
        "WORKTABLE_LOG_LEVEL": args.log_level,
    }
    for name, value in overrides.items():
        if value:
            os.environ[name] = value

    import uvicorn

    from worktable.config import settings

    uvicorn.run(
        "worktable.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
