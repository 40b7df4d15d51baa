"""Configuration for the Worktable client."""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Client settings, loadable from the ``[worktable-client]`` table of a TOML file."""

    api_url: str = "http://localhost:3001/api/v1"
    debounce_seconds: float = Field(1.0, ge=0)
    request_timeout: float = Field(10.0, gt=0)


def load_config(config_path: Path) -> ClientConfig:
    """Load client settings from *config_path*.

    Raises FileNotFoundError if the file does not exist.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("worktable-client", {})
    return ClientConfig(**section)
