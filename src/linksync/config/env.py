"""Environment lookups shared by the settings loaders."""

from __future__ import annotations

import os
from pathlib import Path

from .errors import MissingConfigurationError


def read_env(name: str) -> str | None:
    """Return the stripped value of ``name``; blank values count as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_var(name: str) -> str:
    value = read_env(name)
    if value is None:
        raise MissingConfigurationError(name)
    return value


def read_env_path(name: str) -> Path | None:
    value = read_env(name)
    return None if value is None else Path(value).expanduser()
