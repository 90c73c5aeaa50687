"""Location of the database holding links and recon audit entries."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import read_env, read_env_path

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "LINKSYNC_DATA_DIR"
LINK_DATABASE_FILENAME: Final[str] = "links.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def link_data_dir() -> Path:
    """Directory of the default SQLite link database.

    ``LINKSYNC_DATA_DIR`` wins over ``$XDG_DATA_HOME/linksync``, which falls back
    to ``~/.local/share/linksync``.
    """

    configured = read_env_path(DATA_DIR_ENV)
    if configured is not None:
        return configured.resolve()
    base = read_env_path("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return (base / "linksync").resolve()


def get_database_config() -> DatabaseConfig:
    uri = read_env(DATABASE_URI_ENV)
    if uri is not None:
        return DatabaseConfig(uri=uri)
    data_dir = link_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{data_dir / LINK_DATABASE_FILENAME}")
