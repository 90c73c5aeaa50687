"""Synchronization defaults for the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from linksync.domain.model import DEFAULT_AUDIT_COLLECTION

from .env import read_env, read_env_path, require_env_var

AUDIT_COLLECTION_ENV: Final[str] = "LINKSYNC_AUDIT_COLLECTION"
MAPPINGS_FILE_ENV: Final[str] = "LINKSYNC_MAPPINGS_FILE"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    audit_collection: str = DEFAULT_AUDIT_COLLECTION
    mappings_file: Path | None = None


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        audit_collection=read_env(AUDIT_COLLECTION_ENV) or DEFAULT_AUDIT_COLLECTION,
        mappings_file=read_env_path(MAPPINGS_FILE_ENV),
    )


def require_mappings_file() -> Path:
    """Return the configured mapping document path, raising if it is not set."""

    return Path(require_env_var(MAPPINGS_FILE_ENV)).expanduser()
