"""Shared logging helpers for linksync."""

from __future__ import annotations

import logging

from .env import read_env
from .errors import ConfigurationError

LOG_LEVEL_ENV = "LINKSYNC_LOG_LEVEL"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    defaults to ``LINKSYNC_LOG_LEVEL`` (or INFO) and the format is terse enough for
    long reconciliation runs. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else get_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def get_log_level() -> int:
    raw = read_env(LOG_LEVEL_ENV)
    if raw is None:
        return logging.INFO
    resolved = logging.getLevelName(raw.upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {raw}", variable=LOG_LEVEL_ENV)
    return resolved
