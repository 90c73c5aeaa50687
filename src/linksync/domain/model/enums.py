"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Situation(StrEnum):
    """Relationship between a source record, a target record and their link."""

    CONFIRMED = "CONFIRMED"
    FOUND = "FOUND"
    ABSENT = "ABSENT"
    AMBIGUOUS = "AMBIGUOUS"
    MISSING = "MISSING"
    UNQUALIFIED = "UNQUALIFIED"
    UNASSIGNED = "UNASSIGNED"


class Action(StrEnum):
    """Operation executed to reconcile a classified situation."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    LINK = "LINK"
    UNLINK = "UNLINK"
    DELETE = "DELETE"
    IGNORE = "IGNORE"
    EXCEPTION = "EXCEPTION"


class ReconStatus(StrEnum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class Reconciling(StrEnum):
    """Which collection a reconciliation entry was swept from."""

    SOURCE = "source"
    TARGET = "target"


_DEFAULT_ACTIONS: Final[dict[Situation, Action]] = {
    Situation.CONFIRMED: Action.UPDATE,
    Situation.FOUND: Action.UPDATE,
    Situation.ABSENT: Action.CREATE,
    Situation.AMBIGUOUS: Action.EXCEPTION,
    Situation.MISSING: Action.EXCEPTION,
    Situation.UNQUALIFIED: Action.DELETE,
    Situation.UNASSIGNED: Action.EXCEPTION,
}


def default_action(situation: Situation) -> Action:
    """Return the built-in action for ``situation`` when no policy overrides it."""

    return _DEFAULT_ACTIONS[situation]
