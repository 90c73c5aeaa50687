"""Situation-to-action policies.

A policy overrides the built-in default action of one situation. Its action is
either fixed or decided by a hook that sees the source and target records and
whether the assessment was driven from the source side.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from linksync.domain.model import Action, default_action

from .errors import HookError, HookResultError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from linksync.domain.model import Situation
    from linksync.domain.ports import Hook

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Policy:
    situation: Situation
    action: Action | Hook

    def get_action(
        self,
        source: Mapping[str, Any] | None,
        target: Mapping[str, Any] | None,
        *,
        source_action: bool,
    ) -> Action:
        if isinstance(self.action, Action):
            return self.action
        scope = {"source": source, "target": target, "sourceAction": source_action}
        try:
            result = self.action(scope)
        except Exception as exc:
            raise HookError(f"Action hook for {self.situation} failed") from exc
        return _coerce_action(result, self.situation)


def _coerce_action(value: object, situation: Situation) -> Action:
    if isinstance(value, Action):
        return value
    if isinstance(value, str):
        try:
            return Action(value.upper())
        except ValueError:
            pass
    raise HookResultError(f"Action hook for {situation} returned {value!r}, expected an action name")


def determine_action(
    situation: Situation | None,
    policies: Iterable[Policy],
    source: Mapping[str, Any] | None,
    target: Mapping[str, Any] | None,
    *,
    source_action: bool,
) -> Action | None:
    """Return the action for ``situation``; ``None`` when there is no situation."""

    if situation is None:
        return None
    for policy in policies:
        if policy.situation is situation:
            return policy.get_action(source, target, source_action=source_action)
    return default_action(situation)
