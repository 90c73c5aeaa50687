"""Ports for evaluating configured hook expressions."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

type Hook = Callable[[Mapping[str, Any]], Any]


@runtime_checkable
class ScriptEvaluator(Protocol):
    """Evaluate opaque hook expressions over a scope of named values."""

    def evaluate(self, expression: object, scope: Mapping[str, Any]) -> Any: ...

    def compile(self, expression: object) -> Hook: ...


__all__ = ["Hook", "ScriptEvaluator"]
