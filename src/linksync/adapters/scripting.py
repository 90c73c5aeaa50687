"""Script evaluator backed by plain Python callables.

Hook expressions are either callables taking the scope mapping, or import
strings of the form ``"package.module:attribute"`` naming such a callable. Any
other value becomes a hook returning that value unchanged, which covers constant
validity flags and fixed correlation queries.
"""

from __future__ import annotations

from functools import cache
from importlib import import_module
from typing import TYPE_CHECKING, Any

from linksync.domain.sync.errors import HookError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from linksync.domain.ports import Hook


@cache
def _import_callable(path: str) -> Hook:
    module_name, _, attribute = path.partition(":")
    try:
        target: Any = import_module(module_name)
    except ImportError as exc:
        raise HookError(f"Cannot import hook module {module_name!r}") from exc
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise HookError(f"Hook {path!r} not found") from exc
    if not callable(target):
        raise HookError(f"Hook {path!r} is not callable")
    return target


def _is_import_string(expression: object) -> bool:
    if not isinstance(expression, str) or expression.count(":") != 1:
        return False
    module_name, attribute = expression.split(":")
    return bool(module_name) and bool(attribute) and " " not in expression


class CallableEvaluator:
    def compile(self, expression: object) -> Hook:
        if callable(expression):
            return expression
        if _is_import_string(expression):
            return _import_callable(str(expression))

        def constant(_scope: Mapping[str, Any]) -> Any:
            return expression

        return constant

    def evaluate(self, expression: object, scope: Mapping[str, Any]) -> Any:
        return self.compile(expression)(scope)
