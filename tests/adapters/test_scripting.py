from __future__ import annotations

import pytest

from linksync.adapters.scripting import CallableEvaluator
from linksync.domain.ports import ScriptEvaluator
from linksync.domain.sync import HookError


def test_evaluator_satisfies_port() -> None:
    assert isinstance(CallableEvaluator(), ScriptEvaluator)


def test_callables_are_used_as_is() -> None:
    def hook(scope: object) -> object:
        return scope

    assert CallableEvaluator().compile(hook) is hook


def test_import_strings_resolve_nested_attributes() -> None:
    evaluator = CallableEvaluator()

    assert evaluator.evaluate("tests.support.hooks:lower_email", {"source": "A@X"}) == "a@x"
    assert evaluator.evaluate("tests.support.hooks:Decisions.ignore", {}) == "IGNORE"


@pytest.mark.parametrize(
    "expression",
    [
        "tests.support.missing_module:hook",
        "tests.support.hooks:absent",
        "tests.support.hooks:NOT_CALLABLE",
    ],
)
def test_unresolvable_import_strings_raise(expression: str) -> None:
    with pytest.raises(HookError):
        CallableEvaluator().compile(expression)


@pytest.mark.parametrize("constant", [True, {"filter": {"active": True}}, "plain text", None])
def test_other_values_become_constant_hooks(constant: object) -> None:
    assert CallableEvaluator().evaluate(constant, {"source": {}}) == constant
