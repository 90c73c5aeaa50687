"""Hooks referenced by import string in mapping configuration tests."""

from __future__ import annotations

from typing import Any

NOT_CALLABLE = 42


def lower_email(scope: dict[str, Any]) -> str:
    return str(scope["source"]).lower()


class Decisions:
    @staticmethod
    def ignore(_scope: dict[str, Any]) -> str:
        return "IGNORE"
