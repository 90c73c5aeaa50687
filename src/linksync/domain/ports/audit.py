"""Port for the append-only audit log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class AuditSink(Protocol):
    """Append audit entries to a named collection."""

    def create(self, collection: str, entry: Mapping[str, Any]) -> None: ...


__all__ = ["AuditSink"]
