"""Ports for the object store holding source and target collections."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from linksync.domain.model import Record
    from linksync.domain.sync.pending import SyncContext


@runtime_checkable
class ObjectStore(Protocol):
    """CRUD and query access to arbitrary record collections.

    ``read`` returns ``None`` for a missing record and ``delete`` ignores one.
    ``update`` and ``delete`` take the revision the caller last observed and raise
    :class:`~linksync.domain.ports.errors.ConflictError` when it is stale.
    """

    def read(self, collection: str, object_id: str) -> Record | None: ...

    def create(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        object_id: str | None = None,
        context: SyncContext | None = None,
    ) -> Record: ...

    def update(
        self,
        collection: str,
        object_id: str,
        revision: str | None,
        record: Mapping[str, Any],
    ) -> Record: ...

    def delete(self, collection: str, object_id: str, revision: str | None) -> None: ...

    def query(self, collection: str, query: Mapping[str, Any]) -> Sequence[Record]: ...

    def query_all_ids(self, collection: str) -> Sequence[str]: ...


@runtime_checkable
class SynchronizationListener(Protocol):
    """Receiver of change notifications emitted by an object store."""

    def on_create(
        self,
        object_id: str,
        value: Record | None = None,
        *,
        context: SyncContext | None = None,
    ) -> None: ...

    def on_update(
        self,
        object_id: str,
        old_value: Record | None,
        new_value: Record | None,
        *,
        context: SyncContext | None = None,
    ) -> None: ...

    def on_delete(self, object_id: str, *, context: SyncContext | None = None) -> None: ...


__all__ = ["ObjectStore", "SynchronizationListener"]
