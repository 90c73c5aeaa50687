"""Ports for persisting links between source and target records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linksync.domain.model import Link


@runtime_checkable
class LinkStore(Protocol):
    """Persistence contract for links, scoped per link set.

    Implementations enforce at most one link per ``source_id`` and at most one
    link per ``target_id`` within a link set. ``update`` is optimistic: it raises
    :class:`~linksync.domain.ports.errors.ConflictError` when ``link.revision`` no
    longer matches the stored row. ``delete`` applies the same check while the
    link exists and does nothing once the link is gone.
    """

    def find_by_source(self, link_set: str, source_id: str) -> Link | None: ...

    def find_by_target(self, link_set: str, target_id: str) -> Link | None: ...

    def create(self, link_set: str, link: Link) -> Link: ...

    def update(self, link_set: str, link: Link) -> Link: ...

    def delete(self, link_set: str, link: Link) -> None: ...

    def list_links(self, link_set: str) -> Sequence[Link]: ...


__all__ = ["LinkStore"]
