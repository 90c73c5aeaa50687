"""Link handle owned by a single sync operation."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from linksync.domain.model import Link
from linksync.domain.ports.errors import ObjectStoreError

from .errors import SynchronizationError

if TYPE_CHECKING:
    from linksync.domain.ports import LinkStore

log = getLogger(__name__)


class LinkHandle:
    """The link a sync operation is working with, resolved lazily from the store."""

    def __init__(self, store: LinkStore, link_set: str) -> None:
        self._store = store
        self.link_set = link_set
        self.link: Link | None = None

    @property
    def is_resolved(self) -> bool:
        return self.link is not None

    @property
    def source_id(self) -> str | None:
        return None if self.link is None else self.link.source_id

    @property
    def target_id(self) -> str | None:
        return None if self.link is None else self.link.target_id

    @property
    def recon_id(self) -> str | None:
        return None if self.link is None else self.link.recon_id

    def load_for_source(self, source_id: str) -> Link | None:
        try:
            self.link = self._store.find_by_source(self.link_set, source_id)
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to read link for source {source_id}") from exc
        return self.link

    def load_for_target(self, target_id: str) -> Link | None:
        try:
            self.link = self._store.find_by_target(self.link_set, target_id)
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to read link for target {target_id}") from exc
        return self.link

    def create(self, source_id: str, target_id: str, recon_id: str | None) -> Link:
        pending = Link(source_id=source_id, target_id=target_id, recon_id=recon_id)
        try:
            self.link = self._store.create(self.link_set, pending)
        except ObjectStoreError as exc:
            raise SynchronizationError(
                f"Failed to create link {source_id} -> {target_id} in {self.link_set}"
            ) from exc
        return self.link

    def update(self, *, target_id: str, recon_id: str | None) -> Link:
        if self.link is None:
            raise SynchronizationError("No link to update")
        changed = replace(self.link, target_id=target_id, recon_id=recon_id)
        try:
            self.link = self._store.update(self.link_set, changed)
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to update link {self.link.link_id}") from exc
        return self.link

    def delete(self) -> None:
        if self.link is None:
            return
        try:
            self._store.delete(self.link_set, self.link)
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to delete link {self.link.link_id}") from exc
        log.debug("Removed link %s from %s", self.link.link_id, self.link_set)
        self.link = None
