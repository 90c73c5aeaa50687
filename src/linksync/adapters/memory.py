"""In-memory collaborators for the synchronization engine.

The object store emits change notifications synchronously to its listeners,
the way a router would, so create cascades can be exercised without a backend.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from itertools import count
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final
from uuid import uuid4

from linksync.domain.model import Link
from linksync.domain.ports.errors import ConflictError, NotFoundError, ObjectStoreError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from linksync.domain.model import Record
    from linksync.domain.ports import SynchronizationListener
    from linksync.domain.sync.pending import SyncContext

log = getLogger(__name__)

QUERY_ID: Final[str] = "_queryId"
QUERY_ALL_IDS: Final[str] = "query-all-ids"


class InMemoryObjectStore:
    """Thread-safe collection store with integer revisions rendered as strings.

    Supported query descriptors:
    - ``{"_queryId": "query-all-ids"}``: records holding only ``_id``
    - ``{"filter": {...}, "fields": [...]}``: equality match on every filter
      attribute, optionally projected onto ``fields`` (``_id`` is always kept)
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, Record]] = {}
        self._listeners: list[SynchronizationListener] = []
        self.writes = 0

    def subscribe(self, listener: SynchronizationListener) -> None:
        self._listeners.append(listener)

    def read(self, collection: str, object_id: str) -> Record | None:
        with self._lock:
            record = self._collections.get(collection, {}).get(object_id)
            return copy.deepcopy(record) if record is not None else None

    def create(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        object_id: str | None = None,
        context: SyncContext | None = None,
    ) -> Record:
        with self._lock:
            records = self._collections.setdefault(collection, {})
            new_id = object_id or uuid4().hex
            if new_id in records:
                raise ObjectStoreError(f"{collection}/{new_id} already exists")
            stored = copy.deepcopy(dict(record))
            stored["_id"] = new_id
            stored["_rev"] = "0"
            records[new_id] = stored
            self.writes += 1
            created = copy.deepcopy(stored)
        log.debug("Created %s/%s", collection, new_id)
        for listener in tuple(self._listeners):
            listener.on_create(f"{collection}/{new_id}", copy.deepcopy(created), context=context)
        return created

    def update(
        self,
        collection: str,
        object_id: str,
        revision: str | None,
        record: Mapping[str, Any],
    ) -> Record:
        with self._lock:
            current = self._collections.get(collection, {}).get(object_id)
            if current is None:
                raise NotFoundError(f"{collection}/{object_id} not found")
            self._check_revision(collection, object_id, current, revision)
            stored = copy.deepcopy(dict(record))
            stored["_id"] = object_id
            stored["_rev"] = str(int(current["_rev"]) + 1)
            self._collections[collection][object_id] = stored
            self.writes += 1
            old_value = copy.deepcopy(current)
            new_value = copy.deepcopy(stored)
        for listener in tuple(self._listeners):
            listener.on_update(f"{collection}/{object_id}", old_value, copy.deepcopy(new_value))
        return new_value

    def delete(self, collection: str, object_id: str, revision: str | None) -> None:
        with self._lock:
            current = self._collections.get(collection, {}).get(object_id)
            if current is None:
                return
            self._check_revision(collection, object_id, current, revision)
            del self._collections[collection][object_id]
            self.writes += 1
        for listener in tuple(self._listeners):
            listener.on_delete(f"{collection}/{object_id}")

    def query(self, collection: str, query: Mapping[str, Any]) -> Sequence[Record]:
        if query.get(QUERY_ID) == QUERY_ALL_IDS:
            return [{"_id": object_id} for object_id in self.query_all_ids(collection)]
        if QUERY_ID in query:
            raise ObjectStoreError(f"Unknown query id {query[QUERY_ID]!r}")
        filters: Mapping[str, Any] = query.get("filter", {})
        fields: Sequence[str] | None = query.get("fields")
        with self._lock:
            matches = [
                copy.deepcopy(record)
                for record in self._collections.get(collection, {}).values()
                if all(record.get(key) == value for key, value in filters.items())
            ]
        if fields is None:
            return matches
        return [
            {key: value for key, value in record.items() if key == "_id" or key in fields}
            for record in matches
        ]

    def query_all_ids(self, collection: str) -> Sequence[str]:
        with self._lock:
            return sorted(self._collections.get(collection, {}))

    def put(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Seed a record without notifying listeners."""

        object_id = record.get("_id")
        if not isinstance(object_id, str):
            raise ValueError("seeded records need a string _id")
        with self._lock:
            stored = copy.deepcopy(dict(record))
            stored.setdefault("_rev", "0")
            self._collections.setdefault(collection, {})[object_id] = stored
            return copy.deepcopy(stored)

    @staticmethod
    def _check_revision(
        collection: str,
        object_id: str,
        current: Record,
        revision: str | None,
    ) -> None:
        if revision is not None and revision != current["_rev"]:
            raise ConflictError(
                f"{collection}/{object_id} is at revision {current['_rev']}, not {revision}"
            )


class InMemoryLinkStore:
    """Link store keeping one dictionary of links per link set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._links: dict[str, dict[str, Link]] = {}
        self._ids = count(1)
        self.writes = 0

    def find_by_source(self, link_set: str, source_id: str) -> Link | None:
        with self._lock:
            return next(
                (link for link in self._links.get(link_set, {}).values() if link.source_id == source_id),
                None,
            )

    def find_by_target(self, link_set: str, target_id: str) -> Link | None:
        with self._lock:
            return next(
                (link for link in self._links.get(link_set, {}).values() if link.target_id == target_id),
                None,
            )

    def create(self, link_set: str, link: Link) -> Link:
        with self._lock:
            links = self._links.setdefault(link_set, {})
            for existing in links.values():
                if existing.source_id == link.source_id or existing.target_id == link.target_id:
                    raise ConflictError(
                        f"Link set {link_set} already links {existing.source_id} -> {existing.target_id}"
                    )
            link_id = str(next(self._ids))
            stored = replace(link, link_id=link_id, revision="0")
            links[link_id] = stored
            self.writes += 1
            return stored

    def update(self, link_set: str, link: Link) -> Link:
        with self._lock:
            links = self._links.get(link_set, {})
            key = link.link_id
            current = links.get(key) if key is not None else None
            if key is None or current is None:
                raise NotFoundError(f"Link {link.link_id} not found in {link_set}")
            if link.revision != current.revision:
                raise ConflictError(
                    f"Link {link.link_id} is at revision {current.revision}, not {link.revision}"
                )
            for existing in links.values():
                if existing.link_id != link.link_id and existing.target_id == link.target_id:
                    raise ConflictError(f"Target {link.target_id} is already linked in {link_set}")
            stored = replace(link, revision=str(int(current.revision or "0") + 1))
            links[key] = stored
            self.writes += 1
            return stored

    def delete(self, link_set: str, link: Link) -> None:
        with self._lock:
            links = self._links.get(link_set, {})
            current = links.get(link.link_id) if link.link_id is not None else None
            if current is None:
                return
            if link.revision != current.revision:
                raise ConflictError(
                    f"Link {link.link_id} is at revision {current.revision}, not {link.revision}"
                )
            del links[link.link_id]
            self.writes += 1

    def list_links(self, link_set: str) -> Sequence[Link]:
        with self._lock:
            return list(self._links.get(link_set, {}).values())


class InMemoryAuditSink:
    def __init__(self) -> None:
        self.entries: dict[str, list[dict[str, Any]]] = {}

    def create(self, collection: str, entry: Mapping[str, Any]) -> None:
        self.entries.setdefault(collection, []).append(dict(entry))

    def entries_for(self, collection: str) -> list[dict[str, Any]]:
        return list(self.entries.get(collection, []))
