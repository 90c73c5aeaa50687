"""Synchronization service: the listener an object store notifies of changes.

The service fans change notifications out to every mapping and, on create, first
settles a pending link registered by the operation that caused the create.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from linksync.domain.model import DEFAULT_AUDIT_COLLECTION, Action, local_id_in

from .errors import SynchronizationError
from .mapping import ObjectMapping

if TYPE_CHECKING:
    from collections.abc import Iterable

    from linksync.domain.model import Record, Situation
    from linksync.domain.ports import AuditSink, LinkStore, ObjectStore, ScriptEvaluator

    from .config import MappingConfig
    from .mapping import ReconResult
    from .pending import SyncContext

log = getLogger(__name__)


class SynchronizationService:
    def __init__(self, mappings: Iterable[ObjectMapping] = ()) -> None:
        self._mappings: dict[str, ObjectMapping] = {}
        for mapping in mappings:
            self.add_mapping(mapping)

    def add_mapping(self, mapping: ObjectMapping) -> None:
        if mapping.name in self._mappings:
            raise ValueError(f"Mapping {mapping.name!r} is already registered")
        self._mappings[mapping.name] = mapping

    @property
    def mappings(self) -> tuple[ObjectMapping, ...]:
        return tuple(self._mappings.values())

    def mapping(self, name: str) -> ObjectMapping:
        try:
            return self._mappings[name]
        except KeyError:
            raise SynchronizationError(f"No mapping named {name!r}") from None

    def on_create(
        self,
        object_id: str,
        value: Record | None = None,
        *,
        context: SyncContext | None = None,
    ) -> None:
        self.handle_pending_link(object_id, value, context)
        for mapping in self.mappings:
            mapping.on_create(object_id, value, context=context)

    def on_update(
        self,
        object_id: str,
        old_value: Record | None,
        new_value: Record | None,
        *,
        context: SyncContext | None = None,
    ) -> None:
        for mapping in self.mappings:
            mapping.on_update(object_id, old_value, new_value, context=context)

    def on_delete(self, object_id: str, *, context: SyncContext | None = None) -> None:
        for mapping in self.mappings:
            mapping.on_delete(object_id, context=context)

    def handle_pending_link(
        self,
        object_id: str,
        value: Record | None,
        context: SyncContext | None,
    ) -> bool:
        """Link a freshly created target to the source that is creating it.

        Returns whether a pending link was established.
        """

        if context is None or context.pending_link is None or context.pending_link.linked:
            return False
        pending = context.pending_link
        mapping = self._mappings.get(pending.mapping_name)
        if mapping is None:
            return False
        local_id = local_id_in(mapping.target_collection, object_id)
        if local_id is None:
            return False

        target = dict(value) if value is not None else mapping.read_target(local_id)
        if target is None:
            return False
        target["_id"] = local_id
        mapping.explicit_op(
            pending.source_object,
            target,
            pending.situation,
            Action.LINK,
            pending.recon_id,
            context=context,
        )
        pending.linked = True
        log.debug(
            "Established pending link for %s/%s to %s",
            pending.mapping_name,
            pending.source_id,
            object_id,
        )
        return True

    def explicit_op(
        self,
        mapping_name: str,
        source_object: Record | None,
        target_object: Record | None,
        situation: Situation | None,
        action: Action,
        recon_id: str | None = None,
    ) -> None:
        self.mapping(mapping_name).explicit_op(
            source_object, target_object, situation, action, recon_id
        )

    def recon(self, mapping_name: str, recon_id: str | None = None) -> ReconResult:
        """Reconcile one mapping; a fresh reconciliation id is generated when omitted."""

        return self.mapping(mapping_name).recon(recon_id or str(uuid4()))


def build_service(
    configs: Iterable[MappingConfig],
    *,
    objects: ObjectStore,
    links: LinkStore,
    evaluator: ScriptEvaluator,
    audit: AuditSink | None = None,
    audit_collection: str = DEFAULT_AUDIT_COLLECTION,
) -> SynchronizationService:
    """Build a service with one mapping per configuration entry."""

    return SynchronizationService(
        ObjectMapping(
            config,
            objects=objects,
            links=links,
            evaluator=evaluator,
            audit=audit,
            audit_collection=audit_collection,
        )
        for config in configs
    )
