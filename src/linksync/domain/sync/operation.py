"""Sync operations: situation assessment, action determination and execution.

One operation reconciles one source record (``SourceSyncOperation``), one target
record swept during reconciliation (``TargetSyncOperation``) or executes a
known action directly (``ExplicitSyncOperation``). An operation is never reused.
It holds a read-only reference to its owning mapping and owns its link handle.

Execution chains two steps where a cascade is intended: ``CREATE`` continues
with link processing for the new target, and ``DELETE`` continues with unlink.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any

from linksync.domain.model import (
    Action,
    Situation,
    has_non_reserved_attribute,
    optional_record_id,
)

from .errors import HookError, HookResultError, SyncAbortedError, SynchronizationError
from .links import LinkHandle
from .policy import determine_action

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linksync.domain.model import Record
    from linksync.domain.ports import Hook

    from .mapping import ObjectMapping
    from .pending import SyncContext
    from .stats import ReconStats

log = getLogger(__name__)


def _require_id(record: Mapping[str, Any] | None, role: str) -> str:
    object_id = optional_record_id(record)
    if object_id is None:
        raise SynchronizationError(f"{role} object has no _id")
    return object_id


class SyncOperation(ABC):
    """Shared state and action execution for every kind of sync operation."""

    def __init__(
        self,
        mapping: ObjectMapping,
        *,
        context: SyncContext,
        recon_id: str | None = None,
        stats: ReconStats | None = None,
    ) -> None:
        self.mapping = mapping
        self.context = context
        self.recon_id = recon_id
        self.stats = stats
        self.source_object: Record | None = None
        self.target_object: Record | None = None
        self.link = LinkHandle(mapping.links, mapping.link_set)
        self.situation: Situation | None = None
        self.action: Action | None = None

    @abstractmethod
    def sync(self) -> None: ...

    def determine_action(self, *, source_action: bool) -> Action | None:
        """Pick the action for the assessed situation.

        ``source_action`` tells decision hooks whether the situation was assessed
        from the source side or during the target sweep.
        """

        self.action = determine_action(
            self.situation,
            self.mapping.policies,
            self.source_object,
            self.target_object,
            source_action=source_action,
        )
        log.debug("Determined action to be %s", self.action)
        return self.action

    def perform_action(self) -> None:
        action = self.action or Action.IGNORE
        match action:
            case Action.CREATE:
                if self.create_target():
                    self.link_target(action)
            case Action.UPDATE | Action.LINK:
                self.link_target(action)
            case Action.DELETE:
                self.delete_target()
                self.unlink()
            case Action.UNLINK:
                self.unlink()
            case Action.EXCEPTION:
                raise SyncAbortedError(
                    f"Mapping {self.mapping.name!r} aborted {self.situation} entry by policy"
                )
            case Action.IGNORE:
                pass

    def create_target(self) -> bool:
        """Create the target from the source; return whether link processing remains."""

        if self.source_object is None:
            raise SynchronizationError("no source object to create target from")
        if self.target_object is not None:
            raise SynchronizationError("target object already exists")
        self.target_object = {}
        self.mapping.apply_mappings(self.source_object, self.target_object)
        self.exec_hook("onCreate", self.mapping.hooks.on_create)

        source_id = _require_id(self.source_object, "source")
        pending = self.context.populate_pending_link(
            mapping_name=self.mapping.name,
            source_id=source_id,
            source_object=self.source_object,
            recon_id=self.recon_id,
            situation=self.situation,
        )
        try:
            self.target_object = self.mapping.create_target(self.target_object, context=self.context)
        finally:
            self.context.clear_pending_link(pending)
        if pending.linked:
            log.debug(
                "Pending link for %s during %s has already been created, skipping link processing",
                source_id,
                self.recon_id,
            )
            return False
        log.debug("Pending link for %s during %s not yet resolved", source_id, self.recon_id)
        return True

    def link_target(self, action: Action) -> None:
        """Ensure the link to the target exists; for ``UPDATE`` also push mapped attributes."""

        if self.target_object is None:
            raise SynchronizationError("no target object to link")
        source_id = _require_id(self.source_object, "source")
        if not self.link.is_resolved:
            # a cascade may have linked the pair since assessment
            self.link.load_for_source(source_id)

        target_id = _require_id(self.target_object, "target")
        if not self.link.is_resolved:
            self.create_link(source_id, target_id)
        elif target_id != self.link.target_id or (
            self.recon_id is not None and self.recon_id != self.link.recon_id
        ):
            self.link.update(
                target_id=target_id,
                recon_id=self.recon_id if self.recon_id is not None else self.link.recon_id,
            )

        if action in (Action.CREATE, Action.LINK):
            return
        if self.source_object is not None and self.target_object is not None:
            old_target = copy.deepcopy(self.target_object)
            self.mapping.apply_mappings(self.source_object, self.target_object)
            self.exec_hook("onUpdate", self.mapping.hooks.on_update)
            if self.target_object != old_target:
                self.target_object = self.mapping.update_target(self.target_object)
            else:
                log.debug("Target %s unchanged, skipping update", target_id)

    def create_link(self, source_id: str, target_id: str) -> None:
        self.exec_hook("onLink", self.mapping.hooks.on_link)
        self.link.create(source_id, target_id, self.recon_id)
        log.debug(
            "Established link sourceId: %s targetId: %s in reconId: %s",
            source_id,
            target_id,
            self.recon_id,
        )

    def delete_target(self) -> None:
        if self.target_object is None:
            return
        self.exec_hook("onDelete", self.mapping.hooks.on_delete)
        self.mapping.delete_target(self.target_object)
        self.target_object = None

    def unlink(self) -> None:
        if not self.link.is_resolved:
            return
        self.exec_hook("onUnlink", self.mapping.hooks.on_unlink)
        self.link.delete()

    def is_source_valid(self) -> bool:
        result = False
        if self.source_object is not None:
            hook = self.mapping.hooks.valid_source
            if hook is None:
                result = True
            else:
                result = self._eval_validity("validSource", hook, {"source": self.source_object})
        log.debug(
            "isSourceValid of %s evaluated: %s",
            optional_record_id(self.source_object) or "[NULL]",
            result,
        )
        return result

    def is_target_valid(self) -> bool:
        result = False
        if self.target_object is not None:
            hook = self.mapping.hooks.valid_target
            if hook is None:
                result = True
            else:
                result = self._eval_validity("validTarget", hook, {"target": self.target_object})
        log.debug(
            "isTargetValid of %s evaluated: %s",
            optional_record_id(self.target_object) or "[NULL]",
            result,
        )
        return result

    def _eval_validity(self, name: str, hook: Hook, scope: dict[str, Any]) -> bool:
        try:
            value = hook(scope)
        except Exception as exc:
            raise HookError(f"{self.mapping.name} {name} script encountered exception") from exc
        if not isinstance(value, bool):
            raise HookResultError(f"Expecting boolean value from {name}")
        return value

    def exec_hook(self, name: str, hook: Hook | None) -> None:
        if hook is None:
            return
        scope: dict[str, Any] = {}
        if self.source_object is not None:
            scope["source"] = self.source_object
        if self.target_object is not None:
            scope["target"] = self.target_object
        if self.situation is not None:
            scope["situation"] = str(self.situation)
        try:
            hook(scope)
        except Exception as exc:
            raise HookError(f"{self.mapping.name} {name} script encountered exception") from exc


class SourceSyncOperation(SyncOperation):
    """Reconcile one source record against the target collection."""

    def __init__(
        self,
        mapping: ObjectMapping,
        source_id: str,
        source_object: Record | None = None,
        *,
        context: SyncContext,
        recon_id: str | None = None,
        stats: ReconStats | None = None,
    ) -> None:
        super().__init__(mapping, context=context, recon_id=recon_id, stats=stats)
        self.source_id = source_id
        self.source_object = source_object

    def sync(self) -> None:
        self.assess_situation()
        self.determine_action(source_action=True)
        self.perform_action()

    def assess_situation(self) -> Situation | None:
        self.situation = None
        self.link.load_for_source(self.source_id)
        if self.link.target_id is not None:
            self.target_object = self.mapping.read_target(self.link.target_id)

        if self.is_source_valid():
            if self.link.is_resolved:
                self.situation = (
                    Situation.CONFIRMED if self.target_object is not None else Situation.MISSING
                )
            else:
                self.situation = self._classify_correlation(self.correlate_target())
        else:
            # TODO: decide whether an invalid, unlinked source that correlates to a
            # single target should be reported as UNASSIGNED instead of no situation.
            self.situation = Situation.UNQUALIFIED if self.link.is_resolved else None
            if self.stats is not None:
                self.stats.add_not_valid(self.source_id)

        if self.stats is not None:
            self.stats.add_situation(self.source_id, self.situation)
        log.debug(
            "Mapping %r assessed situation of %s to be %s",
            self.mapping.name,
            self.source_id,
            self.situation,
        )
        return self.situation

    def _classify_correlation(self, results: Sequence[Record] | None) -> Situation:
        if results is None or len(results) == 0:
            return Situation.ABSENT
        if len(results) > 1:
            return Situation.AMBIGUOUS
        match = results[0]
        if has_non_reserved_attribute(match):
            self.target_object = dict(match)
        else:
            self.target_object = self.mapping.read_target(_require_id(match, "correlated target"))
        return Situation.FOUND

    def correlate_target(self) -> Sequence[Record] | None:
        """Run the correlation query; ``None`` when no correlation is configured."""

        hook = self.mapping.hooks.correlation_query
        if hook is None:
            return None
        try:
            query = hook({"source": self.source_object})
        except Exception as exc:
            raise HookError(
                f"{self.mapping.name} correlationQuery script encountered exception"
            ) from exc
        if not isinstance(query, Mapping):
            raise HookResultError("Expected correlationQuery script to yield a mapping")
        return self.mapping.query_target(query)


class TargetSyncOperation(SyncOperation):
    """Reconcile one target record that the source sweep may not have reached."""

    def __init__(
        self,
        mapping: ObjectMapping,
        target_object: Record | None = None,
        *,
        context: SyncContext,
        recon_id: str | None = None,
        stats: ReconStats | None = None,
    ) -> None:
        super().__init__(mapping, context=context, recon_id=recon_id, stats=stats)
        self.target_object = target_object

    def sync(self) -> None:
        self.assess_situation()
        self.determine_action(source_action=False)
        self.perform_action()

    def assess_situation(self) -> Situation | None:
        self.situation = None
        target_id = optional_record_id(self.target_object)
        if not self.is_target_valid():
            if self.stats is not None:
                self.stats.add_not_valid(target_id)
            return None

        if target_id is not None:
            self.link.load_for_target(target_id)
        if self.recon_id is not None and self.recon_id == self.link.recon_id:
            # already reconciled during the source sweep of this pass
            return None
        if not self.link.is_resolved or self.link.source_id is None:
            self.situation = Situation.UNASSIGNED
        else:
            self.source_object = self.mapping.read_source(self.link.source_id)
            if self.source_object is None or not self.is_source_valid():
                self.situation = Situation.UNQUALIFIED
            else:
                self.situation = Situation.CONFIRMED

        if self.stats is not None:
            self.stats.add_situation(target_id, self.situation)
        log.debug(
            "Mapping %r assessed situation of target %s to be %s",
            self.mapping.name,
            target_id,
            self.situation,
        )
        return self.situation


class ExplicitSyncOperation(SyncOperation):
    """Execute a known action without assessing the situation first."""

    def __init__(
        self,
        mapping: ObjectMapping,
        *,
        source_object: Record | None,
        target_object: Record | None,
        situation: Situation | None,
        action: Action,
        context: SyncContext,
        recon_id: str | None = None,
    ) -> None:
        super().__init__(mapping, context=context, recon_id=recon_id)
        self.source_object = source_object
        self.target_object = target_object
        self.situation = situation
        self.action = action

    def sync(self) -> None:
        log.debug(
            "Initiate explicit operation for situation: %s, action: %s",
            self.situation,
            self.action,
        )
        if self.action in (Action.DELETE, Action.UNLINK):
            self._resolve_link()
        self.perform_action()
        log.debug(
            "Completed explicit operation for situation: %s, action: %s",
            self.situation,
            self.action,
        )

    def _resolve_link(self) -> None:
        source_id = optional_record_id(self.source_object)
        if source_id is not None:
            self.link.load_for_source(source_id)
            return
        target_id = optional_record_id(self.target_object)
        if target_id is not None:
            self.link.load_for_target(target_id)
