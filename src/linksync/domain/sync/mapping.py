"""Object mapping: binds a source collection to a target collection.

The mapping owns its configuration (property mappings, policies and hooks), turns
change notifications into source sync operations and runs full two-phase
reconciliation passes that leave an audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from linksync.domain.model import (
    DEFAULT_AUDIT_COLLECTION,
    Action,
    ReconEntry,
    Reconciling,
    ReconStatus,
    local_id_in,
    optional_record_id,
    qualified_id,
    record_revision,
)
from linksync.domain.ports.errors import NotFoundError, ObjectStoreError

from .errors import EmptySourceError, HookError, SynchronizationError, describe_failure
from .locking import KeyedLocks
from .operation import ExplicitSyncOperation, SourceSyncOperation, TargetSyncOperation
from .pending import SyncContext
from .policy import Policy
from .properties import PropertyMapping, apply_mappings
from .stats import ReconStats

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping, Sequence

    from linksync.domain.model import Record, Situation
    from linksync.domain.ports import AuditSink, Hook, LinkStore, ObjectStore, ScriptEvaluator

    from .config import MappingConfig, PropertyConfig
    from .operation import SyncOperation

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MappingHooks:
    valid_source: Hook | None = None
    valid_target: Hook | None = None
    correlation_query: Hook | None = None
    on_create: Hook | None = None
    on_update: Hook | None = None
    on_delete: Hook | None = None
    on_link: Hook | None = None
    on_unlink: Hook | None = None
    result: Hook | None = None


@dataclass(frozen=True, slots=True)
class ReconResult:
    """Statistics of a finished reconciliation pass."""

    recon_id: str
    source: ReconStats
    target: ReconStats
    global_: ReconStats

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.as_dict(),
            "target": self.target.as_dict(),
            "global": self.global_.as_dict(),
        }


class ObjectMapping:
    """Synchronize one source collection into one target collection."""

    def __init__(
        self,
        config: MappingConfig,
        *,
        objects: ObjectStore,
        links: LinkStore,
        evaluator: ScriptEvaluator,
        audit: AuditSink | None = None,
        audit_collection: str = DEFAULT_AUDIT_COLLECTION,
    ) -> None:
        self.config = config
        self.objects = objects
        self.links = links
        self.audit = audit
        self.audit_collection = audit_collection
        self._evaluator = evaluator
        self.properties: tuple[PropertyMapping, ...] = tuple(
            self._build_property(entry) for entry in config.properties
        )
        self.policies: tuple[Policy, ...] = tuple(
            Policy(
                situation=entry.situation,
                action=entry.action
                if isinstance(entry.action, Action)
                else evaluator.compile(entry.action),
            )
            for entry in config.policies
        )
        self.hooks = MappingHooks(
            valid_source=self._compile(config.valid_source),
            valid_target=self._compile(config.valid_target),
            correlation_query=self._compile(config.correlation_query),
            on_create=self._compile(config.on_create),
            on_update=self._compile(config.on_update),
            on_delete=self._compile(config.on_delete),
            on_link=self._compile(config.on_link),
            on_unlink=self._compile(config.on_unlink),
            result=self._compile(config.result),
        )
        self.locks = KeyedLocks()
        log.debug("Instantiated %s", self.name)

    def _compile(self, expression: object) -> Hook | None:
        if expression is None:
            return None
        return self._evaluator.compile(expression)

    def _build_property(self, entry: PropertyConfig) -> PropertyMapping:
        kwargs: dict[str, Any] = {
            "target": entry.target,
            "source": entry.source,
            "transform": self._compile(entry.script),
        }
        if entry.has_default:
            kwargs["default"] = entry.default
        return PropertyMapping(**kwargs)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def link_set(self) -> str:
        return self.config.link_set

    @property
    def source_collection(self) -> str:
        return self.config.source

    @property
    def target_collection(self) -> str:
        return self.config.target

    def is_source_object(self, object_id: str) -> bool:
        return local_id_in(self.source_collection, object_id) is not None

    # Locking ----------------------------------------------------------------

    def lock_key_for_source(self, source_id: str) -> tuple[str, str]:
        return ("source", source_id)

    def lock_key_for_target(self, target_id: str) -> tuple[str, str]:
        """Key for work on a target: its linked source's key when one is linked.

        Linked targets then share the lock used by events and the source sweep.
        """

        try:
            link = self.links.find_by_target(self.link_set, target_id)
        except ObjectStoreError:
            # the entry reads the link again and records that failure
            log.debug("Could not resolve link of target %s for locking", target_id)
            return ("target", target_id)
        if link is None:
            return ("target", target_id)
        return self.lock_key_for_source(link.source_id)

    # Store access -----------------------------------------------------------

    def apply_mappings(self, source: Mapping[str, Any], target: MutableMapping[str, Any]) -> None:
        apply_mappings(self.properties, source, target)

    def read_source(self, object_id: str) -> Record | None:
        return self._read(self.source_collection, object_id)

    def read_target(self, object_id: str) -> Record | None:
        return self._read(self.target_collection, object_id)

    def _read(self, collection: str, object_id: str) -> Record | None:
        try:
            return self.objects.read(collection, object_id)
        except NotFoundError:
            return None
        except ObjectStoreError as exc:
            log.warning("Failed to read %s", qualified_id(collection, object_id))
            raise SynchronizationError(
                f"Failed to read {qualified_id(collection, object_id)}"
            ) from exc

    def create_target(self, target: Record, *, context: SyncContext | None = None) -> Record:
        object_id = optional_record_id(target)
        log.debug("Create target object %s", qualified_id(self.target_collection, object_id))
        try:
            return self.objects.create(
                self.target_collection,
                target,
                object_id=object_id,
                context=context,
            )
        except ObjectStoreError as exc:
            log.warning("Failed to create target object in %s", self.target_collection)
            raise SynchronizationError(
                f"Failed to create target object in {self.target_collection}"
            ) from exc

    def update_target(self, target: Record) -> Record:
        object_id = optional_record_id(target)
        if object_id is None:
            raise SynchronizationError("Cannot update target object without _id")
        log.debug("Update target object %s", qualified_id(self.target_collection, object_id))
        try:
            return self.objects.update(
                self.target_collection,
                object_id,
                record_revision(target),
                target,
            )
        except ObjectStoreError as exc:
            log.warning("Failed to update target object %s", object_id)
            raise SynchronizationError(f"Failed to update target object {object_id}") from exc

    def delete_target(self, target: Record) -> None:
        object_id = optional_record_id(target)
        if object_id is None:
            return
        log.debug("Delete target object %s", qualified_id(self.target_collection, object_id))
        try:
            self.objects.delete(self.target_collection, object_id, record_revision(target))
        except NotFoundError:
            return
        except ObjectStoreError as exc:
            log.warning("Failed to delete target object %s", object_id)
            raise SynchronizationError(f"Failed to delete target object {object_id}") from exc

    def query_target(self, query: Mapping[str, Any]) -> Sequence[Record]:
        try:
            return self.objects.query(self.target_collection, query)
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to query {self.target_collection}") from exc

    def _query_all_ids(self, collection: str) -> Sequence[str]:
        try:
            return list(self.objects.query_all_ids(collection))
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to list ids of {collection}") from exc

    # Change notifications ---------------------------------------------------

    def on_create(
        self,
        object_id: str,
        value: Record | None = None,
        *,
        context: SyncContext | None = None,
    ) -> None:
        local_id = local_id_in(self.source_collection, object_id)
        if local_id is None:
            return
        if value is None:
            value = self.read_source(local_id)
        self._source_sync(local_id, value, context=context)

    def on_update(
        self,
        object_id: str,
        old_value: Record | None,
        new_value: Record | None,
        *,
        context: SyncContext | None = None,
    ) -> None:
        local_id = local_id_in(self.source_collection, object_id)
        if local_id is None:
            return
        if new_value is None:
            new_value = self.read_source(local_id)
        if old_value is not None and old_value == new_value:
            log.debug("There is nothing to update on %s", object_id)
            return
        self._source_sync(local_id, new_value, context=context)

    def on_delete(self, object_id: str, *, context: SyncContext | None = None) -> None:
        local_id = local_id_in(self.source_collection, object_id)
        if local_id is None:
            return
        self._source_sync(local_id, None, context=context)

    def _source_sync(
        self,
        source_id: str,
        value: Record | None,
        *,
        context: SyncContext | None,
    ) -> None:
        log.debug(
            "Start source synchronization of %s %s",
            source_id,
            "without a value" if value is None else "with a value",
        )
        source_object: Record | None = None
        if value is not None:
            source_object = dict(value)
            source_object["_id"] = source_id
        operation = SourceSyncOperation(
            self,
            source_id,
            source_object,
            context=context or SyncContext(),
        )
        with self.locks.hold(self.lock_key_for_source(source_id)):
            operation.sync()

    def explicit_op(
        self,
        source_object: Record | None,
        target_object: Record | None,
        situation: Situation | None,
        action: Action,
        recon_id: str | None = None,
        *,
        context: SyncContext | None = None,
    ) -> None:
        """Execute ``action`` directly, without assessing the situation."""

        operation = ExplicitSyncOperation(
            self,
            source_object=source_object,
            target_object=target_object,
            situation=situation,
            action=action,
            context=context or SyncContext(),
            recon_id=recon_id,
        )
        operation.sync()

    # Reconciliation ---------------------------------------------------------

    def recon(self, recon_id: str) -> ReconResult:
        """Run a full reconciliation pass: source sweep, then target sweep."""

        log.info("Mapping %r reconciliation %s started", self.name, recon_id)
        global_stats = ReconStats(recon_id, self.name)
        source_stats = ReconStats(recon_id, self.source_collection)

        source_stats.start_all_ids()
        source_ids = self._query_all_ids(self.source_collection)
        source_stats.end_all_ids()
        if not source_ids:
            raise EmptySourceError(
                f"Refusing to reconcile mapping {self.name!r} with an empty source collection"
            )
        for source_id in source_ids:
            self._recon_source_entry(recon_id, source_id, source_stats)
        source_stats.end()

        target_stats = ReconStats(recon_id, self.target_collection)
        target_stats.start_all_ids()
        target_ids = self._query_all_ids(self.target_collection)
        target_stats.end_all_ids()
        for target_id in target_ids:
            self._recon_target_entry(recon_id, target_id, target_stats)
        target_stats.end()
        global_stats.end()

        result = ReconResult(
            recon_id=recon_id,
            source=source_stats,
            target=target_stats,
            global_=global_stats,
        )
        self._run_result_hook(result)
        log.info(
            "Mapping %r reconciliation %s finished: source entries=%s, target entries=%s",
            self.name,
            recon_id,
            source_stats.entries,
            target_stats.entries,
        )
        return result

    def _recon_source_entry(self, recon_id: str, source_id: str, stats: ReconStats) -> None:
        operation = SourceSyncOperation(
            self,
            source_id,
            context=SyncContext(),
            recon_id=recon_id,
            stats=stats,
        )
        stats.add_entry()
        with self.locks.hold(self.lock_key_for_source(source_id)):
            status, message = self._run_entry(operation, recon_id, Reconciling.SOURCE, source_id)
        if status is ReconStatus.FAILURE or operation.action is not None:
            self._log_recon_entry(
                ReconEntry(
                    recon_id=recon_id,
                    reconciling=Reconciling.SOURCE,
                    source_object_id=qualified_id(self.source_collection, source_id),
                    target_object_id=self._qualified_or_none(
                        self.target_collection, operation.target_object
                    ),
                    situation=operation.situation,
                    action=operation.action,
                    status=status,
                    message=message,
                )
            )

    def _recon_target_entry(self, recon_id: str, target_id: str, stats: ReconStats) -> None:
        operation = TargetSyncOperation(
            self,
            context=SyncContext(),
            recon_id=recon_id,
            stats=stats,
        )
        stats.add_entry()
        with self.locks.hold(self.lock_key_for_target(target_id)):
            status, message = self._run_entry(operation, recon_id, Reconciling.TARGET, target_id)
        if status is ReconStatus.FAILURE or operation.action is not None:
            self._log_recon_entry(
                ReconEntry(
                    recon_id=recon_id,
                    reconciling=Reconciling.TARGET,
                    source_object_id=self._qualified_or_none(
                        self.source_collection, operation.source_object
                    ),
                    target_object_id=qualified_id(self.target_collection, target_id),
                    situation=operation.situation,
                    action=operation.action,
                    status=status,
                    message=message,
                )
            )

    def _run_entry(
        self,
        operation: SyncOperation,
        recon_id: str,
        reconciling: Reconciling,
        object_id: str,
    ) -> tuple[ReconStatus, str | None]:
        try:
            if reconciling is Reconciling.SOURCE:
                operation.source_object = self.read_source(object_id)
            else:
                operation.target_object = self.read_target(object_id)
            operation.sync()
        except Exception as exc:  # noqa: BLE001
            status = ReconStatus.SUCCESS
            if operation.action is not Action.EXCEPTION:
                status = ReconStatus.FAILURE
                log.warning(
                    "Unexpected failure during %s reconciliation %s of %s",
                    reconciling,
                    recon_id,
                    object_id,
                    exc_info=True,
                )
            return status, describe_failure(exc)
        return ReconStatus.SUCCESS, None

    @staticmethod
    def _qualified_or_none(collection: str, record: Record | None) -> str | None:
        object_id = optional_record_id(record)
        return None if object_id is None else qualified_id(collection, object_id)

    def _log_recon_entry(self, entry: ReconEntry) -> None:
        if self.audit is None:
            return
        try:
            self.audit.create(self.audit_collection, entry.as_dict())
        except ObjectStoreError as exc:
            raise SynchronizationError(f"Failed to write audit entry to {self.audit_collection}") from exc

    def _run_result_hook(self, result: ReconResult) -> None:
        hook = self.hooks.result
        if hook is None:
            return
        try:
            hook(result.as_dict())
        except Exception as exc:
            log.debug("%s result script encountered exception", self.name, exc_info=True)
            raise HookError(f"{self.name} result script encountered exception") from exc
