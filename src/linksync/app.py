"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from linksync.adapters.memory import InMemoryAuditSink, InMemoryLinkStore, InMemoryObjectStore
from linksync.adapters.scripting import CallableEvaluator
from linksync.adapters.sqlalchemy.engine import is_started, startup
from linksync.adapters.sqlalchemy.repositories import SqlAlchemyAuditSink, SqlAlchemyLinkStore
from linksync.config import configure_logging, get_sync_config, require_mappings_file
from linksync.domain.sync import build_service, load_sync_document

if TYPE_CHECKING:
    from linksync.domain.ports import AuditSink, LinkStore, ScriptEvaluator
    from linksync.domain.sync import ReconResult, SyncDocument, SynchronizationService


log = getLogger(__name__)


def bootstrap(*, force_logging: bool = False) -> None:
    """Load ``.env`` settings and configure logging for a process."""

    load_dotenv()
    configure_logging(force=force_logging)


def build_synchronization_service(
    *,
    document: SyncDocument | None = None,
    objects: InMemoryObjectStore | None = None,
    links: LinkStore | None = None,
    audit: AuditSink | None = None,
    evaluator: ScriptEvaluator | None = None,
    persistent: bool = True,
) -> SynchronizationService:
    """Wire the configured mappings to their collaborators.

    Links and audit entries go to the SQLAlchemy adapter unless ``persistent`` is
    false or stores are passed in. The returned service is subscribed to the
    object store so writes there trigger synchronization.
    """

    effective_document = document or load_sync_document(require_mappings_file())
    effective_objects = objects if objects is not None else InMemoryObjectStore()
    if persistent and (links is None or audit is None) and not is_started():
        startup()
    if links is None:
        links = SqlAlchemyLinkStore() if persistent else InMemoryLinkStore()
    if audit is None:
        audit = SqlAlchemyAuditSink() if persistent else InMemoryAuditSink()

    service = build_service(
        effective_document.mappings,
        objects=effective_objects,
        links=links,
        evaluator=evaluator or CallableEvaluator(),
        audit=audit,
        audit_collection=get_sync_config().audit_collection,
    )
    effective_objects.subscribe(service)
    log.info(
        "Synchronization service ready: mappings=%s",
        ", ".join(mapping.name for mapping in service.mappings),
    )
    return service


def reconcile_mapping(
    service: SynchronizationService,
    mapping_name: str,
    *,
    recon_id: str | None = None,
) -> ReconResult:
    """Run one reconciliation pass and log its summary."""

    log.info(f"Starting reconciliation of {mapping_name}")
    result = service.recon(mapping_name, recon_id)
    log.info(
        f"Finished reconciliation {result.recon_id} of {mapping_name}: "
        f"source entries={result.source.entries}, "
        f"target entries={result.target.entries}"
    )
    return result
