"""Request-scoped coordination for links established during a create cascade.

Creating a target record may make the object store notify its listeners before
``create`` returns. The creating operation records a pending link on the
:class:`SyncContext` it passes to the store; whoever handles the notification can
establish the link early and flag it, so the creating operation does not link the
pair a second time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from linksync.domain.model import Record, Situation

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class PendingLink:
    mapping_name: str
    source_id: str
    source_object: Record
    recon_id: str | None = None
    situation: Situation | None = None
    linked: bool = False


@dataclass(slots=True)
class SyncContext:
    """Explicit context threaded through one top-level synchronization call."""

    request_id: str = field(default_factory=lambda: uuid4().hex)
    pending_link: PendingLink | None = None

    def populate_pending_link(
        self,
        *,
        mapping_name: str,
        source_id: str,
        source_object: Record,
        recon_id: str | None,
        situation: Situation | None,
    ) -> PendingLink:
        pending = PendingLink(
            mapping_name=mapping_name,
            source_id=source_id,
            source_object=source_object,
            recon_id=recon_id,
            situation=situation,
        )
        self.pending_link = pending
        log.debug("Pending link for %s/%s registered in %s", mapping_name, source_id, self.request_id)
        return pending

    def clear_pending_link(self, pending: PendingLink | None = None) -> None:
        """Drop the pending link, or only ``pending`` when it is still the current one."""

        if pending is None or self.pending_link is pending:
            self.pending_link = None
