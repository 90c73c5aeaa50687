"""Audit records produced by reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .enums import ReconStatus

if TYPE_CHECKING:
    from .enums import Action, Reconciling, Situation

DEFAULT_AUDIT_COLLECTION = "audit/recon"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconEntry:
    """Audit record for one reconciled entry that failed or triggered an action."""

    recon_id: str | None
    reconciling: Reconciling
    source_object_id: str | None = None
    target_object_id: str | None = None
    situation: Situation | None = None
    action: Action | None = None
    status: ReconStatus = ReconStatus.SUCCESS
    message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def as_dict(self) -> dict[str, Any]:
        return {
            "reconId": self.recon_id,
            "reconciling": str(self.reconciling),
            "sourceObjectId": self.source_object_id,
            "targetObjectId": self.target_object_id,
            "timestamp": self.timestamp.astimezone(UTC).strftime(TIMESTAMP_FORMAT),
            "situation": None if self.situation is None else str(self.situation),
            "action": None if self.action is None else str(self.action),
            "status": str(self.status),
            "message": self.message,
        }
