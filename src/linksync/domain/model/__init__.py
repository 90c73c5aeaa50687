"""Domain model package for linksync."""

from __future__ import annotations

from .audit import DEFAULT_AUDIT_COLLECTION, ReconEntry
from .enums import Action, Reconciling, ReconStatus, Situation, default_action
from .link import Link
from .records import (
    ID_ATTRIBUTE,
    REVISION_ATTRIBUTE,
    Record,
    has_non_reserved_attribute,
    local_id_in,
    optional_record_id,
    qualified_id,
    record_revision,
)

__all__ = [
    "DEFAULT_AUDIT_COLLECTION",
    "ID_ATTRIBUTE",
    "REVISION_ATTRIBUTE",
    "Action",
    "Link",
    "ReconEntry",
    "ReconStatus",
    "Reconciling",
    "Record",
    "Situation",
    "default_action",
    "has_non_reserved_attribute",
    "local_id_in",
    "optional_record_id",
    "qualified_id",
    "record_revision",
]
