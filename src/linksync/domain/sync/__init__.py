"""Synchronization engine.

Flow for one record:
1) assess the situation of the source (or target) record and its link
2) determine the action from policies or the situation's default
3) perform the action against the target collection and the link store

``ObjectMapping.recon`` runs this for every source record and then for every
target record not reached by the source sweep.
"""

from __future__ import annotations

from .config import (
    MappingConfig,
    MappingConfigError,
    PolicyConfig,
    PropertyConfig,
    SyncDocument,
    load_sync_document,
)
from .errors import (
    EmptySourceError,
    HookError,
    HookResultError,
    SyncAbortedError,
    SynchronizationError,
    describe_failure,
    root_cause,
)
from .links import LinkHandle
from .mapping import ObjectMapping, ReconResult
from .operation import (
    ExplicitSyncOperation,
    SourceSyncOperation,
    SyncOperation,
    TargetSyncOperation,
)
from .pending import PendingLink, SyncContext
from .policy import Policy, determine_action
from .properties import PropertyMapping
from .service import SynchronizationService, build_service
from .stats import ReconStats

__all__ = [
    "EmptySourceError",
    "ExplicitSyncOperation",
    "HookError",
    "HookResultError",
    "LinkHandle",
    "MappingConfig",
    "MappingConfigError",
    "ObjectMapping",
    "PendingLink",
    "Policy",
    "PolicyConfig",
    "PropertyConfig",
    "PropertyMapping",
    "ReconResult",
    "ReconStats",
    "SourceSyncOperation",
    "SyncAbortedError",
    "SyncContext",
    "SyncDocument",
    "SyncOperation",
    "SynchronizationError",
    "SynchronizationService",
    "TargetSyncOperation",
    "build_service",
    "describe_failure",
    "determine_action",
    "load_sync_document",
    "root_cause",
]
