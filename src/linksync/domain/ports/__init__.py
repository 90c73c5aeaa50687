"""Domain port definitions for adapters."""

from __future__ import annotations

from .audit import AuditSink
from .errors import ConflictError, NotFoundError, ObjectStoreError
from .links import LinkStore
from .objects import ObjectStore, SynchronizationListener
from .scripting import Hook, ScriptEvaluator

__all__ = [
    "AuditSink",
    "ConflictError",
    "Hook",
    "LinkStore",
    "NotFoundError",
    "ObjectStore",
    "ObjectStoreError",
    "ScriptEvaluator",
    "SynchronizationListener",
]
