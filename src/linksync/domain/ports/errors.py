"""Errors raised by collaborator stores."""

from __future__ import annotations


class ObjectStoreError(RuntimeError):
    """Raised when a collaborator store rejects or fails an operation."""


class NotFoundError(ObjectStoreError):
    """Raised when the addressed record does not exist."""


class ConflictError(ObjectStoreError):
    """Raised when a write carries a stale revision; the caller may retry."""
