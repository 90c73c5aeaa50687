"""Errors raised by the synchronization engine."""

from __future__ import annotations

from linksync.domain.ports.errors import ConflictError


class SynchronizationError(RuntimeError):
    """Raised when synchronizing a record fails.

    Collaborator failures are chained via ``raise ... from`` so that
    :func:`root_cause` can report the innermost error.
    """

    @property
    def retryable(self) -> bool:
        return isinstance(root_cause(self), ConflictError)


class HookError(SynchronizationError):
    """Raised when a configured hook fails while being evaluated."""


class HookResultError(SynchronizationError):
    """Raised when a hook yields a value of the wrong shape."""


class SyncAbortedError(SynchronizationError):
    """Raised by the ``EXCEPTION`` action to abort the current entry on purpose."""


class EmptySourceError(SynchronizationError):
    """Raised when a reconciliation pass finds no records in the source collection."""


def root_cause(exc: BaseException) -> BaseException:
    current = exc
    seen: set[int] = {id(current)}
    while current.__cause__ is not None and id(current.__cause__) not in seen:
        current = current.__cause__
        seen.add(id(current))
    return current


def describe_failure(exc: BaseException) -> str:
    """Return the message recorded in audit entries for ``exc``."""

    cause = root_cause(exc)
    if cause is exc:
        return str(exc)
    return f"{exc}. Root cause: {cause}"
