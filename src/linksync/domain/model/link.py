"""Persisted correlation between a source record and a target record."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Link:
    """One row of a link set.

    ``link_id`` and ``revision`` are assigned by the link store; both are ``None``
    for a link that has not been persisted yet.
    """

    source_id: str
    target_id: str
    recon_id: str | None = None
    link_id: str | None = None
    revision: str | None = None
