"""SQLAlchemy adapter package for linksync."""

from __future__ import annotations

from .mappings import link_table, metadata, recon_audit_table

__all__ = [
    "link_table",
    "metadata",
    "recon_audit_table",
]
