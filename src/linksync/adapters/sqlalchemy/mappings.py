"""SQLAlchemy table metadata for links and reconciliation audit entries."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s_%(column_1_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

link_table = Table(
    "links",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("link_set", String(255), nullable=False),
    Column("source_id", String(255), nullable=False),
    Column("target_id", String(255), nullable=False),
    Column("recon_id", String(64), nullable=True),
    Column("revision", Integer, nullable=False, default=0),
    UniqueConstraint("link_set", "source_id"),
    UniqueConstraint("link_set", "target_id"),
)

recon_audit_table = Table(
    "recon_audit",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("collection", String(255), nullable=False),
    Column("recon_id", String(64), nullable=True),
    Column("reconciling", String(16), nullable=False),
    Column("source_object_id", String(512), nullable=True),
    Column("target_object_id", String(512), nullable=True),
    Column("timestamp", String(32), nullable=False),
    Column("situation", String(32), nullable=True),
    Column("action", String(32), nullable=True),
    Column("status", String(16), nullable=False),
    Column("message", Text, nullable=True),
    Index("ix_recon_audit_recon_id", "recon_id"),
)
