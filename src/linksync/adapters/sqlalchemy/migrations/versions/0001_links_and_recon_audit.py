"""Create links and recon_audit tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "links",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("link_set", sa.String(length=255), nullable=False),
        sa.Column("source_id", sa.String(length=255), nullable=False),
        sa.Column("target_id", sa.String(length=255), nullable=False),
        sa.Column("recon_id", sa.String(length=64), nullable=True),
        sa.Column("revision", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_links"),
        sa.UniqueConstraint("link_set", "source_id", name="uq_links_link_set_source_id"),
        sa.UniqueConstraint("link_set", "target_id", name="uq_links_link_set_target_id"),
    )
    op.create_table(
        "recon_audit",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("collection", sa.String(length=255), nullable=False),
        sa.Column("recon_id", sa.String(length=64), nullable=True),
        sa.Column("reconciling", sa.String(length=16), nullable=False),
        sa.Column("source_object_id", sa.String(length=512), nullable=True),
        sa.Column("target_object_id", sa.String(length=512), nullable=True),
        sa.Column("timestamp", sa.String(length=32), nullable=False),
        sa.Column("situation", sa.String(length=32), nullable=True),
        sa.Column("action", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_recon_audit"),
    )
    op.create_index("ix_recon_audit_recon_id", "recon_audit", ["recon_id"])


def downgrade() -> None:
    op.drop_index("ix_recon_audit_recon_id", table_name="recon_audit")
    op.drop_table("recon_audit")
    op.drop_table("links")
