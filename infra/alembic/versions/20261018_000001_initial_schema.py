"""Initial database schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("login", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.SmallInteger(), nullable=False),
        sa.CheckConstraint("role >= 1 AND role <= 3", name="ck_users_role"),
        comment="role: 1 initiator, 2 purchasing manager, 3 accounting manager",
    )

    op.create_table(
        "tickets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.SmallInteger(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(precision=53), nullable=True),
        sa.Column(
            "initiator_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", onupdate="RESTRICT", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "purchasing_manager_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", onupdate="RESTRICT", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column(
            "accounting_manager_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", onupdate="RESTRICT", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("status >= 1 AND status <= 5", name="ck_tickets_status"),
        comment="status: 1 requested, 2 cancelled, 3 confirmed, 4 denied, 5 payment completed",
    )
    op.create_index(
        "ix_tickets_created_at_id",
        "tickets",
        [sa.text("created_at DESC"), sa.text("id DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_tickets_created_at_id", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("users")
