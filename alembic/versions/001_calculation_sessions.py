"""Calculation sessions table for saved and shared comparisons.

Revision ID: 001_calculation_sessions
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001_calculation_sessions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "calculation_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("share_token", sa.String(64), nullable=False),
        sa.Column("configuration", postgresql.JSONB, nullable=False),
        sa.Column("results", postgresql.JSONB, nullable=False),
        sa.Column("configuration_hash", sa.String(64), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("access_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_calculation_sessions_share_token",
        "calculation_sessions",
        ["share_token"],
        unique=True,
    )
    op.create_index(
        "ix_calculation_sessions_configuration_hash",
        "calculation_sessions",
        ["configuration_hash"],
    )
    op.create_index(
        "ix_calculation_sessions_expires_at",
        "calculation_sessions",
        ["expires_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_calculation_sessions_expires_at", table_name="calculation_sessions")
    op.drop_index("ix_calculation_sessions_configuration_hash", table_name="calculation_sessions")
    op.drop_index("ix_calculation_sessions_share_token", table_name="calculation_sessions")
    op.drop_table("calculation_sessions")
