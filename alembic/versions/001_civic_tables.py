"""Profiles, positions and alerts for signed-in users.

Revision ID: 001_civic_tables
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_civic_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the progress tables."""
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False, server_default="EU Citizen"),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_active_date", sa.Date(), nullable=True),
        sa.Column("stats", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("achievements", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_profiles_xp", "profiles", ["xp"])

    op.create_table(
        "positions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("procedure_id", sa.String(64), nullable=False),
        sa.Column("procedure_title", sa.Text(), nullable=False),
        sa.Column("position", sa.String(16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("actions_taken", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "procedure_id", name="positions_user_id_procedure_id_key"),
    )
    op.create_index("idx_positions_user", "positions", ["user_id"])
    op.execute(
        "ALTER TABLE positions ADD CONSTRAINT ck_positions_position "
        "CHECK (position IN ('support', 'oppose', 'neutral'))"
    )

    op.create_table(
        "user_alerts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("procedure_reference", sa.String(64), nullable=True),
        sa.Column("topic", sa.String(128), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_user_alerts_user", "user_alerts", ["user_id"])
    op.execute(
        "ALTER TABLE user_alerts ADD CONSTRAINT ck_user_alerts_channel "
        "CHECK (channel IN ('email', 'in_app'))"
    )


def downgrade() -> None:
    """Drop the progress tables."""
    op.drop_table("user_alerts")
    op.drop_table("positions")
    op.drop_index("idx_profiles_xp", table_name="profiles")
    op.drop_table("profiles")
