"""Create activities, activity_replies and activity_audience tables

Revision ID: 5d2c8e71a0b4
Revises:
Create Date: 2026-10-19 10:12:41.208113

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5d2c8e71a0b4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the activity stream tables."""

    # --- activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("display_actor", sa.String(255), nullable=True),
        sa.Column("verb", sa.String(255), nullable=True),
        sa.Column("object", sa.String(1024), nullable=True),
        sa.Column("display_object", sa.String(1024), nullable=True),
        sa.Column("target", sa.String(1024), nullable=True),
        sa.Column("display_target", sa.String(1024), nullable=True),
        sa.Column("context", sa.String(1024), nullable=True),
        sa.Column("published_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_updated_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "parameters",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=True,
        ),
        sa.Column("reply_sequence", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_activities_published", "activities", ["published_date"])
    op.create_index(
        "ix_activities_verb_published", "activities", ["verb", "published_date"],
    )
    op.create_index("ix_activities_actor", "activities", ["actor"])

    # --- activity_replies ---
    op.create_table(
        "activity_replies",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "activity_id",
            sa.Integer,
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ordinal", sa.Integer, nullable=False),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("display_actor", sa.String(255), nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("published_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_activity_replies_activity_ordinal", "activity_replies",
        ["activity_id", "ordinal"],
        unique=True,
    )

    # --- activity_audience (owned by the "seen by" filter) ---
    op.create_table(
        "activity_audience",
        sa.Column(
            "activity_id",
            sa.Integer,
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("member", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("activity_id", "member"),
    )
    op.create_index("ix_activity_audience_member", "activity_audience", ["member"])


def downgrade() -> None:
    """Drop the activity stream tables."""
    op.drop_index("ix_activity_audience_member", table_name="activity_audience")
    op.drop_table("activity_audience")
    op.drop_index("ix_activity_replies_activity_ordinal", table_name="activity_replies")
    op.drop_table("activity_replies")
    op.drop_index("ix_activities_actor", table_name="activities")
    op.drop_index("ix_activities_verb_published", table_name="activities")
    op.drop_index("ix_activities_published", table_name="activities")
    op.drop_table("activities")
