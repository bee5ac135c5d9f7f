"""Initial progress tracking schema

Revision ID: 001_initial_progress
Revises:
Create Date: 2025-01-01

Creates the following tables:
- topics: Static topic catalog
- problems: Static problem catalog
- user_progress: Attempt ledger, one row per (user, problem)
- user_stats: Per-user streak summary, one row per user
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_initial_progress"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create topics table
    op.create_table(
        "topics",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("parent_topic_id", sa.String(36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["parent_topic_id"], ["topics.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create problems table
    op.create_table(
        "problems",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("topic_id", sa.String(36), nullable=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("difficulty", sa.String(10), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.String()), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("problem_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "difficulty IN ('easy', 'medium', 'hard')", name="ck_problems_difficulty"
        ),
    )
    op.create_index("ix_problems_topic_id", "problems", ["topic_id"])
    op.create_index("ix_problems_difficulty", "problems", ["difficulty"])

    # Create user_progress table
    op.create_table(
        "user_progress",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("problem_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="none"),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("solved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "problem_id", name="uq_user_progress_user_problem"
        ),
        sa.CheckConstraint(
            "status IN ('none', 'attempted', 'solved')", name="ck_user_progress_status"
        ),
    )
    op.create_index("ix_user_progress_user_id", "user_progress", ["user_id"])
    op.create_index("ix_user_progress_problem_id", "user_progress", ["problem_id"])
    op.create_index("ix_user_progress_solved_at", "user_progress", ["solved_at"])

    # Create user_stats table
    op.create_table(
        "user_stats",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "total_problems_solved", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("daily_goal", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_user_stats_user_id"),
        sa.CheckConstraint("daily_goal > 0", name="ck_user_stats_daily_goal"),
        sa.CheckConstraint(
            "longest_streak >= current_streak", name="ck_user_stats_longest_streak"
        ),
    )


def downgrade() -> None:
    op.drop_table("user_stats")
    op.drop_index("ix_user_progress_solved_at", table_name="user_progress")
    op.drop_index("ix_user_progress_problem_id", table_name="user_progress")
    op.drop_index("ix_user_progress_user_id", table_name="user_progress")
    op.drop_table("user_progress")
    op.drop_index("ix_problems_difficulty", table_name="problems")
    op.drop_index("ix_problems_topic_id", table_name="problems")
    op.drop_table("problems")
    op.drop_table("topics")
