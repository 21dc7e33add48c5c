"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

This migration creates the complete LessonLab database schema:
- Extensions: uuid-ossp, citext
- Tables: parents, children, chapters, chapter_photos, chapter_results,
  learning_sessions, notifications
- Indexes: ownership columns used by every scoped query
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False
    )


def upgrade() -> None:
    # ==========================================================================
    # EXTENSIONS
    # ==========================================================================
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute('CREATE EXTENSION IF NOT EXISTS "citext"')

    # ==========================================================================
    # PARENTS TABLE
    # ==========================================================================
    op.create_table(
        "parents",
        _id_column(),
        sa.Column("email", postgresql.CITEXT(), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "notification_preferences",
            postgresql.JSONB(),
            server_default=sa.text('\'{"chapter_complete": true, "weekly_report": true}\'::jsonb'),
            nullable=False,
        ),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_parents_email", "parents", ["email"])

    # ==========================================================================
    # CHILDREN TABLE
    # ==========================================================================
    op.create_table(
        "children",
        _id_column(),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("total_stars", sa.Integer(), server_default="0", nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["parent_id"], ["parents.id"], ondelete="CASCADE"),
        sa.CheckConstraint("age BETWEEN 3 AND 18", name="valid_child_age"),
    )
    op.create_index("ix_children_parent_id", "children", ["parent_id"])

    # ==========================================================================
    # CHAPTERS TABLE
    # ==========================================================================
    op.create_table(
        "chapters",
        _id_column(),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(50), nullable=False),
        sa.Column("grade", sa.Integer(), nullable=False),
        sa.Column("content", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(20), server_default="processing", nullable=False),
        _created_at_column(),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["parents.id"], ondelete="CASCADE"),
        sa.CheckConstraint("grade BETWEEN 1 AND 6", name="valid_chapter_grade"),
    )
    op.create_index("idx_chapters_parent_id", "chapters", ["parent_id"])
    op.create_index("idx_chapters_child_id", "chapters", ["child_id"])

    # ==========================================================================
    # CHAPTER_PHOTOS TABLE
    # ==========================================================================
    op.create_table(
        "chapter_photos",
        _id_column(),
        sa.Column("chapter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("media_type", sa.String(50), nullable=False),
        sa.Column("photo_data", sa.Text(), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_chapter_photos_chapter_id", "chapter_photos", ["chapter_id"])

    # ==========================================================================
    # CHAPTER_RESULTS TABLE
    # ==========================================================================
    op.create_table(
        "chapter_results",
        _id_column(),
        sa.Column("chapter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("practice_score", sa.Integer(), nullable=False),
        sa.Column("test_score", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("stars", sa.Integer(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=True),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.CheckConstraint("stars BETWEEN 1 AND 5", name="valid_stars"),
    )
    op.create_index("idx_chapter_results_chapter_id", "chapter_results", ["chapter_id"])
    op.create_index("idx_chapter_results_child_id", "chapter_results", ["child_id"])

    # ==========================================================================
    # LEARNING_SESSIONS TABLE
    # ==========================================================================
    op.create_table(
        "learning_sessions",
        _id_column(),
        sa.Column("child_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("chapter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("stage", sa.String(20), nullable=False),
        sa.Column("started_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("ended_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_learning_sessions_child_id", "learning_sessions", ["child_id"])
    op.create_index("idx_learning_sessions_chapter_id", "learning_sessions", ["chapter_id"])

    # ==========================================================================
    # NOTIFICATIONS TABLE
    # ==========================================================================
    op.create_table(
        "notifications",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("read", sa.Boolean(), server_default="false", nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["parents.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("learning_sessions")
    op.drop_table("chapter_results")
    op.drop_table("chapter_photos")
    op.drop_table("chapters")
    op.drop_table("children")
    op.drop_table("parents")
