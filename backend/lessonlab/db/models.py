"""
SQLAlchemy 2.0 Models for LessonLab.

Uses modern declarative syntax with Mapped[] type annotations.
All models use UUID primary keys.

Ownership: every content-bearing row carries a child_id and/or a parent id
(parent_id, or user_id on notifications). Access checks in
lessonlab.services.access read these columns directly.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import CITEXT, JSONB, TIMESTAMP, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lessonlab.db.base import Base


# =============================================================================
# ENUMS
# =============================================================================


class ChapterStatus(str, PyEnum):
    """Lifecycle of a chapter row."""

    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"
    COMPLETED = "completed"


class LearningStage(str, PyEnum):
    """Stage of a learning activity."""

    LEARN = "learn"
    PRACTICE = "practice"
    TEST = "test"


class NotificationType(str, PyEnum):
    CHAPTER_COMPLETE = "chapter_complete"


DEFAULT_NOTIFICATION_PREFERENCES = {
    "chapter_complete": True,
    "weekly_report": True,
}


# =============================================================================
# MODELS
# =============================================================================


class Parent(Base):
    """
    Parent account.

    Owns children and, through them, chapters. Logs in with email + password.
    """

    __tablename__ = "parents"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    email: Mapped[str] = mapped_column(CITEXT(), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    notification_preferences: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=lambda: dict(DEFAULT_NOTIFICATION_PREFERENCES)
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    children: Mapped[list["Child"]] = relationship(
        "Child", back_populates="parent", cascade="all, delete-orphan"
    )


class Child(Base):
    """
    Child profile. parent_id is fixed at creation and never reassigned.

    Children have no credentials of their own; a child session is always
    derived from a parent session.
    """

    __tablename__ = "children"
    __table_args__ = (
        CheckConstraint("age BETWEEN 3 AND 18", name="valid_child_age"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    parent_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("parents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    total_stars: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    parent: Mapped["Parent"] = relationship("Parent", back_populates="children")


class Chapter(Base):
    """
    A generated lesson for one child.

    Written twice by the pipeline: once at creation (status=processing,
    content NULL) and once on completion (ready + content, or error).
    """

    __tablename__ = "chapters"
    __table_args__ = (
        Index("idx_chapters_parent_id", "parent_id"),
        Index("idx_chapters_child_id", "child_id"),
        CheckConstraint("grade BETWEEN 1 AND 6", name="valid_chapter_grade"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    child_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("children.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("parents.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(50), nullable=False)
    grade: Mapped[int] = mapped_column(nullable=False)

    # LessonContent as JSON; NULL while processing
    content: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=ChapterStatus.PROCESSING.value
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Relationships
    photos: Mapped[list["ChapterPhoto"]] = relationship(
        "ChapterPhoto", back_populates="chapter", cascade="all, delete-orphan"
    )


class ChapterPhoto(Base):
    """Source page image submitted with a chapter."""

    __tablename__ = "chapter_photos"
    __table_args__ = (Index("idx_chapter_photos_chapter_id", "chapter_id"),)

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    chapter_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False
    )
    media_type: Mapped[str] = mapped_column(String(50), nullable=False)
    photo_data: Mapped[str] = mapped_column(Text, nullable=False)  # base64
    page_number: Mapped[int] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    chapter: Mapped["Chapter"] = relationship("Chapter", back_populates="photos")


class ChapterResult(Base):
    """Scored answer submission for a chapter."""

    __tablename__ = "chapter_results"
    __table_args__ = (
        Index("idx_chapter_results_chapter_id", "chapter_id"),
        Index("idx_chapter_results_child_id", "child_id"),
        CheckConstraint("stars BETWEEN 1 AND 5", name="valid_stars"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    chapter_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False
    )
    child_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("children.id", ondelete="CASCADE"), nullable=False
    )
    practice_score: Mapped[int] = mapped_column(nullable=False)
    test_score: Mapped[int] = mapped_column(nullable=False)
    total_score: Mapped[int] = mapped_column(nullable=False)
    stars: Mapped[int] = mapped_column(nullable=False)
    # Not measured yet; NULL rather than a made-up value
    time_spent_seconds: Mapped[Optional[int]] = mapped_column(nullable=True)
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )


class LearningSession(Base):
    """Time spent by a child in one stage of a chapter."""

    __tablename__ = "learning_sessions"
    __table_args__ = (
        Index("idx_learning_sessions_child_id", "child_id"),
        Index("idx_learning_sessions_chapter_id", "chapter_id"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    child_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("children.id", ondelete="CASCADE"), nullable=False
    )
    chapter_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False
    )
    stage: Mapped[str] = mapped_column(String(20), nullable=False)  # 'learn', 'practice', 'test'
    started_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    duration_seconds: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")


class Notification(Base):
    """In-app notification addressed to a parent (user_id = parent id)."""

    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user_id", "user_id"),)

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("parents.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    read: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
