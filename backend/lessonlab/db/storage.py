"""
Persistence collaborator.

Keyed lookups and single-row mutations used by the routes and by the
chapter processor. Each mutation commits on its own; nothing here needs a
multi-row transaction.

Ownership is NOT checked here. Callers run the checks in
lessonlab.services.access against the rows returned.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lessonlab.db.models import (
    Chapter,
    ChapterPhoto,
    ChapterResult,
    ChapterStatus,
    Child,
    LearningSession,
    Notification,
    Parent,
)
from lessonlab.db.session import AsyncSessionLocal, get_db
from lessonlab.schemas.lessons import LessonContent

StorageOpener = Callable[[], AbstractAsyncContextManager["Storage"]]


class Storage:
    """Database access for one unit of work."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, row):
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    # =========================================================================
    # PARENTS
    # =========================================================================

    async def create_parent(self, *, email: str, password_hash: str, full_name: str) -> Parent:
        return await self._save(
            Parent(email=email.lower(), password_hash=password_hash, full_name=full_name)
        )

    async def get_parent_by_id(self, parent_id: UUID) -> Parent | None:
        return await self.db.get(Parent, parent_id)

    async def get_parent_by_email(self, email: str) -> Parent | None:
        result = await self.db.execute(select(Parent).where(Parent.email == email.lower()))
        return result.scalar_one_or_none()

    # =========================================================================
    # CHILDREN
    # =========================================================================

    async def create_child(
        self, *, parent_id: UUID, name: str, age: int, avatar_url: str | None = None
    ) -> Child:
        return await self._save(
            Child(parent_id=parent_id, name=name, age=age, avatar_url=avatar_url, total_stars=0)
        )

    async def get_child_by_id(self, child_id: UUID) -> Child | None:
        return await self.db.get(Child, child_id)

    async def list_children_by_parent(self, parent_id: UUID) -> list[Child]:
        result = await self.db.execute(
            select(Child).where(Child.parent_id == parent_id).order_by(Child.created_at)
        )
        return list(result.scalars().all())

    async def add_child_stars(self, child_id: UUID, stars: int) -> None:
        # Single UPDATE so concurrent submissions don't lose increments
        await self.db.execute(
            update(Child)
            .where(Child.id == child_id)
            .values(total_stars=Child.total_stars + stars)
        )
        await self.db.commit()

    # =========================================================================
    # CHAPTERS
    # =========================================================================

    async def create_chapter(
        self, *, child_id: UUID, parent_id: UUID, title: str, subject: str, grade: int
    ) -> Chapter:
        return await self._save(
            Chapter(
                child_id=child_id,
                parent_id=parent_id,
                title=title,
                subject=subject,
                grade=grade,
                status=ChapterStatus.PROCESSING.value,
            )
        )

    async def create_chapter_photos(
        self, chapter_id: UUID, photos: list[tuple[int, str, str]]
    ) -> None:
        """Store (page_number, media_type, base64 data) tuples."""
        self.db.add_all(
            ChapterPhoto(
                chapter_id=chapter_id,
                page_number=page_number,
                media_type=media_type,
                photo_data=data,
            )
            for page_number, media_type, data in photos
        )
        await self.db.commit()

    async def get_chapter_by_id(self, chapter_id: UUID) -> Chapter | None:
        return await self.db.get(Chapter, chapter_id)

    async def list_chapters_by_parent(self, parent_id: UUID) -> list[Chapter]:
        result = await self.db.execute(
            select(Chapter).where(Chapter.parent_id == parent_id).order_by(Chapter.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_chapters_by_child(self, child_id: UUID) -> list[Chapter]:
        result = await self.db.execute(
            select(Chapter).where(Chapter.child_id == child_id).order_by(Chapter.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_chapter_content(self, chapter_id: UUID, content: LessonContent) -> None:
        """Replace the whole content and mark the chapter ready."""
        await self.db.execute(
            update(Chapter)
            .where(Chapter.id == chapter_id)
            .values(content=content.model_dump(mode="json"), status=ChapterStatus.READY.value)
        )
        await self.db.commit()

    async def update_chapter_status(self, chapter_id: UUID, status: ChapterStatus) -> None:
        values: dict = {"status": status.value}
        if status == ChapterStatus.COMPLETED:
            values["completed_at"] = datetime.now(timezone.utc)
        await self.db.execute(update(Chapter).where(Chapter.id == chapter_id).values(**values))
        await self.db.commit()

    # =========================================================================
    # RESULTS
    # =========================================================================

    async def create_result(
        self,
        *,
        chapter_id: UUID,
        child_id: UUID,
        practice_score: int,
        test_score: int,
        total_score: int,
        stars: int,
        answers: dict,
        time_spent_seconds: int | None = None,
    ) -> ChapterResult:
        return await self._save(
            ChapterResult(
                chapter_id=chapter_id,
                child_id=child_id,
                practice_score=practice_score,
                test_score=test_score,
                total_score=total_score,
                stars=stars,
                answers=answers,
                time_spent_seconds=time_spent_seconds,
            )
        )

    async def get_result_by_id(self, result_id: UUID) -> ChapterResult | None:
        return await self.db.get(ChapterResult, result_id)

    async def get_result_by_chapter(self, chapter_id: UUID) -> ChapterResult | None:
        result = await self.db.execute(
            select(ChapterResult)
            .where(ChapterResult.chapter_id == chapter_id)
            .order_by(ChapterResult.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_results_by_child(self, child_id: UUID) -> list[ChapterResult]:
        result = await self.db.execute(
            select(ChapterResult)
            .where(ChapterResult.child_id == child_id)
            .order_by(ChapterResult.created_at.desc())
        )
        return list(result.scalars().all())

    # =========================================================================
    # LEARNING SESSIONS
    # =========================================================================

    async def create_learning_session(
        self, *, child_id: UUID, chapter_id: UUID, stage: str
    ) -> LearningSession:
        return await self._save(
            LearningSession(child_id=child_id, chapter_id=chapter_id, stage=stage, duration_seconds=0)
        )

    async def get_learning_session_by_id(self, session_id: UUID) -> LearningSession | None:
        return await self.db.get(LearningSession, session_id)

    async def end_learning_session(self, session_id: UUID, duration_seconds: int) -> None:
        await self.db.execute(
            update(LearningSession)
            .where(LearningSession.id == session_id)
            .values(ended_at=datetime.now(timezone.utc), duration_seconds=duration_seconds)
        )
        await self.db.commit()

    # =========================================================================
    # NOTIFICATIONS
    # =========================================================================

    async def create_notification(
        self, *, user_id: UUID, type: str, title: str, message: str, data: dict | None = None
    ) -> Notification:
        return await self._save(
            Notification(user_id=user_id, type=type, title=title, message=message, data=data, read=False)
        )

    async def get_notification_by_id(self, notification_id: UUID) -> Notification | None:
        return await self.db.get(Notification, notification_id)

    async def list_notifications_by_parent(self, parent_id: UUID, limit: int = 50) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == parent_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_unread_notifications(self, parent_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == parent_id, Notification.read.is_(False))
        )
        return result.scalar() or 0

    async def mark_notification_read(self, notification_id: UUID) -> None:
        await self.db.execute(
            update(Notification).where(Notification.id == notification_id).values(read=True)
        )
        await self.db.commit()

    async def mark_all_notifications_read(self, parent_id: UUID) -> None:
        await self.db.execute(
            update(Notification).where(Notification.user_id == parent_id).values(read=True)
        )
        await self.db.commit()

    async def update_notification_preferences(self, parent_id: UUID, preferences: dict) -> None:
        """Replace the parent's whole preference document."""
        await self.db.execute(
            update(Parent).where(Parent.id == parent_id).values(notification_preferences=preferences)
        )
        await self.db.commit()


# =============================================================================
# DEPENDENCIES
# =============================================================================


async def get_storage(db: Annotated[AsyncSession, Depends(get_db)]) -> Storage:
    """FastAPI dependency: storage bound to the request's session."""
    return Storage(db)


@asynccontextmanager
async def open_storage() -> AsyncIterator[Storage]:
    """Fresh session for work that outlives the request (background tasks)."""
    async with AsyncSessionLocal() as db:
        try:
            yield Storage(db)
        except Exception:
            await db.rollback()
            raise


def get_storage_opener() -> StorageOpener:
    return open_storage
