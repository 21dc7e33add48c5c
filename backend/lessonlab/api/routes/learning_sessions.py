"""
Learning session routes.

A learning session records time a child spends in one stage (learn,
practice, test) of one chapter. The client starts it when the stage opens
and ends it with the measured duration.
"""

from uuid import UUID

from fastapi import APIRouter, status

from lessonlab.api.deps import CallerSession, StorageDep, get_chapter_or_404, require_child_claim
from lessonlab.errors import NotFound, ValidationError
from lessonlab.schemas.learning_sessions import (
    LearningSessionEnd,
    LearningSessionRead,
    LearningSessionStart,
)
from lessonlab.services.access import ensure_learning_session_access

router = APIRouter(prefix="/sessions", tags=["learning sessions"])


@router.post("/start", response_model=LearningSessionRead, status_code=status.HTTP_201_CREATED)
async def start_session(
    data: LearningSessionStart,
    session: CallerSession,
    storage: StorageDep,
) -> LearningSessionRead:
    child = await require_child_claim(session, data.child_id, storage)
    chapter = await get_chapter_or_404(storage, data.chapter_id, session)
    if chapter.child_id != child.id:
        raise ValidationError("Chapter does not belong to this child")

    learning_session = await storage.create_learning_session(
        child_id=child.id,
        chapter_id=chapter.id,
        stage=data.stage.value,
    )
    return LearningSessionRead.model_validate(learning_session)


@router.post("/{session_id}/end", response_model=LearningSessionRead)
async def end_session(
    session_id: UUID,
    data: LearningSessionEnd,
    session: CallerSession,
    storage: StorageDep,
) -> LearningSessionRead:
    """End a learning session. Ending twice overwrites the duration."""
    learning_session = await storage.get_learning_session_by_id(session_id)
    if learning_session is None:
        raise NotFound("Session not found")
    chapter = await storage.get_chapter_by_id(learning_session.chapter_id)
    if chapter is None:
        raise NotFound("Session not found")
    ensure_learning_session_access(session, learning_session, chapter)

    await storage.end_learning_session(learning_session.id, data.duration_seconds)
    updated = await storage.get_learning_session_by_id(learning_session.id)
    return LearningSessionRead.model_validate(updated)
