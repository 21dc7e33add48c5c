"""
Chapter routes.

Endpoints:
- GET /chapters - List the parent's chapters
- POST /chapters - Upload page photos and start lesson generation
- GET /chapters/{id} - Poll a chapter (status + content once ready)
- GET /chapters/{id}/result - Latest result for a chapter
- POST /chapters/{id}/submit - Child submits answers

Generation flow:
1. POST /chapters stores the chapter as 'processing' and returns at once
2. A background task runs the pipeline (generate, verify, repair)
3. The task writes 'ready' + content, or 'error'
4. The client polls GET /chapters/{id} until the status changes
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, status

from lessonlab.api.deps import (
    CallerSession,
    CurrentParent,
    GenerationLimiter,
    GenerationQuota,
    PipelineDep,
    StorageDep,
    StorageOpenerDep,
    get_chapter_or_404,
    require_child_claim,
)
from lessonlab.db.models import ChapterStatus, NotificationType
from lessonlab.errors import Forbidden, NotFound, ValidationError
from lessonlab.schemas.chapters import (
    ChapterCreate,
    ChapterCreateResponse,
    ChapterRead,
    ChapterResultRead,
    SubmitAnswers,
    SubmitResponse,
)
from lessonlab.schemas.lessons import TOTAL_QUESTIONS, GenerationRequest, LessonContent
from lessonlab.services.chapter_processor import process_chapter
from lessonlab.services.scoring import calculate_scores
from lessonlab.services.sessions import ChildSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chapters", tags=["chapters"])


@router.get("/", response_model=list[ChapterRead])
async def list_chapters(session: CurrentParent, storage: StorageDep) -> list[ChapterRead]:
    """List all chapters across the parent's children, newest first."""
    chapters = await storage.list_chapters_by_parent(session.parent_id)
    return [ChapterRead.model_validate(c) for c in chapters]


@router.post("/", response_model=ChapterCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_chapter(
    data: ChapterCreate,
    session: GenerationQuota,
    limiter: GenerationLimiter,
    storage: StorageDep,
    pipeline: PipelineDep,
    open_storage: StorageOpenerDep,
    background_tasks: BackgroundTasks,
) -> ChapterCreateResponse:
    """
    Create a chapter from textbook photos.

    Returns the chapter in 'processing' state; generation continues after the
    response is sent. Counts against the parent's generation quota once the
    child is confirmed to be theirs.
    """
    child = await require_child_claim(session, data.child_id, storage)
    limiter.acquire(session.parent_id)

    chapter = await storage.create_chapter(
        child_id=child.id,
        parent_id=session.parent_id,  # From auth, NEVER from request
        title=data.title,
        subject=data.subject.value,
        grade=data.grade,
    )
    photos = data.ordered_photos
    await storage.create_chapter_photos(
        chapter.id,
        [(photo.page_number, photo.media_type, photo.base64_data) for photo in photos],
    )

    request = GenerationRequest(
        images=tuple(photo.image for photo in photos),
        subject=data.subject,
        grade=data.grade,
    )
    background_tasks.add_task(process_chapter, chapter.id, request, pipeline, open_storage)
    logger.info("Chapter %s queued for generation (%d pages)", chapter.id, len(photos))

    return ChapterCreateResponse(chapter=ChapterRead.model_validate(chapter))


@router.get("/{chapter_id}", response_model=ChapterRead)
async def get_chapter(chapter_id: UUID, session: CallerSession, storage: StorageDep) -> ChapterRead:
    """Get a chapter. Poll this while status is 'processing'."""
    chapter = await get_chapter_or_404(storage, chapter_id, session)
    return ChapterRead.model_validate(chapter)


@router.get("/{chapter_id}/result", response_model=ChapterResultRead)
async def get_chapter_result(
    chapter_id: UUID,
    session: CallerSession,
    storage: StorageDep,
) -> ChapterResultRead:
    chapter = await get_chapter_or_404(storage, chapter_id, session)
    result = await storage.get_result_by_chapter(chapter.id)
    if result is None:
        raise NotFound("Result not found")
    return ChapterResultRead.model_validate(result)


@router.post("/{chapter_id}/submit", response_model=SubmitResponse)
async def submit_answers(
    chapter_id: UUID,
    data: SubmitAnswers,
    session: CallerSession,
    storage: StorageDep,
) -> SubmitResponse:
    """
    Score a child's answers.

    Side effects: stores a result, marks the chapter completed, adds the
    stars to the child's total, and notifies the parent if they opted in.
    """
    if not isinstance(session, ChildSession):
        raise Forbidden("Only the child can submit answers")

    chapter = await get_chapter_or_404(storage, chapter_id, session)
    if chapter.content is None:
        raise ValidationError("Chapter is not ready yet")

    content = LessonContent.model_validate(chapter.content)
    scores = calculate_scores(
        data.practice_answers,
        data.test_answers,
        content.practice,
        content.test,
    )

    result = await storage.create_result(
        chapter_id=chapter.id,
        child_id=chapter.child_id,
        practice_score=scores.practice_score,
        test_score=scores.test_score,
        total_score=scores.total_score,
        stars=scores.stars,
        answers={
            "practice_answers": data.practice_answers,
            "test_answers": data.test_answers,
        },
        time_spent_seconds=None,
    )
    await storage.update_chapter_status(chapter.id, ChapterStatus.COMPLETED)
    await storage.add_child_stars(chapter.child_id, scores.stars)

    await _notify_parent(storage, chapter, scores.total_score, scores.stars)

    return SubmitResponse(result=ChapterResultRead.model_validate(result))


async def _notify_parent(storage, chapter, total_score: int, stars: int) -> None:
    parent = await storage.get_parent_by_id(chapter.parent_id)
    child = await storage.get_child_by_id(chapter.child_id)
    if parent is None or child is None:
        return
    if (parent.notification_preferences or {}).get("chapter_complete") is False:
        return

    await storage.create_notification(
        user_id=parent.id,
        type=NotificationType.CHAPTER_COMPLETE.value,
        title="Chapter completed!",
        message=(
            f'{child.name} completed "{chapter.title}" with {total_score}/{TOTAL_QUESTIONS} '
            f"correct and earned {stars} stars!"
        ),
        data={"child_id": str(child.id), "chapter_id": str(chapter.id)},
    )
