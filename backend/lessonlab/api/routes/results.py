"""Result routes."""

from uuid import UUID

from fastapi import APIRouter

from lessonlab.api.deps import CallerSession, StorageDep
from lessonlab.errors import NotFound
from lessonlab.schemas.chapters import ChapterResultRead
from lessonlab.services.access import ensure_result_access

router = APIRouter(prefix="/results", tags=["results"])


@router.get("/{result_id}", response_model=ChapterResultRead)
async def get_result(result_id: UUID, session: CallerSession, storage: StorageDep) -> ChapterResultRead:
    """Get a result. Ownership is checked through the result's chapter."""
    result = await storage.get_result_by_id(result_id)
    if result is None:
        raise NotFound("Result not found")
    chapter = await storage.get_chapter_by_id(result.chapter_id)
    if chapter is None:
        raise NotFound("Result not found")
    ensure_result_access(session, result, chapter)
    return ChapterResultRead.model_validate(result)
