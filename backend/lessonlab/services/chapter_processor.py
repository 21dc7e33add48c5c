"""Background processing of a newly created chapter."""

import logging
from uuid import UUID

from lessonlab.db.models import ChapterStatus
from lessonlab.db.storage import StorageOpener
from lessonlab.errors import GenerationFailure
from lessonlab.schemas.lessons import GenerationRequest
from lessonlab.services.pipeline import ContentPipeline

logger = logging.getLogger(__name__)


async def process_chapter(
    chapter_id: UUID,
    request: GenerationRequest,
    pipeline: ContentPipeline,
    open_storage: StorageOpener,
) -> None:
    """
    Run the pipeline for one chapter and record the outcome.

    The chapter row was created with status 'processing'. This makes exactly
    one more write: 'ready' with content, or 'error'. Uses its own database
    session because it runs after the request has finished.
    """
    logger.info("Starting lesson generation for chapter %s", chapter_id)
    try:
        result = await pipeline.run(request)
    except GenerationFailure as e:
        logger.error("Lesson generation failed for chapter %s: %s", chapter_id, e.detail)
        await _mark_error(chapter_id, open_storage)
        return
    except Exception:
        logger.exception("Unexpected error generating chapter %s", chapter_id)
        await _mark_error(chapter_id, open_storage)
        return

    async with open_storage() as storage:
        await storage.update_chapter_content(chapter_id, result.content)

    logger.info(
        "Chapter %s ready (calls=%d, repaired=%s, verified=%s)",
        chapter_id,
        result.calls,
        result.repaired,
        result.verified,
    )


async def _mark_error(chapter_id: UUID, open_storage: StorageOpener) -> None:
    try:
        async with open_storage() as storage:
            await storage.update_chapter_status(chapter_id, ChapterStatus.ERROR)
    except Exception:
        logger.exception("Could not mark chapter %s as failed", chapter_id)
