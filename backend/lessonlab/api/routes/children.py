"""Child profile routes."""

from uuid import UUID

from fastapi import APIRouter, status

from lessonlab.api.deps import CallerSession, CurrentParent, StorageDep, require_child_claim
from lessonlab.schemas.chapters import ChapterRead, ChapterResultRead
from lessonlab.schemas.children import ChildCreate, ChildRead

router = APIRouter(prefix="/children", tags=["children"])


@router.get("/", response_model=list[ChildRead])
async def list_children(session: CurrentParent, storage: StorageDep) -> list[ChildRead]:
    """List the current parent's children, oldest profile first."""
    children = await storage.list_children_by_parent(session.parent_id)
    return [ChildRead.model_validate(c) for c in children]


@router.post("/", response_model=ChildRead, status_code=status.HTTP_201_CREATED)
async def create_child(
    data: ChildCreate,
    session: CurrentParent,
    storage: StorageDep,
) -> ChildRead:
    """Add a child profile."""
    child = await storage.create_child(
        parent_id=session.parent_id,  # From auth, NEVER from request
        **data.model_dump(),
    )
    return ChildRead.model_validate(child)


@router.get("/{child_id}", response_model=ChildRead)
async def get_child(child_id: UUID, session: CallerSession, storage: StorageDep) -> ChildRead:
    child = await require_child_claim(session, child_id, storage)
    return ChildRead.model_validate(child)


@router.get("/{child_id}/chapters", response_model=list[ChapterRead])
async def list_child_chapters(
    child_id: UUID,
    session: CallerSession,
    storage: StorageDep,
) -> list[ChapterRead]:
    """Chapters for one child, newest first. Open to the child and its parent."""
    child = await require_child_claim(session, child_id, storage)
    chapters = await storage.list_chapters_by_child(child.id)
    return [ChapterRead.model_validate(c) for c in chapters]


@router.get("/{child_id}/results", response_model=list[ChapterResultRead])
async def list_child_results(
    child_id: UUID,
    session: CallerSession,
    storage: StorageDep,
) -> list[ChapterResultRead]:
    child = await require_child_claim(session, child_id, storage)
    results = await storage.list_results_by_child(child.id)
    return [ChapterResultRead.model_validate(r) for r in results]
