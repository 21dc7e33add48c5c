"""
FastAPI Dependencies for Authentication and Authorization.

Key patterns:
1. Two independent cookies: one parent token, one child token. Each is a
   signed, expiring JWT (see lessonlab.services.sessions).
2. get_parent_session: gate for parent-only routes.
3. get_caller_session: gate for routes open to a child OR its parent.
4. Handlers scope every query with ids taken from the session, never from
   the request path or body, and run an explicit ownership check on every
   row they load (lessonlab.services.access).

Security model:
- Tokens live in HttpOnly cookies, SameSite=Lax by default
- A present but invalid token is rejected (401), never treated as anonymous
- Ownership mismatch is 403; a missing row is 404
"""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Request, Response

from lessonlab.config import get_settings
from lessonlab.db.models import Chapter, Child
from lessonlab.db.storage import Storage, StorageOpener, get_storage, get_storage_opener
from lessonlab.errors import Forbidden, InvalidCredential, NotFound, Unauthenticated
from lessonlab.services.access import ensure_chapter_access, ensure_child_access
from lessonlab.services.pipeline import ContentPipeline
from lessonlab.services.quota import RollingWindowLimiter
from lessonlab.services.sessions import (
    ChildSession,
    ParentSession,
    Session,
    decode_child_token,
    decode_parent_token,
)

settings = get_settings()

StorageDep = Annotated[Storage, Depends(get_storage)]
StorageOpenerDep = Annotated[StorageOpener, Depends(get_storage_opener)]


# =============================================================================
# COOKIES
# =============================================================================


async def get_parent_token(
    token: Annotated[str | None, Cookie(alias=settings.parent_cookie_name)] = None,
) -> str | None:
    return token


async def get_child_token(
    token: Annotated[str | None, Cookie(alias=settings.child_cookie_name)] = None,
) -> str | None:
    return token


def set_session_cookie(response: Response, name: str, token: str, max_age: int) -> None:
    """
    Write a session cookie.

    For cross-domain deployments, samesite="none" + secure=True.
    """
    response.set_cookie(
        key=name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=max_age,
    )


def clear_session_cookie(response: Response, name: str) -> None:
    """
    Delete a session cookie.

    The token itself stays valid until it expires; there is no blocklist.
    """
    response.delete_cookie(
        key=name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def _load_parent_session(token: str, storage: Storage) -> ParentSession:
    session = decode_parent_token(token, settings)
    if await storage.get_parent_by_id(session.parent_id) is None:
        raise InvalidCredential("Account no longer exists")
    return session


async def _load_child_session(token: str, storage: Storage) -> ChildSession:
    session = decode_child_token(token, settings)
    child = await storage.get_child_by_id(session.child_id)
    if child is None or child.parent_id != session.parent_id:
        raise InvalidCredential("Child profile no longer exists")
    return session


async def get_parent_session(
    token: Annotated[str | None, Depends(get_parent_token)],
    storage: StorageDep,
) -> ParentSession:
    """
    Gate for parent-only routes.

    Raises 401 if the parent cookie is missing, invalid, or expired, or the
    account is gone. A child cookie alone never passes this gate.
    """
    if not token:
        raise Unauthenticated("Parent login required")
    return await _load_parent_session(token, storage)


async def get_child_session(
    token: Annotated[str | None, Depends(get_child_token)],
    storage: StorageDep,
) -> ChildSession:
    """Gate for child-only routes."""
    if not token:
        raise Unauthenticated("Child login required")
    return await _load_child_session(token, storage)


async def get_caller_session(
    parent_token: Annotated[str | None, Depends(get_parent_token)],
    child_token: Annotated[str | None, Depends(get_child_token)],
    storage: StorageDep,
) -> Session:
    """
    Gate for routes open to a child or its parent.

    A child cookie, when present, is authoritative: the caller acts as that
    child even if a parent cookie is also sent. Handlers still have to check
    the target resource; for a parent caller that means an extra ownership
    lookup per request.
    """
    if child_token:
        return await _load_child_session(child_token, storage)
    if parent_token:
        return await _load_parent_session(parent_token, storage)
    raise Unauthenticated()


# Type aliases for dependency injection
CurrentParent = Annotated[ParentSession, Depends(get_parent_session)]
CurrentChild = Annotated[ChildSession, Depends(get_child_session)]
CallerSession = Annotated[Session, Depends(get_caller_session)]


# =============================================================================
# AUTHORIZATION HELPERS
# =============================================================================


async def require_child_claim(session: Session, claimed_child_id: UUID, storage: Storage) -> Child:
    """
    Resolve a child id named by the request and check the caller may act on it.

    Child caller: the claim must equal the session's child (403 otherwise).
    Parent caller: the child must exist (404) and belong to them (403).
    """
    if isinstance(session, ChildSession) and claimed_child_id != session.child_id:
        raise Forbidden("You can only act as yourself")

    child = await storage.get_child_by_id(claimed_child_id)
    if child is None:
        raise NotFound("Child not found")
    ensure_child_access(session, child)
    return child


async def get_chapter_or_404(storage: Storage, chapter_id: UUID, session: Session) -> Chapter:
    """
    Fetch a chapter and verify the caller owns it.

        chapter = await get_chapter_or_404(storage, chapter_id, session)
        # If we get here, chapter exists and the caller may see it
    """
    chapter = await storage.get_chapter_by_id(chapter_id)
    if chapter is None:
        raise NotFound("Chapter not found")
    ensure_chapter_access(session, chapter)
    return chapter


# =============================================================================
# PIPELINE + ADMISSION CONTROL
# =============================================================================


def get_pipeline(request: Request) -> ContentPipeline:
    """The pipeline built at startup (see lessonlab.main.lifespan)."""
    return request.app.state.pipeline


@lru_cache
def get_generation_limiter() -> RollingWindowLimiter:
    return RollingWindowLimiter(
        settings.generation_quota_max,
        settings.generation_quota_window_seconds,
        message="Lesson generation limit reached, try again later",
    )


@lru_cache
def get_login_limiter() -> RollingWindowLimiter:
    return RollingWindowLimiter(
        settings.login_attempts_max,
        settings.login_attempts_window_seconds,
        message="Too many login attempts, try again later",
    )


async def enforce_generation_quota(
    session: CurrentParent,
    limiter: Annotated[RollingWindowLimiter, Depends(get_generation_limiter)],
) -> ParentSession:
    """
    Reject a parent who is already at the generation quota.

    Only checks. The route counts the hit with `limiter.acquire` once the body
    and child ownership are valid, so 400 and 403 requests cost nothing.
    """
    limiter.check(session.parent_id)
    return session


GenerationQuota = Annotated[ParentSession, Depends(enforce_generation_quota)]
GenerationLimiter = Annotated[RollingWindowLimiter, Depends(get_generation_limiter)]
LoginLimiter = Annotated[RollingWindowLimiter, Depends(get_login_limiter)]
PipelineDep = Annotated[ContentPipeline, Depends(get_pipeline)]
