"""
Authentication Routes

Parent endpoints:
- POST /auth/register - Create a parent account and start a session
- POST /auth/login - Email + password login
- POST /auth/logout - Clear the parent cookie
- GET /auth/me - Current parent profile

Child endpoints:
- POST /child/login - Switch into a child profile (requires a parent session)
- POST /child/logout - Clear the child cookie
- GET /child/me - Current child profile

Auth Flow:
1. Parent registers or logs in; backend sets the parent cookie
2. Parent picks a child profile; backend derives a child session from the
   parent session and sets the child cookie
3. Child-facing pages authenticate with the child cookie alone

Security:
- Passwords are bcrypt-hashed; the plaintext is never stored or logged
- Failed logins are rate limited per client address
- Unknown email and wrong password give the same 401
"""

from fastapi import APIRouter, Request, Response, status

from lessonlab.api.deps import (
    CurrentChild,
    CurrentParent,
    LoginLimiter,
    StorageDep,
    clear_session_cookie,
    require_child_claim,
    set_session_cookie,
    settings,
)
from lessonlab.errors import InvalidCredential, NotFound, ValidationError
from lessonlab.schemas.auth import ChildLoginRequest, LoginRequest, RegisterRequest, SessionInfo
from lessonlab.schemas.children import ChildLoginResponse, ChildRead, ChildSummary
from lessonlab.schemas.user import ParentAuthResponse, ParentRead
from lessonlab.services.passwords import hash_password, verify_password
from lessonlab.services.sessions import derive_child_session, issue_parent_session

router = APIRouter(prefix="/auth", tags=["auth"])
child_router = APIRouter(prefix="/child", tags=["auth"])


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _start_parent_session(response: Response, parent) -> ParentAuthResponse:
    session, token = issue_parent_session(parent.id, settings)
    set_session_cookie(
        response,
        settings.parent_cookie_name,
        token,
        max_age=settings.parent_session_days * 24 * 60 * 60,
    )
    return ParentAuthResponse(
        user=ParentRead.model_validate(parent),
        session=SessionInfo(role=session.role, expires_at=session.expires_at),
    )


# =============================================================================
# PARENT
# =============================================================================


@router.post("/register", response_model=ParentAuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    storage: StorageDep,
) -> ParentAuthResponse:
    """Create a parent account and log it in."""
    if await storage.get_parent_by_email(data.email) is not None:
        raise ValidationError("An account with this email already exists")

    parent = await storage.create_parent(
        email=data.email,
        password_hash=await hash_password(data.password),
        full_name=data.full_name,
    )
    return _start_parent_session(response, parent)


@router.post("/login", response_model=ParentAuthResponse)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    storage: StorageDep,
    limiter: LoginLimiter,
) -> ParentAuthResponse:
    """
    Exchange email + password for a parent session.

    Only failed attempts count against the limit, so a parent who types the
    right password is never locked out by their own successful logins.
    """
    key = _client_key(request)
    limiter.check(key)

    parent = await storage.get_parent_by_email(data.email)
    if parent is None or not await verify_password(data.password, parent.password_hash):
        limiter.record(key)
        raise InvalidCredential("Invalid email or password")

    return _start_parent_session(response, parent)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """
    Clear the parent session (and any child session derived from it).

    Note: tokens are not revoked server-side; a copied token stays valid
    until it expires.
    """
    clear_session_cookie(response, settings.parent_cookie_name)
    clear_session_cookie(response, settings.child_cookie_name)


@router.get("/me", response_model=ParentRead)
async def get_me(session: CurrentParent, storage: StorageDep) -> ParentRead:
    """Get the logged-in parent's profile."""
    parent = await storage.get_parent_by_id(session.parent_id)
    if parent is None:
        raise NotFound("Account not found")
    return ParentRead.model_validate(parent)


# =============================================================================
# CHILD
# =============================================================================


@child_router.post("/login", response_model=ChildLoginResponse)
async def child_login(
    data: ChildLoginRequest,
    response: Response,
    session: CurrentParent,
    storage: StorageDep,
) -> ChildLoginResponse:
    """
    Switch into a child profile.

    The child must belong to the logged-in parent. The parent cookie is left
    in place so the parent can switch back without logging in again.
    """
    child = await require_child_claim(session, data.child_id, storage)
    child_session, token = derive_child_session(session, child, settings)
    set_session_cookie(
        response,
        settings.child_cookie_name,
        token,
        max_age=settings.child_session_hours * 60 * 60,
    )
    return ChildLoginResponse(
        child=ChildSummary.model_validate(child),
        session=SessionInfo(role=child_session.role, expires_at=child_session.expires_at),
    )


@child_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def child_logout(response: Response) -> None:
    clear_session_cookie(response, settings.child_cookie_name)


@child_router.get("/me", response_model=ChildRead)
async def get_child_me(session: CurrentChild, storage: StorageDep) -> ChildRead:
    child = await storage.get_child_by_id(session.child_id)
    if child is None:
        raise NotFound("Child not found")
    return ChildRead.model_validate(child)
