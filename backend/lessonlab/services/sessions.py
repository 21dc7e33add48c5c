"""
Parent and child sessions.

A session is a signed, expiring JWT carried in an HttpOnly cookie. There is
no server-side session table and no revocation list: expiry is the only way
a token stops working. Logging out just deletes the cookie.

Token payload:
- role: "parent" | "child"
- sub: parent id or child id
- parent_id: owning parent (child tokens only)
- iat / exp: issue and expiry timestamps

Session is a closed union of ParentSession and ChildSession. Code that
branches on it should use isinstance checks ending in assert_never so a
forgotten variant fails type checking.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal, TypeAlias
from uuid import UUID

from jose import JWTError, jwt

from lessonlab.config import Settings
from lessonlab.errors import Forbidden, InvalidCredential

PARENT_ROLE = "parent"
CHILD_ROLE = "child"

Role = Literal["parent", "child"]


@dataclass(frozen=True)
class ParentSession:
    parent_id: UUID
    issued_at: datetime
    expires_at: datetime

    @property
    def role(self) -> Role:
        return PARENT_ROLE


@dataclass(frozen=True)
class ChildSession:
    child_id: UUID
    parent_id: UUID
    issued_at: datetime
    expires_at: datetime

    @property
    def role(self) -> Role:
        return CHILD_ROLE


Session: TypeAlias = ParentSession | ChildSession


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ISSUING
# =============================================================================


def _encode(claims: dict, issued_at: datetime, expires_at: datetime, settings: Settings) -> str:
    payload = {**claims, "iat": issued_at, "exp": expires_at}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_parent_session(
    parent_id: UUID, settings: Settings, *, now: datetime | None = None
) -> tuple[ParentSession, str]:
    """Create a parent session valid for `parent_session_days`. Returns (session, token)."""
    issued_at = now or _now()
    session = ParentSession(
        parent_id=parent_id,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(days=settings.parent_session_days),
    )
    token = _encode(
        {"role": PARENT_ROLE, "sub": str(parent_id)},
        session.issued_at,
        session.expires_at,
        settings,
    )
    return session, token


def derive_child_session(
    parent_session: ParentSession,
    child,
    settings: Settings,
    *,
    now: datetime | None = None,
) -> tuple[ChildSession, str]:
    """
    Mint a child session from a valid parent session.

    This is the only way a ChildSession comes into existence. The child row
    must belong to the session's parent, whatever else the request claims.

    Raises:
        Forbidden: child.parent_id differs from the session's parent.
        InvalidCredential: the parent session has already expired.
    """
    issued_at = now or _now()
    if issued_at >= parent_session.expires_at:
        raise InvalidCredential("Parent session expired")
    if child.parent_id != parent_session.parent_id:
        raise Forbidden("You do not have permission for this child")

    session = ChildSession(
        child_id=child.id,
        parent_id=parent_session.parent_id,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(hours=settings.child_session_hours),
    )
    token = _encode(
        {"role": CHILD_ROLE, "sub": str(child.id), "parent_id": str(parent_session.parent_id)},
        session.issued_at,
        session.expires_at,
        settings,
    )
    return session, token


# =============================================================================
# VERIFYING
# =============================================================================


def _timestamp(payload: dict, claim: str) -> datetime:
    value = payload.get(claim)
    if not isinstance(value, (int, float)):
        raise InvalidCredential(f"Token is missing '{claim}'")
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _uuid(payload: dict, claim: str) -> UUID:
    try:
        return UUID(str(payload[claim]))
    except (KeyError, ValueError):
        raise InvalidCredential(f"Token has no valid '{claim}'")


def _verified_claims(
    token: str, expected_role: Role, settings: Settings, now: datetime | None
) -> tuple[dict, datetime, datetime]:
    """Check signature, role and expiry. Returns (payload, issued_at, expires_at)."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise InvalidCredential(f"Invalid session token: {e}") from e

    if payload.get("role") != expected_role:
        raise InvalidCredential("Token role does not match")

    issued_at = _timestamp(payload, "iat")
    expires_at = _timestamp(payload, "exp")
    if (now or _now()) >= expires_at:
        raise InvalidCredential("Session expired")
    return payload, issued_at, expires_at


def decode_parent_token(
    token: str, settings: Settings, *, now: datetime | None = None
) -> ParentSession:
    """Verify a token read from the parent cookie."""
    payload, issued_at, expires_at = _verified_claims(token, PARENT_ROLE, settings, now)
    return ParentSession(
        parent_id=_uuid(payload, "sub"),
        issued_at=issued_at,
        expires_at=expires_at,
    )


def decode_child_token(
    token: str, settings: Settings, *, now: datetime | None = None
) -> ChildSession:
    """Verify a token read from the child cookie."""
    payload, issued_at, expires_at = _verified_claims(token, CHILD_ROLE, settings, now)
    return ChildSession(
        child_id=_uuid(payload, "sub"),
        parent_id=_uuid(payload, "parent_id"),
        issued_at=issued_at,
        expires_at=expires_at,
    )


def decode_session_token(
    token: str,
    expected_role: Role,
    settings: Settings,
    *,
    now: datetime | None = None,
) -> Session:
    """
    Verify a session token and return the session it encodes.

    Checks the signature, that now < exp, and that the role claim matches
    the cookie it was read from.

    Raises:
        InvalidCredential: on any failure. Never returns an anonymous session.
    """
    if expected_role == PARENT_ROLE:
        return decode_parent_token(token, settings, now=now)
    return decode_child_token(token, settings, now=now)
