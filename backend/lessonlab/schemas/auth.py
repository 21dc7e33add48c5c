"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from lessonlab.schemas.base import BaseSchema


class RegisterRequest(BaseSchema):
    """Request schema for parent registration."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(BaseSchema):
    """Request schema for parent login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class ChildLoginRequest(BaseSchema):
    """Switch into a child profile using the current parent session."""

    child_id: UUID


class SessionInfo(BaseSchema):
    """What the client may know about an issued session (the token stays in the cookie)."""

    role: str
    expires_at: datetime
