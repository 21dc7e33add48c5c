"""Child profile schemas."""

from uuid import UUID

from pydantic import Field

from lessonlab.schemas.auth import SessionInfo
from lessonlab.schemas.base import BaseSchema, CreatedAtMixin, IDMixin


class ChildCreate(BaseSchema):
    """Schema for creating a child. The parent comes from the session."""

    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=3, le=18)
    avatar_url: str | None = None


class ChildRead(BaseSchema, IDMixin, CreatedAtMixin):
    parent_id: UUID
    name: str
    age: int
    avatar_url: str | None = None
    total_stars: int = 0


class ChildSummary(BaseSchema):
    id: UUID
    name: str


class ChildLoginResponse(BaseSchema):
    child: ChildSummary
    session: SessionInfo
