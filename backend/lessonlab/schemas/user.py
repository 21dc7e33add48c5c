"""Parent account schemas."""

from datetime import datetime
from uuid import UUID

from lessonlab.schemas.auth import SessionInfo
from lessonlab.schemas.base import BaseSchema


class ParentRead(BaseSchema):
    """Schema for reading parent data."""

    id: UUID
    email: str
    full_name: str
    created_at: datetime


class ParentAuthResponse(BaseSchema):
    user: ParentRead
    session: SessionInfo
