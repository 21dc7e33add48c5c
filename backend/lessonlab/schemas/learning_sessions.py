"""Learning activity session schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from lessonlab.db.models import LearningStage
from lessonlab.schemas.base import BaseSchema, IDMixin


class LearningSessionStart(BaseSchema):
    child_id: UUID
    chapter_id: UUID
    stage: LearningStage


class LearningSessionEnd(BaseSchema):
    duration_seconds: int = Field(..., ge=0)


class LearningSessionRead(BaseSchema, IDMixin):
    child_id: UUID
    chapter_id: UUID
    stage: str
    started_at: datetime
    ended_at: datetime | None = None
    duration_seconds: int = 0
