"""Chapter, photo upload, submission and result schemas."""

import base64
import binascii
import re
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, PrivateAttr, field_validator, model_validator

from lessonlab.config import get_settings
from lessonlab.schemas.base import BaseSchema, CreatedAtMixin, IDMixin
from lessonlab.schemas.lessons import (
    MAX_GRADE,
    MIN_GRADE,
    PRACTICE_COUNT,
    TEST_COUNT,
    ImagePayload,
    LessonContent,
    Subject,
)

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)


class PhotoUpload(BaseSchema):
    """A textbook page sent as a base64 data URL."""

    photo_data: str = Field(..., description="data:<media type>;base64,<payload>")
    page_number: int = Field(..., ge=1)

    _image: ImagePayload | None = PrivateAttr(default=None)

    @model_validator(mode="after")
    def decode_image(self) -> "PhotoUpload":
        settings = get_settings()
        match = _DATA_URL_RE.match(self.photo_data)
        if match is None:
            raise ValueError("photo_data must be a base64 data URL")
        media_type, payload = match.group(1).lower(), match.group(2)
        if media_type not in settings.allowed_image_types:
            raise ValueError(f"unsupported media type {media_type}")
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("photo_data is not valid base64")
        if not data:
            raise ValueError("photo is empty")
        if len(data) > settings.max_image_bytes:
            raise ValueError(f"photo exceeds {settings.max_image_bytes} bytes")
        self._image = ImagePayload(data=data, media_type=media_type)
        return self

    @property
    def image(self) -> ImagePayload:
        if self._image is None:
            raise RuntimeError("PhotoUpload was built without validation")
        return self._image

    @property
    def media_type(self) -> str:
        return self.image.media_type

    @property
    def base64_data(self) -> str:
        return self.photo_data.split(",", 1)[1]


class ChapterCreate(BaseSchema):
    """
    Schema for creating a chapter.

    The owning parent is always taken from the session, never from the body.
    """

    child_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    subject: Subject
    grade: int = Field(..., ge=MIN_GRADE, le=MAX_GRADE)
    photos: list[PhotoUpload] = Field(..., min_length=1)

    @field_validator("photos")
    @classmethod
    def limit_photo_count(cls, photos: list[PhotoUpload]) -> list[PhotoUpload]:
        limit = get_settings().max_images_per_chapter
        if len(photos) > limit:
            raise ValueError(f"at most {limit} photos per chapter")
        return photos

    @property
    def ordered_photos(self) -> list[PhotoUpload]:
        return sorted(self.photos, key=lambda photo: photo.page_number)


class ChapterRead(BaseSchema, IDMixin, CreatedAtMixin):
    """
    Schema for reading a chapter.

    content is None while status is 'processing' or 'error'.
    """

    child_id: UUID
    parent_id: UUID
    title: str
    subject: str
    grade: int
    status: Literal["processing", "ready", "error", "completed"]
    content: LessonContent | None = None
    completed_at: datetime | None = None


class ChapterCreateResponse(BaseSchema):
    chapter: ChapterRead


class SubmitAnswers(BaseSchema):
    """Answer letters in question order."""

    practice_answers: list[str] = Field(..., max_length=PRACTICE_COUNT)
    test_answers: list[str] = Field(..., max_length=TEST_COUNT)
    # Accepted for client compatibility; time tracking is not implemented
    time_spent_seconds: int | None = Field(None, ge=0)


class ChapterResultRead(BaseSchema, IDMixin, CreatedAtMixin):
    chapter_id: UUID
    child_id: UUID
    practice_score: int
    test_score: int
    total_score: int
    stars: int
    time_spent_seconds: int | None = None
    answers: dict


class SubmitResponse(BaseSchema):
    result: ChapterResultRead
