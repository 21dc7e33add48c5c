"""Notification schemas."""

from uuid import UUID

from lessonlab.schemas.base import BaseSchema, CreatedAtMixin, IDMixin


class NotificationRead(BaseSchema, IDMixin, CreatedAtMixin):
    user_id: UUID
    type: str
    title: str
    message: str
    data: dict | None = None
    read: bool = False


class UnreadCount(BaseSchema):
    count: int


class NotificationPreferences(BaseSchema):
    """Which notifications a parent wants. Missing keys fall back to True."""

    chapter_complete: bool = True
    weekly_report: bool = True


class NotificationPreferencesUpdate(BaseSchema):
    """Partial update; omitted fields keep their stored value."""

    chapter_complete: bool | None = None
    weekly_report: bool | None = None
