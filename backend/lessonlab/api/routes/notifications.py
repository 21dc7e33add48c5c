"""
Parent notification routes.

Endpoints:
- GET /notifications - Most recent notifications
- GET /notifications/unread-count - Badge count
- GET /notifications/preferences - Which notifications the parent wants
- PATCH /notifications/preferences - Change some of them
- PATCH /notifications/read-all - Mark everything read
- PATCH /notifications/{id}/read - Mark one read
"""

from uuid import UUID

from fastapi import APIRouter, status

from lessonlab.api.deps import CurrentParent, StorageDep
from lessonlab.db.models import DEFAULT_NOTIFICATION_PREFERENCES
from lessonlab.errors import NotFound
from lessonlab.schemas.notifications import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    NotificationRead,
    UnreadCount,
)
from lessonlab.services.access import ensure_notification_access

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRead])
async def list_notifications(session: CurrentParent, storage: StorageDep) -> list[NotificationRead]:
    """Most recent notifications first (up to 50)."""
    notifications = await storage.list_notifications_by_parent(session.parent_id)
    return [NotificationRead.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(session: CurrentParent, storage: StorageDep) -> UnreadCount:
    return UnreadCount(count=await storage.count_unread_notifications(session.parent_id))


@router.get("/preferences", response_model=NotificationPreferences)
async def get_preferences(session: CurrentParent, storage: StorageDep) -> NotificationPreferences:
    return NotificationPreferences.model_validate(await _stored_preferences(session, storage))


@router.patch("/preferences", response_model=NotificationPreferences)
async def update_preferences(
    data: NotificationPreferencesUpdate,
    session: CurrentParent,
    storage: StorageDep,
) -> NotificationPreferences:
    """Change only the fields sent; the rest keep their stored value."""
    preferences = await _stored_preferences(session, storage)
    preferences.update(data.model_dump(exclude_none=True))
    await storage.update_notification_preferences(session.parent_id, preferences)
    return NotificationPreferences.model_validate(preferences)


async def _stored_preferences(session, storage) -> dict:
    parent = await storage.get_parent_by_id(session.parent_id)
    if parent is None:
        raise NotFound("Account not found")
    return {**DEFAULT_NOTIFICATION_PREFERENCES, **(parent.notification_preferences or {})}


@router.patch("/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_read(session: CurrentParent, storage: StorageDep) -> None:
    await storage.mark_all_notifications_read(session.parent_id)


@router.patch("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(notification_id: UUID, session: CurrentParent, storage: StorageDep) -> None:
    notification = await storage.get_notification_by_id(notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    ensure_notification_access(session, notification)
    await storage.mark_notification_read(notification.id)
