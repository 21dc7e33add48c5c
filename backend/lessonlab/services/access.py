"""
Ownership checks.

A resource is visible to a caller iff
  (caller is a ChildSession and resource.child_id == caller.child_id) or
  (caller is a ParentSession and resource.parent_id == caller.parent_id).

Owner ids always come from the verified session and the stored rows, never
from request parameters. The `can_*` predicates are pure; the `ensure_*`
wrappers raise Forbidden. Mismatches are 403 rather than 404: existence is
not hidden, only access.
"""

from typing import assert_never

from lessonlab.errors import Forbidden
from lessonlab.services.sessions import ChildSession, ParentSession, Session


def can_access_child(session: Session, child) -> bool:
    if isinstance(session, ChildSession):
        return child.id == session.child_id
    if isinstance(session, ParentSession):
        return child.parent_id == session.parent_id
    assert_never(session)


def can_access_chapter(session: Session, chapter) -> bool:
    if isinstance(session, ChildSession):
        return chapter.child_id == session.child_id
    if isinstance(session, ParentSession):
        return chapter.parent_id == session.parent_id
    assert_never(session)


def can_access_learning_session(session: Session, learning_session, chapter) -> bool:
    """
    A learning session is reachable only through a consistent chapter: the
    chapter must belong to the same child the session row names.
    """
    if chapter.id != learning_session.chapter_id or chapter.child_id != learning_session.child_id:
        return False
    if isinstance(session, ChildSession):
        return learning_session.child_id == session.child_id
    if isinstance(session, ParentSession):
        return chapter.parent_id == session.parent_id
    assert_never(session)


def can_access_result(session: Session, result, chapter) -> bool:
    """Results are owned through their chapter."""
    if chapter.id != result.chapter_id:
        return False
    if isinstance(session, ChildSession):
        return result.child_id == session.child_id
    if isinstance(session, ParentSession):
        return chapter.parent_id == session.parent_id
    assert_never(session)


def can_access_notification(session: Session, notification) -> bool:
    """Notifications belong to parents only."""
    if isinstance(session, ChildSession):
        return False
    if isinstance(session, ParentSession):
        return notification.user_id == session.parent_id
    assert_never(session)


def _ensure(allowed: bool) -> None:
    if not allowed:
        raise Forbidden()


def ensure_child_access(session: Session, child) -> None:
    _ensure(can_access_child(session, child))


def ensure_chapter_access(session: Session, chapter) -> None:
    _ensure(can_access_chapter(session, chapter))


def ensure_learning_session_access(session: Session, learning_session, chapter) -> None:
    _ensure(can_access_learning_session(session, learning_session, chapter))


def ensure_result_access(session: Session, result, chapter) -> None:
    _ensure(can_access_result(session, result, chapter))


def ensure_notification_access(session: Session, notification) -> None:
    _ensure(can_access_notification(session, notification))
