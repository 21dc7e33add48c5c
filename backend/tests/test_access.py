"""Ownership checks, verified exhaustively over a small world of families."""

import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from lessonlab.errors import Forbidden
from lessonlab.services.access import (
    can_access_chapter,
    can_access_child,
    can_access_learning_session,
    can_access_notification,
    can_access_result,
    ensure_chapter_access,
)
from lessonlab.services.sessions import ChildSession, ParentSession

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
LATER = NOW + timedelta(days=1)


def _world():
    parents = [uuid4(), uuid4()]
    children = [
        SimpleNamespace(id=uuid4(), parent_id=parent_id)
        for parent_id in parents
        for _ in range(2)
    ]
    chapters = [
        SimpleNamespace(id=uuid4(), child_id=child.id, parent_id=child.parent_id)
        for child in children
    ]
    sessions = [ParentSession(parent_id=p, issued_at=NOW, expires_at=LATER) for p in parents] + [
        ChildSession(child_id=c.id, parent_id=c.parent_id, issued_at=NOW, expires_at=LATER)
        for c in children
    ]
    return parents, children, chapters, sessions


PARENTS, CHILDREN, CHAPTERS, SESSIONS = _world()


def _owns(session, child_id, parent_id) -> bool:
    if isinstance(session, ChildSession):
        return session.child_id == child_id
    return session.parent_id == parent_id


@pytest.mark.parametrize("session", SESSIONS)
def test_child_and_chapter_visibility(session):
    for child in CHILDREN:
        assert can_access_child(session, child) == _owns(session, child.id, child.parent_id)
    for chapter in CHAPTERS:
        assert can_access_chapter(session, chapter) == _owns(session, chapter.child_id, chapter.parent_id)


@pytest.mark.parametrize("session", SESSIONS)
def test_results_follow_their_chapter(session):
    for chapter in CHAPTERS:
        result = SimpleNamespace(id=uuid4(), chapter_id=chapter.id, child_id=chapter.child_id)
        assert can_access_result(session, result, chapter) == can_access_chapter(session, chapter)

    # A result paired with the wrong chapter is never visible
    for chapter, other in itertools.permutations(CHAPTERS, 2):
        result = SimpleNamespace(id=uuid4(), chapter_id=other.id, child_id=other.child_id)
        assert not can_access_result(session, result, chapter)


@pytest.mark.parametrize("session", SESSIONS)
def test_learning_sessions_need_a_consistent_chapter(session):
    for chapter in CHAPTERS:
        row = SimpleNamespace(id=uuid4(), chapter_id=chapter.id, child_id=chapter.child_id)
        assert can_access_learning_session(session, row, chapter) == can_access_chapter(session, chapter)

    for chapter, child in itertools.product(CHAPTERS, CHILDREN):
        if child.id == chapter.child_id:
            continue
        forged = SimpleNamespace(id=uuid4(), chapter_id=chapter.id, child_id=child.id)
        assert not can_access_learning_session(session, forged, chapter)


@pytest.mark.parametrize("session", SESSIONS)
def test_notifications_are_parent_only(session):
    for parent_id in PARENTS:
        notification = SimpleNamespace(id=uuid4(), user_id=parent_id)
        expected = isinstance(session, ParentSession) and session.parent_id == parent_id
        assert can_access_notification(session, notification) == expected


def test_ensure_raises_forbidden():
    stranger = ParentSession(parent_id=uuid4(), issued_at=NOW, expires_at=LATER)
    with pytest.raises(Forbidden):
        ensure_chapter_access(stranger, CHAPTERS[0])
