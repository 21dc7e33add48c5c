"""In-memory stand-ins for storage and the three AI capabilities."""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from lessonlab.db.models import (
    DEFAULT_NOTIFICATION_PREFERENCES,
    Chapter,
    ChapterPhoto,
    ChapterResult,
    ChapterStatus,
    Child,
    LearningSession,
    Notification,
    Parent,
)
from lessonlab.schemas.lessons import LessonContent


# =============================================================================
# LESSON FIXTURES
# =============================================================================


def make_question(index: int, correct: str = "A", difficulty: str = "easy") -> dict:
    return {
        "question": f"Question {index}?",
        "options": [f"{index}-a", f"{index}-b", f"{index}-c", f"{index}-d"],
        "correct": correct,
        "difficulty": difficulty,
    }


def make_lesson(topic: str = "Adding fractions", correct: str = "A", **overrides) -> dict:
    lesson = {
        "subject": "math",
        "grade": 3,
        "topic": topic,
        "explanation": {
            "paragraphs": [
                "A fraction is a part of a whole.",
                "To add fractions with the same bottom number, add the top numbers.",
                "Always check your answer with a drawing.",
            ]
        },
        "practice": [make_question(i, correct, "easy") for i in range(5)],
        "test": [
            make_question(10 + i, correct, ("easy", "medium", "hard")[i % 3]) for i in range(10)
        ],
    }
    lesson.update(overrides)
    return lesson


def lesson_json(topic: str = "Adding fractions", **overrides) -> str:
    return json.dumps(make_lesson(topic, **overrides))


PASS = json.dumps({"status": "PASS", "issues": []})


def fail(*issues: str) -> str:
    return json.dumps({"status": "FAIL", "issues": list(issues) or ["Question 3 has two right answers"]})


# =============================================================================
# AI CAPABILITIES
# =============================================================================


class Hang:
    """Reply that never arrives; exercises the per-stage timeout."""


class Scripted:
    """
    Replays canned replies in order; the last reply repeats.

    A reply may be a string (returned), an exception (raised) or Hang.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = 0
        self.inputs: list = []

    async def _next(self, *args):
        self.calls += 1
        self.inputs.append(args)
        reply = self.replies[min(self.calls, len(self.replies)) - 1]
        if isinstance(reply, Hang):
            await asyncio.sleep(3600)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeGenerator(Scripted):
    async def generate(self, request):
        return await self._next(request)


class FakeVerifier(Scripted):
    async def verify(self, content):
        return await self._next(content)


class FakeRepairer(Scripted):
    async def repair(self, content, issues):
        return await self._next(content, issues)


# =============================================================================
# STORAGE
# =============================================================================


class InMemoryStorage:
    """Same interface as lessonlab.db.storage.Storage, backed by dicts."""

    def __init__(self):
        self.parents: dict[UUID, Parent] = {}
        self.children: dict[UUID, Child] = {}
        self.chapters: dict[UUID, Chapter] = {}
        self.photos: list[ChapterPhoto] = []
        self.results: dict[UUID, ChapterResult] = {}
        self.learning_sessions: dict[UUID, LearningSession] = {}
        self.notifications: dict[UUID, Notification] = {}
        self._tick = 0

    def _stamp(self, row):
        # Strictly increasing timestamps keep "newest first" ordering stable
        self._tick += 1
        row.id = uuid4()
        row.created_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self._tick)
        return row

    @asynccontextmanager
    async def opener(self):
        yield self

    # Parents

    async def create_parent(self, *, email, password_hash, full_name):
        parent = self._stamp(
            Parent(
                email=email.lower(),
                password_hash=password_hash,
                full_name=full_name,
                notification_preferences=dict(DEFAULT_NOTIFICATION_PREFERENCES),
            )
        )
        self.parents[parent.id] = parent
        return parent

    async def get_parent_by_id(self, parent_id):
        return self.parents.get(parent_id)

    async def get_parent_by_email(self, email):
        return next((p for p in self.parents.values() if p.email == email.lower()), None)

    # Children

    async def create_child(self, *, parent_id, name, age, avatar_url=None):
        child = self._stamp(
            Child(parent_id=parent_id, name=name, age=age, avatar_url=avatar_url, total_stars=0)
        )
        self.children[child.id] = child
        return child

    async def get_child_by_id(self, child_id):
        return self.children.get(child_id)

    async def list_children_by_parent(self, parent_id):
        return [c for c in self.children.values() if c.parent_id == parent_id]

    async def add_child_stars(self, child_id, stars):
        self.children[child_id].total_stars += stars

    # Chapters

    async def create_chapter(self, *, child_id, parent_id, title, subject, grade):
        chapter = self._stamp(
            Chapter(
                child_id=child_id,
                parent_id=parent_id,
                title=title,
                subject=subject,
                grade=grade,
                status=ChapterStatus.PROCESSING.value,
                content=None,
                completed_at=None,
            )
        )
        self.chapters[chapter.id] = chapter
        return chapter

    async def create_chapter_photos(self, chapter_id, photos):
        for page_number, media_type, data in photos:
            self.photos.append(
                ChapterPhoto(
                    chapter_id=chapter_id,
                    page_number=page_number,
                    media_type=media_type,
                    photo_data=data,
                )
            )

    async def get_chapter_by_id(self, chapter_id):
        return self.chapters.get(chapter_id)

    async def list_chapters_by_parent(self, parent_id):
        rows = [c for c in self.chapters.values() if c.parent_id == parent_id]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)

    async def list_chapters_by_child(self, child_id):
        rows = [c for c in self.chapters.values() if c.child_id == child_id]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)

    async def update_chapter_content(self, chapter_id, content: LessonContent):
        chapter = self.chapters[chapter_id]
        chapter.content = content.model_dump(mode="json")
        chapter.status = ChapterStatus.READY.value

    async def update_chapter_status(self, chapter_id, status: ChapterStatus):
        chapter = self.chapters[chapter_id]
        chapter.status = status.value
        if status == ChapterStatus.COMPLETED:
            chapter.completed_at = datetime.now(timezone.utc)

    # Results

    async def create_result(self, *, chapter_id, child_id, practice_score, test_score,
                            total_score, stars, answers, time_spent_seconds=None):
        result = self._stamp(
            ChapterResult(
                chapter_id=chapter_id,
                child_id=child_id,
                practice_score=practice_score,
                test_score=test_score,
                total_score=total_score,
                stars=stars,
                answers=answers,
                time_spent_seconds=time_spent_seconds,
            )
        )
        self.results[result.id] = result
        return result

    async def get_result_by_id(self, result_id):
        return self.results.get(result_id)

    async def get_result_by_chapter(self, chapter_id):
        rows = [r for r in self.results.values() if r.chapter_id == chapter_id]
        return max(rows, key=lambda r: r.created_at, default=None)

    async def list_results_by_child(self, child_id):
        rows = [r for r in self.results.values() if r.child_id == child_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    # Learning sessions

    async def create_learning_session(self, *, child_id, chapter_id, stage):
        row = LearningSession(
            id=uuid4(),
            child_id=child_id,
            chapter_id=chapter_id,
            stage=stage,
            started_at=datetime.now(timezone.utc),
            ended_at=None,
            duration_seconds=0,
        )
        self.learning_sessions[row.id] = row
        return row

    async def get_learning_session_by_id(self, session_id):
        return self.learning_sessions.get(session_id)

    async def end_learning_session(self, session_id, duration_seconds):
        row = self.learning_sessions[session_id]
        row.ended_at = datetime.now(timezone.utc)
        row.duration_seconds = duration_seconds

    # Notifications

    async def create_notification(self, *, user_id, type, title, message, data=None):
        notification = self._stamp(
            Notification(user_id=user_id, type=type, title=title, message=message, data=data, read=False)
        )
        self.notifications[notification.id] = notification
        return notification

    async def get_notification_by_id(self, notification_id):
        return self.notifications.get(notification_id)

    async def list_notifications_by_parent(self, parent_id, limit=50):
        rows = [n for n in self.notifications.values() if n.user_id == parent_id]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)[:limit]

    async def count_unread_notifications(self, parent_id):
        return sum(1 for n in self.notifications.values() if n.user_id == parent_id and not n.read)

    async def mark_notification_read(self, notification_id):
        self.notifications[notification_id].read = True

    async def mark_all_notifications_read(self, parent_id):
        for notification in self.notifications.values():
            if notification.user_id == parent_id:
                notification.read = True

    async def update_notification_preferences(self, parent_id, preferences):
        self.parents[parent_id].notification_preferences = dict(preferences)
