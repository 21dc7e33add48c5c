"""Pydantic schemas for API request/response validation."""

from lessonlab.schemas.auth import ChildLoginRequest, LoginRequest, RegisterRequest, SessionInfo
from lessonlab.schemas.user import ParentAuthResponse, ParentRead
from lessonlab.schemas.children import ChildCreate, ChildLoginResponse, ChildRead, ChildSummary
from lessonlab.schemas.lessons import (
    GenerationRequest,
    ImagePayload,
    LessonContent,
    Question,
    Subject,
    VerificationVerdict,
)
from lessonlab.schemas.chapters import (
    ChapterCreate,
    ChapterCreateResponse,
    ChapterRead,
    ChapterResultRead,
    PhotoUpload,
    SubmitAnswers,
    SubmitResponse,
)
from lessonlab.schemas.learning_sessions import (
    LearningSessionEnd,
    LearningSessionRead,
    LearningSessionStart,
)
from lessonlab.schemas.notifications import NotificationRead, UnreadCount

__all__ = [
    # Auth
    "ChildLoginRequest",
    "LoginRequest",
    "RegisterRequest",
    "SessionInfo",
    # Parents
    "ParentAuthResponse",
    "ParentRead",
    # Children
    "ChildCreate",
    "ChildLoginResponse",
    "ChildRead",
    "ChildSummary",
    # Lessons
    "GenerationRequest",
    "ImagePayload",
    "LessonContent",
    "Question",
    "Subject",
    "VerificationVerdict",
    # Chapters
    "ChapterCreate",
    "ChapterCreateResponse",
    "ChapterRead",
    "ChapterResultRead",
    "PhotoUpload",
    "SubmitAnswers",
    "SubmitResponse",
    # Learning sessions
    "LearningSessionEnd",
    "LearningSessionRead",
    "LearningSessionStart",
    # Notifications
    "NotificationRead",
    "UnreadCount",
]
