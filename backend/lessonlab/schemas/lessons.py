"""
Lesson content schemas.

These describe both the pipeline's input (GenerationRequest) and the JSON
shape the AI capabilities must produce (LessonContent, VerificationVerdict).
"""

from enum import Enum
from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from lessonlab.schemas.base import BaseSchema

PRACTICE_COUNT = 5
TEST_COUNT = 10
TOTAL_QUESTIONS = PRACTICE_COUNT + TEST_COUNT
MIN_GRADE = 1
MAX_GRADE = 6

OPTION_LETTERS = ("A", "B", "C", "D")


class Subject(str, Enum):
    """Fixed school subject categories."""

    MATH = "math"
    SCIENCE = "science"
    ARABIC = "arabic"
    ENGLISH = "english"
    ISLAMIC = "islamic"
    SOCIAL = "social"


class ImagePayload(BaseSchema):
    """One decoded textbook page image."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str


class GenerationRequest(BaseSchema):
    """Immutable pipeline input: ordered page images plus lesson metadata."""

    model_config = ConfigDict(frozen=True)

    images: tuple[ImagePayload, ...] = Field(..., min_length=1)
    subject: Subject
    grade: int = Field(..., ge=MIN_GRADE, le=MAX_GRADE)
    practice_count: Literal[5] = PRACTICE_COUNT
    test_count: Literal[10] = TEST_COUNT


# =============================================================================
# LESSON CONTENT
# =============================================================================


class Question(BaseSchema):
    """Multiple-choice question with exactly one correct option."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct: Literal["A", "B", "C", "D"]
    difficulty: Literal["easy", "medium", "hard"]

    @field_validator("options")
    @classmethod
    def options_distinct(cls, options: list[str]) -> list[str]:
        if len({option.strip() for option in options}) != len(options):
            raise ValueError("options must be 4 distinct strings")
        return options

    @field_validator("correct", mode="before")
    @classmethod
    def normalize_correct(cls, value):
        """Accept an option index (0-3) or a letter in any case."""
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < len(OPTION_LETTERS):
            return OPTION_LETTERS[value]
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def correct_index(self) -> int:
        return OPTION_LETTERS.index(self.correct)


class Explanation(BaseSchema):
    paragraphs: list[str] = Field(..., min_length=3, max_length=5)


class LessonContent(BaseSchema):
    """Structured lesson: explanation plus practice and test question sets."""

    subject: str | None = None
    grade: int | None = None
    topic: str = Field(..., min_length=1)
    explanation: Explanation
    practice: list[Question] = Field(..., min_length=PRACTICE_COUNT, max_length=PRACTICE_COUNT)
    test: list[Question] = Field(..., min_length=TEST_COUNT, max_length=TEST_COUNT)


class VerificationVerdict(BaseSchema):
    """Verifier output. Never persisted."""

    status: Literal["PASS", "FAIL"]
    issues: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("issues", mode="before")
    @classmethod
    def stringify_issues(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @property
    def passed(self) -> bool:
        return self.status == "PASS"
