"""Answer scoring and star rating. Pure functions, no I/O."""

from collections.abc import Sequence
from dataclasses import dataclass

from lessonlab.schemas.lessons import TOTAL_QUESTIONS, Question

# (minimum percentage, stars), checked top-down
STAR_TIERS: tuple[tuple[int, int], ...] = (
    (90, 5),
    (80, 4),
    (70, 3),
    (60, 2),
)
MIN_STARS = 1


@dataclass(frozen=True)
class ScoreBreakdown:
    practice_score: int
    test_score: int
    total_score: int
    stars: int


def calculate_stars(score: float, total: int) -> int:
    """
    Map a score to 1-5 stars. Tier boundaries are inclusive.

    Compares score * 100 against threshold * total so that exact boundaries
    (e.g. 27/30) are not lost to float rounding.
    """
    if total <= 0:
        return MIN_STARS
    for threshold, stars in STAR_TIERS:
        if score * 100 >= threshold * total:
            return stars
    return MIN_STARS


def _count_correct(answers: Sequence[str], questions: Sequence[Question]) -> int:
    # Extra answers beyond the question list score nothing
    return sum(
        1
        for answer, question in zip(answers, questions)
        if answer == question.correct
    )


def calculate_scores(
    practice_answers: Sequence[str],
    test_answers: Sequence[str],
    practice_questions: Sequence[Question],
    test_questions: Sequence[Question],
) -> ScoreBreakdown:
    """
    Score a submission.

    An answer counts when it equals the question's correct letter exactly
    (case-sensitive, "A"-"D" in original option order). Stars are computed
    against the fixed lesson size of 15 questions.
    """
    practice_score = _count_correct(practice_answers, practice_questions)
    test_score = _count_correct(test_answers, test_questions)
    total_score = practice_score + test_score
    return ScoreBreakdown(
        practice_score=practice_score,
        test_score=test_score,
        total_score=total_score,
        stars=calculate_stars(total_score, TOTAL_QUESTIONS),
    )
