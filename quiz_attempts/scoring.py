"""
Scoring of submitted attempts.
"""
import logging
from typing import List, Mapping, Optional

from .models import Answer, QuestionResult, QuizDefinition, ScoreResult
from .validator import is_correct

logger = logging.getLogger(__name__)


def round_half_up_percent(earned: int, total: int) -> int:
    """
    Integer percentage of earned over total, rounding halves up.

    Returns 0 when total is not positive.
    """
    if total <= 0:
        return 0
    return (earned * 200 + total) // (total * 2)


def score_attempt(
    quiz: QuizDefinition,
    answers: Mapping[str, Answer],
    manual_grades: Optional[Mapping[str, bool]] = None,
) -> ScoreResult:
    """
    Score a set of answers against a quiz definition.

    Pure function: the same quiz and answers always give the same result,
    whatever order the answers were recorded in.

    Args:
        quiz: Quiz the answers belong to
        answers: Mapping of question id to answer; untouched questions are absent
        manual_grades: Optional grades for free-text questions without a
            reference answer, keyed by question id

    Returns:
        ScoreResult with a per-question breakdown
    """
    manual_grades = manual_grades or {}
    results: List[QuestionResult] = []
    pending: List[str] = []
    earned_points = 0
    total_points = 0
    correct_count = 0

    for question in quiz.questions:
        answer = answers.get(question.id)
        answered = answer is not None

        if question.requires_manual_grading:
            graded = question.id in manual_grades
            correct = answered and graded and bool(manual_grades[question.id])
            if answered and not graded:
                pending.append(question.id)
        else:
            correct = is_correct(question, answer)

        points = question.points if correct else 0
        earned_points += points
        total_points += question.points
        if correct:
            correct_count += 1

        results.append(QuestionResult(
            question_id=question.id,
            answered=answered,
            is_correct=correct,
            points_earned=points,
            points_possible=question.points,
            requires_manual_grading=question.requires_manual_grading,
        ))

    if total_points <= 0:
        logger.warning(
            f"Scoring inconsistency: quiz '{quiz.id}' has no points to award, "
            f"reporting 0% and not passed"
        )
        percent = 0
        passed = False
    else:
        percent = round_half_up_percent(earned_points, total_points)
        passed = percent >= quiz.passing_score_percent

    return ScoreResult(
        correct_count=correct_count,
        total_questions=len(quiz.questions),
        earned_points=earned_points,
        total_points=total_points,
        percent=percent,
        passed=passed,
        results=tuple(results),
        pending_manual_grading=tuple(pending),
    )
