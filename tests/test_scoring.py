"""
Unit tests for attempt scoring.
"""
import itertools
import unittest

from quiz_attempts.models import (
    FreeTextAnswer,
    MultiChoiceAnswer,
    QuizDefinition,
    SingleChoiceAnswer,
)
from quiz_attempts.scoring import round_half_up_percent, score_attempt
from tests.test_fixtures import TestFixtures


class TestRoundHalfUpPercent(unittest.TestCase):
    """Integer percentages with halves rounded up."""

    def test_exact_values(self):
        self.assertEqual(round_half_up_percent(0, 4), 0)
        self.assertEqual(round_half_up_percent(2, 4), 50)
        self.assertEqual(round_half_up_percent(4, 4), 100)

    def test_half_rounds_up(self):
        # 1/8 = 12.5%
        self.assertEqual(round_half_up_percent(1, 8), 13)
        # 5/8 = 62.5%
        self.assertEqual(round_half_up_percent(5, 8), 63)

    def test_below_half_rounds_down(self):
        # 1/3 = 33.33%
        self.assertEqual(round_half_up_percent(1, 3), 33)
        # 2/3 = 66.67%
        self.assertEqual(round_half_up_percent(2, 3), 67)

    def test_zero_total(self):
        self.assertEqual(round_half_up_percent(0, 0), 0)


class TestScoreAttempt(unittest.TestCase):
    """Scoring of answer sets against quiz definitions."""

    def test_all_correct(self):
        quiz = TestFixtures.two_question_quiz()
        score = score_attempt(quiz, {"q1": SingleChoiceAnswer("a"), "q2": SingleChoiceAnswer("a")})

        self.assertEqual(score.correct_count, 2)
        self.assertEqual(score.earned_points, 2)
        self.assertEqual(score.total_points, 2)
        self.assertEqual(score.percent, 100)
        self.assertTrue(score.passed)

    def test_no_answers(self):
        quiz = TestFixtures.two_question_quiz()
        score = score_attempt(quiz, {})

        self.assertEqual(score.earned_points, 0)
        self.assertEqual(score.percent, 0)
        self.assertFalse(score.passed)
        self.assertTrue(all(not r.answered for r in score.results))

    def test_partial_answers_at_passing_boundary(self):
        quiz = TestFixtures.two_question_quiz(passing_score_percent=50)
        score = score_attempt(quiz, {"q1": SingleChoiceAnswer("a"), "q2": SingleChoiceAnswer("b")})

        self.assertEqual(score.percent, 50)
        self.assertTrue(score.passed)

    def test_points_are_weighted(self):
        quiz = TestFixtures.mixed_quiz()
        score = score_attempt(quiz, {"q2": MultiChoiceAnswer({"a", "c"})})

        self.assertEqual(score.earned_points, 2)
        self.assertEqual(score.total_points, 7)
        self.assertEqual(score.percent, 29)

    def test_multi_choice_without_partial_credit(self):
        quiz = TestFixtures.multi_choice_quiz()
        score = score_attempt(quiz, {"m1": MultiChoiceAnswer({"a", "b", "c"})})

        self.assertEqual(score.earned_points, 0)
        self.assertEqual(score.total_points, 10)
        self.assertEqual(score.percent, 0)

    def test_results_follow_question_order(self):
        quiz = TestFixtures.mixed_quiz()
        score = score_attempt(quiz, {})
        self.assertEqual([r.question_id for r in score.results], ["q1", "q2", "q3", "q4", "q5"])

    def test_answer_order_does_not_change_score(self):
        quiz = TestFixtures.mixed_quiz()
        answers = [
            ("q1", SingleChoiceAnswer("b")),
            ("q2", MultiChoiceAnswer({"a"})),
            ("q3", SingleChoiceAnswer("false")),
            ("q4", FreeTextAnswer("paris")),
        ]
        scores = {score_attempt(quiz, dict(order)) for order in itertools.permutations(answers)}
        self.assertEqual(len(scores), 1)

    def test_empty_quiz_logs_inconsistency(self):
        quiz = QuizDefinition("empty", "Empty", ())
        with self.assertLogs("quiz_attempts.scoring", level="WARNING") as logs:
            score = score_attempt(quiz, {})

        self.assertEqual(score.percent, 0)
        self.assertFalse(score.passed)
        self.assertIn("Scoring inconsistency", logs.output[0])


class TestManualGrading(unittest.TestCase):
    """Free-text questions without a reference answer."""

    def setUp(self):
        self.quiz = TestFixtures.mixed_quiz()
        self.answers = {"q5": FreeTextAnswer("A generator yields values lazily.")}

    def test_answered_ungraded_question_is_pending(self):
        score = score_attempt(self.quiz, self.answers)

        self.assertEqual(score.pending_manual_grading, ("q5",))
        result = score.results[4]
        self.assertTrue(result.requires_manual_grading)
        self.assertFalse(result.is_correct)
        self.assertEqual(score.total_points, 7)

    def test_unanswered_question_is_not_pending(self):
        score = score_attempt(self.quiz, {})
        self.assertEqual(score.pending_manual_grading, ())

    def test_manual_grade_awards_points(self):
        score = score_attempt(self.quiz, self.answers, manual_grades={"q5": True})

        self.assertEqual(score.pending_manual_grading, ())
        self.assertEqual(score.earned_points, 2)
        self.assertTrue(score.results[4].is_correct)

    def test_manual_grade_cannot_credit_unanswered_question(self):
        score = score_attempt(self.quiz, {}, manual_grades={"q5": True})
        self.assertEqual(score.earned_points, 0)

    def test_to_dict(self):
        data = score_attempt(self.quiz, self.answers).to_dict()

        self.assertEqual(data["pending_manual_grading"], ["q5"])
        self.assertEqual(len(data["results"]), 5)
        self.assertEqual(data["results"][4]["points_possible"], 2)


if __name__ == '__main__':
    unittest.main()
