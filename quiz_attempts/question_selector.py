"""
Question selection and ordering applied before an attempt starts.
"""
import dataclasses
import logging
import random
from typing import List, Optional

from .models import AttemptSettings, Question, QuestionType, QuizDefinition

logger = logging.getLogger(__name__)


class QuestionSelector:
    """Selects, orders and shuffles the questions an attempt will run against."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the selector.

        Args:
            rng: Random source, injectable for reproducible ordering
        """
        self._rng = rng or random.Random()

    def prepare_quiz(self, quiz: QuizDefinition, settings: AttemptSettings) -> QuizDefinition:
        """
        Produce the quiz definition a new attempt will be frozen against.

        Question order is shuffled when the quiz or the global settings ask for
        it, the count is limited by the settings, and options are shuffled when
        the quiz or the settings ask for it.

        Args:
            quiz: Quiz from the catalog
            settings: Global attempt settings

        Returns:
            New QuizDefinition; the catalog copy is left untouched
        """
        questions = self.select_questions(
            list(quiz.questions),
            settings,
            randomize=quiz.randomize_questions or settings.random_order,
        )

        if quiz.randomize_options or settings.shuffle_options:
            questions = [self.shuffle_options(question) for question in questions]

        if len(questions) != len(quiz.questions):
            logger.info(f"Quiz '{quiz.id}' limited to {len(questions)} of {len(quiz.questions)} questions")

        return dataclasses.replace(quiz, questions=tuple(questions))

    def select_questions(
        self,
        questions: List[Question],
        settings: AttemptSettings,
        randomize: bool = False,
    ) -> List[Question]:
        """
        Select and order questions based on settings.

        Raises:
            ValueError: If questions list is empty
        """
        if not questions:
            raise ValueError("Cannot select questions from empty list")

        selected = list(questions)
        if randomize:
            selected = self.shuffle_questions(selected)

        if settings.question_count is not None:
            selected = self.limit_question_count(selected, settings.question_count)

        return selected

    def shuffle_questions(self, questions: List[Question]) -> List[Question]:
        """Return a shuffled copy of the questions."""
        shuffled = list(questions)
        self._rng.shuffle(shuffled)
        return shuffled

    def shuffle_options(self, question: Question) -> Question:
        """
        Return the question with its options in random order.

        True/false questions keep their natural order.
        """
        if question.type is QuestionType.TRUE_FALSE or len(question.options) < 2:
            return question
        options = list(question.options)
        self._rng.shuffle(options)
        return dataclasses.replace(question, options=tuple(options))

    def limit_question_count(self, questions: List[Question], count: int) -> List[Question]:
        """
        Limit the number of questions, never below one.

        A count larger than the pool returns every question.
        """
        return list(questions[:max(1, count)])
