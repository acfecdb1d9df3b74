"""
Question validator: completeness and correctness checks per question type.

Every function here is pure. Shape errors (an answer variant that does not
match the question type, or an option id the question does not have) raise
InvalidAnswer instead of being treated as a wrong answer.
"""
from typing import Any, Callable, Dict, Optional

from .exceptions import InvalidAnswer
from .models import (
    Answer,
    FreeTextAnswer,
    MultiChoiceAnswer,
    Question,
    QuestionType,
    SingleChoiceAnswer,
)

_ANSWER_TYPES = {
    QuestionType.SINGLE_CHOICE: SingleChoiceAnswer,
    QuestionType.TRUE_FALSE: SingleChoiceAnswer,
    QuestionType.MULTI_CHOICE: MultiChoiceAnswer,
    QuestionType.FREE_TEXT: FreeTextAnswer,
}


def normalize_text(text: str) -> str:
    """Normalize free text for comparison."""
    return text.strip().casefold()


def coerce_answer(question: Question, raw: Any) -> Answer:
    """
    Build the answer variant matching the question type from a raw value.

    Args:
        question: Question being answered
        raw: Typed answer, option id, iterable of option ids, or text

    Returns:
        Answer variant for the question type

    Raises:
        InvalidAnswer: If the raw value has the wrong shape for the question
    """
    if isinstance(raw, (SingleChoiceAnswer, MultiChoiceAnswer, FreeTextAnswer)):
        return raw

    if question.type in (QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE):
        if isinstance(raw, (str, int)) and not isinstance(raw, bool):
            return SingleChoiceAnswer(str(raw))
        raise InvalidAnswer(question.id, "expected a single option id")

    if question.type is QuestionType.MULTI_CHOICE:
        if isinstance(raw, (list, tuple, set, frozenset)):
            return MultiChoiceAnswer(frozenset(str(item) for item in raw))
        raise InvalidAnswer(question.id, "expected a collection of option ids")

    if question.type is QuestionType.FREE_TEXT:
        if isinstance(raw, str):
            return FreeTextAnswer(raw)
        raise InvalidAnswer(question.id, "expected text")

    raise ValueError(f"Unsupported question type: {question.type}")


def check_answer_shape(question: Question, answer: Answer) -> None:
    """
    Ensure the answer variant fits the question and references known options.

    Raises:
        InvalidAnswer: On a variant mismatch or an unknown option id
    """
    expected = _ANSWER_TYPES[question.type]
    if not isinstance(answer, expected):
        raise InvalidAnswer(
            question.id,
            f"{type(answer).__name__} does not fit a {question.type.value} question",
        )

    valid_ids = set(question.option_ids)
    if isinstance(answer, SingleChoiceAnswer):
        if answer.option_id not in valid_ids:
            raise InvalidAnswer(question.id, f"unknown option id '{answer.option_id}'")
    elif isinstance(answer, MultiChoiceAnswer):
        unknown = sorted(answer.option_ids - valid_ids)
        if unknown:
            raise InvalidAnswer(question.id, f"unknown option ids {unknown}")


def _single_complete(question: Question, answer: SingleChoiceAnswer) -> bool:
    return bool(answer.option_id)


def _multi_complete(question: Question, answer: MultiChoiceAnswer) -> bool:
    return len(answer.option_ids) > 0


def _text_complete(question: Question, answer: FreeTextAnswer) -> bool:
    return bool(answer.text.strip())


def _single_correct(question: Question, answer: SingleChoiceAnswer) -> bool:
    return question.correct_option_ids == {answer.option_id}


def _multi_correct(question: Question, answer: MultiChoiceAnswer) -> bool:
    # exact-set-match, no partial credit
    return answer.option_ids == question.correct_option_ids


def _text_correct(question: Question, answer: FreeTextAnswer) -> bool:
    if question.requires_manual_grading:
        return False
    return normalize_text(answer.text) == normalize_text(question.reference_answer)


_COMPLETENESS_CHECKS: Dict[QuestionType, Callable[[Question, Any], bool]] = {
    QuestionType.SINGLE_CHOICE: _single_complete,
    QuestionType.TRUE_FALSE: _single_complete,
    QuestionType.MULTI_CHOICE: _multi_complete,
    QuestionType.FREE_TEXT: _text_complete,
}

_CORRECTNESS_CHECKS: Dict[QuestionType, Callable[[Question, Any], bool]] = {
    QuestionType.SINGLE_CHOICE: _single_correct,
    QuestionType.TRUE_FALSE: _single_correct,
    QuestionType.MULTI_CHOICE: _multi_correct,
    QuestionType.FREE_TEXT: _text_correct,
}

for _table in (_ANSWER_TYPES, _COMPLETENESS_CHECKS, _CORRECTNESS_CHECKS):
    _missing = set(QuestionType) - set(_table)
    if _missing:
        raise RuntimeError(f"Validator is missing handlers for {sorted(t.value for t in _missing)}")


def is_complete(question: Question, answer: Answer) -> bool:
    """
    Check whether an answer satisfies the minimum input rule of its question.

    Raises:
        InvalidAnswer: If the answer is malformed for the question
    """
    check_answer_shape(question, answer)
    return _COMPLETENESS_CHECKS[question.type](question, answer)


def is_correct(question: Question, answer: Optional[Answer]) -> bool:
    """
    Check whether an answer is correct. A missing answer is always incorrect.

    Raises:
        InvalidAnswer: If the answer is malformed for the question
    """
    if answer is None:
        return False
    check_answer_shape(question, answer)
    return _CORRECTNESS_CHECKS[question.type](question, answer)


def validate_answer(question: Question, answer: Answer) -> None:
    """
    Reject answers that are malformed or incomplete.

    Raises:
        InvalidAnswer: If the answer cannot be stored for the question
    """
    if not is_complete(question, answer):
        if question.type is QuestionType.FREE_TEXT:
            raise InvalidAnswer(question.id, "answer text is empty")
        raise InvalidAnswer(question.id, "no option selected")
