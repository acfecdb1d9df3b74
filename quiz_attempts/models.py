"""
Core data models for the quiz attempt engine.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union


class QuestionType(Enum):
    """Closed set of supported question kinds."""
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    TRUE_FALSE = "true_false"
    FREE_TEXT = "free_text"


class AttemptStatus(Enum):
    """Lifecycle states of a single quiz attempt."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SUBMITTED = "submitted"


class SubmissionReason(Enum):
    """Why an attempt left the in-progress state."""
    MANUAL = "manual"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Option:
    """A selectable option of a choice question."""
    id: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True)
class Question:
    """A single quiz question, tagged by its type."""
    id: str
    type: QuestionType
    text: str = ""
    options: Tuple[Option, ...] = ()
    points: int = 1
    reference_answer: Optional[str] = None
    explanation: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.options, tuple):
            object.__setattr__(self, "options", tuple(self.options))

    @property
    def option_ids(self) -> List[str]:
        return [option.id for option in self.options]

    @property
    def correct_option_ids(self) -> FrozenSet[str]:
        return frozenset(option.id for option in self.options if option.is_correct)

    @property
    def requires_manual_grading(self) -> bool:
        """Free-text questions without a reference answer are graded by hand."""
        return (
            self.type is QuestionType.FREE_TEXT
            and not str(self.reference_answer or "").strip()
        )

    def validate(self) -> List[str]:
        """
        Check the question against the invariants of its type.

        Returns:
            List of human-readable issues, empty when the question is valid
        """
        issues = []
        prefix = f"Question '{self.id}'"

        if not isinstance(self.points, int) or isinstance(self.points, bool) or self.points < 1:
            issues.append(f"{prefix}: points must be a positive integer, got {self.points!r}")

        ids = self.option_ids
        if len(ids) != len(set(ids)):
            issues.append(f"{prefix}: option ids must be unique")

        correct = len(self.correct_option_ids)
        if self.type in (QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE):
            if not self.options:
                issues.append(f"{prefix}: {self.type.value} question needs options")
            elif correct != 1:
                issues.append(f"{prefix}: exactly one option must be correct, found {correct}")
            if self.type is QuestionType.TRUE_FALSE and len(self.options) != 2:
                issues.append(f"{prefix}: true_false question needs exactly two options")
        elif self.type is QuestionType.MULTI_CHOICE:
            if not self.options:
                issues.append(f"{prefix}: multi_choice question needs options")
            elif correct == 0:
                issues.append(f"{prefix}: at least one option must be correct")
        elif self.type is QuestionType.FREE_TEXT:
            if self.options:
                issues.append(f"{prefix}: free_text question cannot have options")

        if self.reference_answer is not None and not isinstance(self.reference_answer, str):
            issues.append(f"{prefix}: reference answer must be text, got {self.reference_answer!r}")

        return issues

    def student_view(self) -> Dict[str, Any]:
        """Question as shown to a learner, without correctness data."""
        view = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "points": self.points,
        }
        if self.options:
            view["options"] = [{"id": o.id, "text": o.text} for o in self.options]
        return view


@dataclass(frozen=True)
class SingleChoiceAnswer:
    """Answer to a single_choice or true_false question."""
    option_id: str

    def to_raw(self) -> str:
        return self.option_id


@dataclass(frozen=True)
class MultiChoiceAnswer:
    """Answer to a multi_choice question; order of selection is irrelevant."""
    option_ids: FrozenSet[str]

    def __post_init__(self):
        if not isinstance(self.option_ids, frozenset):
            object.__setattr__(self, "option_ids", frozenset(self.option_ids))

    def to_raw(self) -> List[str]:
        return sorted(self.option_ids)


@dataclass(frozen=True)
class FreeTextAnswer:
    """Answer to a free_text question."""
    text: str

    def to_raw(self) -> str:
        return self.text


Answer = Union[SingleChoiceAnswer, MultiChoiceAnswer, FreeTextAnswer]


@dataclass(frozen=True)
class QuizDefinition:
    """A quiz as handed to the engine. Immutable once an attempt starts."""
    id: str
    title: str
    questions: Tuple[Question, ...]
    time_limit_seconds: Optional[int] = None
    max_attempts: Optional[int] = None
    passing_score_percent: int = 70
    description: str = ""
    randomize_questions: bool = False
    randomize_options: bool = False
    show_correct_answers: bool = False

    def __post_init__(self):
        if not isinstance(self.questions, tuple):
            object.__setattr__(self, "questions", tuple(self.questions))

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def is_timed(self) -> bool:
        return self.time_limit_seconds is not None

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def validate(self) -> List[str]:
        """
        Validate quiz-level invariants and every question.

        Returns:
            List of issues found; an empty list means the quiz is usable
        """
        issues = []

        if not self.questions:
            issues.append(f"Quiz '{self.id}' must contain at least one question")

        seen = set()
        for question in self.questions:
            if question.id in seen:
                issues.append(f"Quiz '{self.id}': duplicate question id '{question.id}'")
            seen.add(question.id)
            issues.extend(question.validate())

        if self.time_limit_seconds is not None and (
            not isinstance(self.time_limit_seconds, int) or self.time_limit_seconds < 1
        ):
            issues.append(f"Quiz '{self.id}': time limit must be a positive number of seconds")

        if self.max_attempts is not None and (
            not isinstance(self.max_attempts, int) or self.max_attempts < 1
        ):
            issues.append(f"Quiz '{self.id}': max attempts must be a positive integer")

        if (
            not isinstance(self.passing_score_percent, int)
            or isinstance(self.passing_score_percent, bool)
            or not 0 <= self.passing_score_percent <= 100
        ):
            issues.append(f"Quiz '{self.id}': passing score must be between 0 and 100")

        return issues

    def student_view(self) -> Dict[str, Any]:
        """Quiz as shown to a learner: no correct flags, references or explanations."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "time_limit_seconds": self.time_limit_seconds,
            "max_attempts": self.max_attempts,
            "passing_score_percent": self.passing_score_percent,
            "total_points": self.total_points,
            "questions": [question.student_view() for question in self.questions],
        }


@dataclass(frozen=True)
class QuestionResult:
    """Scoring outcome for one question."""
    question_id: str
    answered: bool
    is_correct: bool
    points_earned: int
    points_possible: int
    requires_manual_grading: bool = False


@dataclass(frozen=True)
class ScoreResult:
    """Derived score of a submitted attempt."""
    correct_count: int
    total_questions: int
    earned_points: int
    total_points: int
    percent: int
    passed: bool
    results: Tuple[QuestionResult, ...] = ()
    pending_manual_grading: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correct_count": self.correct_count,
            "total_questions": self.total_questions,
            "earned_points": self.earned_points,
            "total_points": self.total_points,
            "percent": self.percent,
            "passed": self.passed,
            "pending_manual_grading": list(self.pending_manual_grading),
            "results": [
                {
                    "question_id": r.question_id,
                    "answered": r.answered,
                    "is_correct": r.is_correct,
                    "points_earned": r.points_earned,
                    "points_possible": r.points_possible,
                    "requires_manual_grading": r.requires_manual_grading,
                }
                for r in self.results
            ],
        }


@dataclass
class AttemptState:
    """Mutable aggregate of one attempt. Only the engine writes to it."""
    attempt_id: str
    quiz_id: str
    status: AttemptStatus = AttemptStatus.NOT_STARTED
    answers: Mapping[str, Answer] = field(default_factory=dict)
    remaining_seconds: Optional[int] = None
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    submission_reason: Optional[SubmissionReason] = None
    attempt_number: int = 1
    elapsed_ticks: int = 0
    score: Optional[ScoreResult] = None

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly copy of the state for a persistence collaborator."""
        return {
            "attempt_id": self.attempt_id,
            "quiz_id": self.quiz_id,
            "status": self.status.value,
            "answers": {qid: answer.to_raw() for qid, answer in self.answers.items()},
            "remaining_seconds": self.remaining_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "submission_reason": self.submission_reason.value if self.submission_reason else None,
            "attempt_number": self.attempt_number,
            "elapsed_ticks": self.elapsed_ticks,
            "score": self.score.to_dict() if self.score else None,
        }


@dataclass
class AttemptSettings:
    """Global settings applied when an attempt is prepared."""
    question_count: Optional[int] = None
    random_order: bool = False
    shuffle_options: bool = False
    default_passing_score: int = 70


@dataclass
class AttemptRecord:
    """Summary of a finished attempt kept in a learner's history."""
    attempt_id: str
    quiz_id: str
    learner_id: int
    attempt_number: int
    score: ScoreResult
    submission_reason: SubmissionReason
    submitted_at: Optional[datetime]
    elapsed_ticks: int = 0
