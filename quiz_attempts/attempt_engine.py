"""
Attempt engine for the quiz attempt tracker.
Drives one quiz attempt from start to a scored submission.
"""
import logging
import types
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .exceptions import IllegalTransition, InvalidAnswer
from .models import (
    Answer,
    AttemptState,
    AttemptStatus,
    Question,
    QuizDefinition,
    ScoreResult,
    SubmissionReason,
)
from .scoring import score_attempt
from .validator import coerce_answer, validate_answer


class AttemptListener:
    """
    Receives attempt events from an engine.

    Persistence and presentation collaborators subclass this and override the
    hooks they care about. Exceptions raised from a hook are logged by the
    engine and never undo the transition that triggered them.
    """

    def on_started(self, snapshot: Dict[str, Any]) -> None:
        pass

    def on_answer_saved(self, attempt_id: str, question_id: str, answers: Dict[str, Any]) -> None:
        pass

    def on_status_changed(self, attempt_id: str, old_status: AttemptStatus, new_status: AttemptStatus) -> None:
        pass

    def on_submitted(self, attempt_id: str, score: ScoreResult, reason: SubmissionReason) -> None:
        pass

    def on_torn_down(self, attempt_id: str) -> None:
        pass


class AttemptEngine:
    """
    Owns the state of a single quiz attempt.

    Transitions:
        NOT_STARTED --start--> IN_PROGRESS
        IN_PROGRESS --set_answer/clear_answer/tick--> IN_PROGRESS
        IN_PROGRESS --tick (time exhausted)--> COMPLETED --> SUBMITTED
        IN_PROGRESS --request_submit--> COMPLETED
        COMPLETED --confirm_submit--> SUBMITTED
        COMPLETED --cancel_submit (manual only)--> IN_PROGRESS

    Anything else raises IllegalTransition and leaves the state untouched.
    The engine counts ticks and never reads the wall clock for timing; the
    clock is only used to stamp started_at and submitted_at.
    """

    def __init__(
        self,
        quiz: QuizDefinition,
        attempt_id: Optional[str] = None,
        attempt_number: int = 1,
        listeners: Optional[Iterable[AttemptListener]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize an engine for a new attempt.

        Args:
            quiz: Quiz definition the attempt runs against
            attempt_id: Identifier for the attempt, generated when omitted
            attempt_number: Ordinal of this attempt for the learner
            listeners: Collaborators notified of attempt events
            clock: Timestamp source for started_at/submitted_at

        Raises:
            ValueError: If the quiz definition is invalid
        """
        self.logger = logging.getLogger(__name__)

        issues = quiz.validate()
        if issues:
            raise ValueError(f"Invalid quiz definition '{quiz.id}': " + "; ".join(issues))

        self.quiz = quiz
        self._questions: Dict[str, Question] = {q.id: q for q in quiz.questions}
        self._state = AttemptState(
            attempt_id=attempt_id or uuid.uuid4().hex,
            quiz_id=quiz.id,
            attempt_number=attempt_number,
        )
        self._listeners: List[AttemptListener] = list(listeners or [])
        self._clock = clock or datetime.now
        self._torn_down = False

        S = AttemptStatus
        self._transitions: Dict[tuple, Callable[..., Any]] = {
            (S.NOT_STARTED, "start"): self._do_start,
            (S.IN_PROGRESS, "set_answer"): self._do_set_answer,
            (S.IN_PROGRESS, "clear_answer"): self._do_clear_answer,
            (S.IN_PROGRESS, "tick"): self._do_tick,
            (S.IN_PROGRESS, "request_submit"): self._do_request_submit,
            (S.COMPLETED, "confirm_submit"): self._do_confirm_submit,
            (S.COMPLETED, "cancel_submit"): self._do_cancel_submit,
        }

    # --- read-only view ---

    @property
    def attempt_id(self) -> str:
        return self._state.attempt_id

    @property
    def attempt_number(self) -> int:
        return self._state.attempt_number

    @property
    def status(self) -> AttemptStatus:
        return self._state.status

    @property
    def answers(self) -> Dict[str, Answer]:
        return dict(self._state.answers)

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self._state.remaining_seconds

    @property
    def elapsed_ticks(self) -> int:
        return self._state.elapsed_ticks

    @property
    def started_at(self) -> Optional[datetime]:
        return self._state.started_at

    @property
    def submitted_at(self) -> Optional[datetime]:
        return self._state.submitted_at

    @property
    def submission_reason(self) -> Optional[SubmissionReason]:
        return self._state.submission_reason

    @property
    def score(self) -> Optional[ScoreResult]:
        return self._state.score

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def snapshot(self) -> Dict[str, Any]:
        return self._state.snapshot()

    def get_question(self, question_id: str) -> Question:
        """
        Look up a question of this attempt's quiz.

        Raises:
            InvalidAnswer: If the quiz has no such question
        """
        question = self._questions.get(question_id)
        if question is None:
            raise InvalidAnswer(question_id, "question does not belong to this quiz")
        return question

    def unanswered_question_ids(self) -> List[str]:
        return [q.id for q in self.quiz.questions if q.id not in self._state.answers]

    # --- listeners ---

    def add_listener(self, listener: AttemptListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: AttemptListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, hook: str, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception as e:
                # Collaborator failures never roll back local state
                self.logger.error(
                    f"Listener {type(listener).__name__}.{hook} failed for attempt "
                    f"{self.attempt_id}: {e}",
                    exc_info=True,
                )

    # --- events ---

    def start(self) -> Dict[str, Any]:
        """Start the attempt. Returns the initial snapshot."""
        return self._fire("start")

    def set_answer(self, question_id: str, answer: Any) -> Answer:
        """
        Record an answer, replacing any earlier answer for the question.

        Args:
            question_id: Question being answered
            answer: Typed answer or a raw value accepted by coerce_answer

        Returns:
            The stored answer

        Raises:
            InvalidAnswer: If the answer is malformed; nothing is stored
            IllegalTransition: If the attempt is not in progress
        """
        return self._fire("set_answer", question_id, answer)

    def clear_answer(self, question_id: str) -> bool:
        """Forget the answer to a question. Returns True if one was stored."""
        return self._fire("clear_answer", question_id)

    def tick(self) -> AttemptStatus:
        """Advance the countdown by one logical second."""
        return self._fire("tick")

    def request_submit(self) -> AttemptStatus:
        """Ask to submit; the attempt waits for confirm_submit or cancel_submit."""
        return self._fire("request_submit")

    def confirm_submit(self) -> ScoreResult:
        """Finalize the attempt and score it."""
        return self._fire("confirm_submit")

    def cancel_submit(self) -> AttemptStatus:
        """Return to answering after a manual submit request."""
        return self._fire("cancel_submit")

    def teardown(self) -> None:
        """
        Stop the attempt without submitting it.

        Tick delivery is told to stop and every later event is rejected, so a
        discarded attempt can no longer be mutated.
        """
        if self._torn_down:
            return
        self._torn_down = True
        self.logger.info(
            f"Attempt {self.attempt_id} torn down while {self.status.value}",
            extra={'event_type': 'attempt_torn_down', 'attempt_id': self.attempt_id},
        )
        self._notify("on_torn_down", self.attempt_id)

    def _fire(self, event: str, *args: Any) -> Any:
        status = self._state.status
        if self._torn_down:
            raise IllegalTransition(event, status, "attempt was torn down")

        handler = self._transitions.get((status, event))
        if handler is None:
            self.logger.debug(f"Rejected '{event}' for attempt {self.attempt_id} in state {status.value}")
            raise IllegalTransition(event, status)
        return handler(*args)

    # --- transition handlers ---

    def _set_status(self, new_status: AttemptStatus) -> None:
        old_status = self._state.status
        self._state.status = new_status
        self.logger.info(
            f"Attempt {self.attempt_id}: {old_status.value} -> {new_status.value}",
            extra={
                'event_type': 'attempt_transition',
                'attempt_id': self.attempt_id,
                'from_state': old_status.value,
                'to_state': new_status.value,
            },
        )
        self._notify("on_status_changed", self.attempt_id, old_status, new_status)

    def _do_start(self) -> Dict[str, Any]:
        self._state.started_at = self._clock()
        if self.quiz.is_timed:
            self._state.remaining_seconds = self.quiz.time_limit_seconds
        self._set_status(AttemptStatus.IN_PROGRESS)

        snapshot = self.snapshot()
        self._notify("on_started", snapshot)
        return snapshot

    def _do_set_answer(self, question_id: str, raw_answer: Any) -> Answer:
        question = self.get_question(question_id)
        answer = coerce_answer(question, raw_answer)
        validate_answer(question, answer)

        self._state.answers[question_id] = answer
        self.logger.debug(f"Attempt {self.attempt_id}: answer saved for question {question_id}")
        self._notify("on_answer_saved", self.attempt_id, question_id, self.snapshot()["answers"])
        return answer

    def _do_clear_answer(self, question_id: str) -> bool:
        self.get_question(question_id)
        if question_id not in self._state.answers:
            return False
        del self._state.answers[question_id]
        self._notify("on_answer_saved", self.attempt_id, question_id, self.snapshot()["answers"])
        return True

    def _do_tick(self) -> AttemptStatus:
        self._state.elapsed_ticks += 1
        if self._state.remaining_seconds is None:
            return self.status

        self._state.remaining_seconds = max(0, self._state.remaining_seconds - 1)
        if self._state.remaining_seconds == 0:
            self._expire()
        return self.status

    def _expire(self) -> None:
        """Time ran out: complete and submit in one step, no cancel window."""
        self.logger.info(f"Attempt {self.attempt_id} ran out of time, submitting")
        self._state.submission_reason = SubmissionReason.TIMEOUT
        self._set_status(AttemptStatus.COMPLETED)
        self._do_confirm_submit()

    def _do_request_submit(self) -> AttemptStatus:
        self._state.submission_reason = SubmissionReason.MANUAL
        self._set_status(AttemptStatus.COMPLETED)
        return self.status

    def _do_confirm_submit(self) -> ScoreResult:
        # Freeze answers before scoring
        frozen = types.MappingProxyType(dict(self._state.answers))
        self._state.answers = frozen
        self._state.submitted_at = self._clock()

        score = score_attempt(self.quiz, frozen)
        self._state.score = score
        self._set_status(AttemptStatus.SUBMITTED)

        self.logger.info(
            f"Attempt {self.attempt_id} submitted ({self.submission_reason.value}): "
            f"{score.earned_points}/{score.total_points} points, {score.percent}%",
            extra={
                'event_type': 'attempt_submitted',
                'attempt_id': self.attempt_id,
                'percent': score.percent,
                'passed': score.passed,
            },
        )
        self._notify("on_submitted", self.attempt_id, score, self.submission_reason)
        return score

    def _do_cancel_submit(self) -> AttemptStatus:
        if self._state.submission_reason is not SubmissionReason.MANUAL:
            raise IllegalTransition("cancel_submit", self.status, "timed-out attempts cannot be cancelled")

        self._state.submission_reason = None
        self._set_status(AttemptStatus.IN_PROGRESS)
        if self._state.remaining_seconds == 0:
            self._expire()
        return self.status

    # --- rehydration ---

    @classmethod
    def resume(
        cls,
        quiz: QuizDefinition,
        snapshot: Mapping[str, Any],
        elapsed_seconds: int = 0,
        listeners: Optional[Iterable[AttemptListener]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AttemptEngine":
        """
        Rebuild an engine from a persisted snapshot.

        Remaining time is taken from the snapshot as is. Only an explicit
        elapsed_seconds correction from the caller shortens it; if that
        exhausts the time the attempt is submitted as a timeout right away,
        including one that was waiting for its manual submit to be confirmed.

        Args:
            quiz: Quiz definition the attempt was started with
            snapshot: Dict produced by AttemptState.snapshot()
            elapsed_seconds: Time spent away that should count against the limit
            listeners: Collaborators notified of attempt events
            clock: Timestamp source

        Raises:
            ValueError: If the snapshot is already submitted or belongs to another quiz
            InvalidAnswer: If a stored answer no longer fits its question
        """
        if snapshot.get("quiz_id") not in (None, quiz.id):
            raise ValueError(f"Snapshot belongs to quiz '{snapshot['quiz_id']}', not '{quiz.id}'")

        status = AttemptStatus(snapshot.get("status", AttemptStatus.NOT_STARTED.value))
        if status is AttemptStatus.SUBMITTED:
            raise ValueError("Cannot resume an attempt that was already submitted")

        engine = cls(
            quiz,
            attempt_id=snapshot.get("attempt_id"),
            attempt_number=snapshot.get("attempt_number", 1),
            listeners=listeners,
            clock=clock,
        )
        if status is AttemptStatus.NOT_STARTED:
            return engine

        state = engine._state
        answers: Dict[str, Answer] = {}
        for question_id, raw in (snapshot.get("answers") or {}).items():
            question = engine.get_question(question_id)
            answer = coerce_answer(question, raw)
            validate_answer(question, answer)
            answers[question_id] = answer
        state.answers = answers

        started_at = snapshot.get("started_at")
        state.started_at = datetime.fromisoformat(started_at) if started_at else engine._clock()

        correction = max(0, int(elapsed_seconds))
        state.elapsed_ticks = int(snapshot.get("elapsed_ticks") or 0) + correction
        if quiz.is_timed:
            remaining = snapshot.get("remaining_seconds")
            if remaining is None:
                remaining = quiz.time_limit_seconds
            remaining = min(int(remaining), quiz.time_limit_seconds)
            state.remaining_seconds = max(0, remaining - correction)

        reason = snapshot.get("submission_reason")
        state.submission_reason = SubmissionReason(reason) if reason else None
        state.status = status

        engine.logger.info(
            f"Resumed attempt {engine.attempt_id} in state {status.value} "
            f"with {len(answers)} answers, remaining={state.remaining_seconds}"
        )

        if status is AttemptStatus.COMPLETED:
            if state.remaining_seconds == 0:
                # Time ran out while the manual submit was pending
                state.submission_reason = SubmissionReason.TIMEOUT
            if state.submission_reason is SubmissionReason.TIMEOUT:
                engine._do_confirm_submit()
            elif state.submission_reason is None:
                state.submission_reason = SubmissionReason.MANUAL
        elif state.remaining_seconds == 0:
            engine._expire()

        return engine
