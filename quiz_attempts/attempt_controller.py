"""
Attempt controller for the quiz attempt tracker.
Manages one active quiz attempt per learner, attempt limits, and attempt history.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .attempt_engine import AttemptEngine, AttemptListener
from .attempt_timer import AttemptTimer
from .config_manager import ConfigManager
from .exceptions import IllegalTransition, InvalidAnswer
from .models import (
    AttemptRecord,
    AttemptStatus,
    QuestionType,
    QuizDefinition,
    ScoreResult,
    SubmissionReason,
)
from .question_selector import QuestionSelector
from .quiz_catalog import QuizCatalog


class AttemptControllerError(Exception):
    """Base exception for attempt controller errors."""
    pass


class AttemptConflictError(AttemptControllerError):
    """Raised when a learner starts a quiz while another attempt is running."""
    pass


class AttemptNotFoundError(AttemptControllerError):
    """Raised when operating on an attempt that does not exist."""
    pass


class AttemptLimitReached(AttemptControllerError):
    """Raised when a learner has used every attempt a quiz allows."""

    def __init__(self, quiz_id: str, max_attempts: int):
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts
        super().__init__(f"Attempt limit of {max_attempts} reached for quiz '{quiz_id}'")


HistoryKey = Tuple[int, str]


@dataclass
class OpenAttempt:
    """An unfinished attempt that can be resumed later."""
    quiz: QuizDefinition
    snapshot: Dict[str, Any]
    saved_at: float


class AttemptHistory(AttemptListener):
    """
    Keeps submitted attempt records and resumable snapshots per learner and quiz.

    Engines are registered with track(); the history listens to them and
    records every submission, whatever triggered it.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._records: Dict[HistoryKey, List[AttemptRecord]] = {}
        self._open: Dict[HistoryKey, OpenAttempt] = {}
        self._tracked: Dict[str, Tuple[int, AttemptEngine]] = {}
        self._submission_log: List[AttemptRecord] = []

    def track(self, learner_id: int, engine: AttemptEngine) -> None:
        self._tracked[engine.attempt_id] = (learner_id, engine)
        engine.add_listener(self)

    def save_open(self, learner_id: int, engine: AttemptEngine) -> None:
        """Remember the current state of an unfinished attempt."""
        self._open[(learner_id, engine.quiz.id)] = OpenAttempt(
            quiz=engine.quiz, snapshot=engine.snapshot(), saved_at=time.time()
        )

    def get_open(self, learner_id: int, quiz_id: str) -> Optional[OpenAttempt]:
        return self._open.get((learner_id, quiz_id))

    def discard_open(self, learner_id: int, quiz_id: str) -> bool:
        return self._open.pop((learner_id, quiz_id), None) is not None

    def get_records(self, learner_id: int, quiz_id: str) -> List[AttemptRecord]:
        return list(self._records.get((learner_id, quiz_id), []))

    def attempt_count(self, learner_id: int, quiz_id: str) -> int:
        """Number of submitted attempts."""
        return len(self._records.get((learner_id, quiz_id), []))

    def latest_record(self, learner_id: int, quiz_id: Optional[str] = None) -> Optional[AttemptRecord]:
        """Most recent submission, for one quiz or across all quizzes."""
        for record in reversed(self._submission_log):
            if record.learner_id == learner_id and (quiz_id is None or record.quiz_id == quiz_id):
                return record
        return None

    def best_score(self, learner_id: int, quiz_id: str) -> Optional[ScoreResult]:
        records = self._records.get((learner_id, quiz_id))
        if not records:
            return None
        return max((r.score for r in records), key=lambda s: (s.percent, s.earned_points))

    # --- AttemptListener hooks ---

    def on_answer_saved(self, attempt_id: str, question_id: str, answers: Dict[str, Any]) -> None:
        tracked = self._tracked.get(attempt_id)
        if tracked is not None:
            learner_id, engine = tracked
            self.save_open(learner_id, engine)

    def on_started(self, snapshot: Dict[str, Any]) -> None:
        self.on_answer_saved(snapshot["attempt_id"], "", snapshot["answers"])

    def on_submitted(self, attempt_id: str, score: ScoreResult, reason: SubmissionReason) -> None:
        tracked = self._tracked.pop(attempt_id, None)
        if tracked is None:
            return
        learner_id, engine = tracked
        key = (learner_id, engine.quiz.id)
        record = AttemptRecord(
            attempt_id=attempt_id,
            quiz_id=engine.quiz.id,
            learner_id=learner_id,
            attempt_number=engine.attempt_number,
            score=score,
            submission_reason=reason,
            submitted_at=engine.submitted_at,
            elapsed_ticks=engine.elapsed_ticks,
        )
        self._records.setdefault(key, []).append(record)
        self._submission_log.append(record)
        self._open.pop(key, None)
        self.logger.info(
            f"Recorded attempt {record.attempt_number} of quiz '{record.quiz_id}' "
            f"for learner {learner_id}: {score.percent}%",
            extra={
                'event_type': 'attempt_recorded',
                'attempt_id': attempt_id,
                'learner_id': learner_id,
                'timestamp': time.time()
            }
        )

    def on_torn_down(self, attempt_id: str) -> None:
        self._tracked.pop(attempt_id, None)


@dataclass
class ActiveAttempt:
    """Runtime objects for an attempt a learner is currently taking."""
    engine: AttemptEngine
    timer: AttemptTimer
    channel_id: Optional[int] = None


TickCallback = Callable[[Optional[int]], Awaitable[Any]]
ExpiryCallback = Callable[[Dict[str, Any]], Awaitable[Any]]


class AttemptController:
    """
    Orchestrates quiz attempts for learners.

    Each learner can take at most one attempt at a time. The controller
    prepares the quiz, starts the engine and its tick delivery, and turns
    every failure into a result dictionary with a user-facing message.
    """

    def __init__(
        self,
        catalog: QuizCatalog,
        config_manager: ConfigManager,
        history: Optional[AttemptHistory] = None,
        selector: Optional[QuestionSelector] = None,
        tick_interval: float = 1.0,
    ):
        """
        Initialize the attempt controller.

        Args:
            catalog: Source of quiz definitions
            config_manager: Global attempt settings
            history: Attempt history, a fresh one when omitted
            selector: Question selection and shuffling
            tick_interval: Seconds between ticks delivered to timed attempts
        """
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog
        self.config_manager = config_manager
        self.history = history or AttemptHistory()
        self.selector = selector or QuestionSelector()
        self.tick_interval = tick_interval

        # Active attempts mapped by learner ID
        self._active_attempts: Dict[int, ActiveAttempt] = {}

        self.logger.info("AttemptController initialized")

    # --- lookups ---

    def get_active_attempt(self, learner_id: int) -> Optional[ActiveAttempt]:
        return self._active_attempts.get(learner_id)

    def has_active_attempt(self, learner_id: int) -> bool:
        return learner_id in self._active_attempts

    def _require_attempt(self, learner_id: int) -> ActiveAttempt:
        active = self._active_attempts.get(learner_id)
        if active is None:
            raise AttemptNotFoundError(f"No attempt in progress for learner {learner_id}")
        return active

    def _question_for_number(self, engine: AttemptEngine, question_number: int):
        questions = engine.quiz.questions
        if not isinstance(question_number, int) or not 1 <= question_number <= len(questions):
            raise InvalidAnswer(
                str(question_number), f"question number must be between 1 and {len(questions)}"
            )
        return questions[question_number - 1]

    def get_available_quizzes(self) -> List[str]:
        return self.catalog.get_available_quizzes()

    def list_quizzes(self, learner_id: int) -> List[Dict[str, Any]]:
        """
        Describe every catalog quiz from the learner's point of view.

        Returns:
            One dictionary per quiz with attempt usage and best score
        """
        overview = []
        for quiz_id in self.catalog.get_available_quizzes():
            quiz = self.catalog.get_quiz(quiz_id)
            best = self.history.best_score(learner_id, quiz_id)
            overview.append({
                'quiz_id': quiz_id,
                'title': quiz.title,
                'question_count': quiz.question_count,
                'time_limit_seconds': quiz.time_limit_seconds,
                'max_attempts': quiz.max_attempts,
                'attempts_used': self.history.attempt_count(learner_id, quiz_id),
                'best_percent': best.percent if best else None,
                'has_open_attempt': self.history.get_open(learner_id, quiz_id) is not None,
            })
        return overview

    # --- lifecycle ---

    async def start_attempt(
        self,
        learner_id: int,
        quiz_id: str,
        channel_id: Optional[int] = None,
        tick_callback: Optional[TickCallback] = None,
        expiry_callback: Optional[ExpiryCallback] = None,
    ) -> Dict[str, Any]:
        """
        Start a quiz attempt, or resume the learner's unfinished one.

        Args:
            learner_id: Learner identifier
            quiz_id: Quiz to take
            channel_id: Channel the attempt was started from
            tick_callback: Awaited with the remaining seconds after each tick
            expiry_callback: Awaited with the result dictionary when time runs out

        Returns:
            Dictionary with operation results and attempt progress
        """
        try:
            active = self._active_attempts.get(learner_id)
            if active is not None:
                raise AttemptConflictError(
                    f"Learner {learner_id} already has an attempt for quiz '{active.engine.quiz.id}'"
                )

            quiz = self.catalog.get_quiz(quiz_id)
            if quiz is None:
                available = self.catalog.get_available_quizzes()
                if not available:
                    raise ValueError("No quiz files available. Please add quiz files to the quizzes directory.")
                raise ValueError(f"Quiz '{quiz_id}' not found. Available quizzes: {', '.join(available)}")

            if self.history.get_open(learner_id, quiz_id) is not None:
                return await self.resume_attempt(
                    learner_id, quiz_id, channel_id=channel_id,
                    tick_callback=tick_callback, expiry_callback=expiry_callback,
                )

            used = self.history.attempt_count(learner_id, quiz_id)
            if quiz.max_attempts is not None and used >= quiz.max_attempts:
                raise AttemptLimitReached(quiz_id, quiz.max_attempts)

            prepared = self.selector.prepare_quiz(quiz, self.config_manager.get_attempt_settings())
            engine = AttemptEngine(prepared, attempt_number=used + 1)
            self.history.track(learner_id, engine)
            engine.start()

            self._activate(learner_id, engine, channel_id, tick_callback, expiry_callback)

            self.logger.info(
                f"Started attempt {engine.attempt_number} of quiz '{quiz_id}' for learner {learner_id}",
                extra={
                    'event_type': 'attempt_started',
                    'learner_id': learner_id,
                    'attempt_id': engine.attempt_id,
                    'timestamp': time.time()
                }
            )
            return {
                'success': True,
                'resumed': False,
                'message': f"Quiz '{quiz.title}' started with {prepared.question_count} questions",
                'attempt_info': self.get_attempt_progress(learner_id)
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "start_attempt")

    async def resume_attempt(
        self,
        learner_id: int,
        quiz_id: str,
        elapsed_seconds: int = 0,
        channel_id: Optional[int] = None,
        tick_callback: Optional[TickCallback] = None,
        expiry_callback: Optional[ExpiryCallback] = None,
    ) -> Dict[str, Any]:
        """
        Resume a suspended attempt from its saved snapshot.

        Time spent away only counts against the limit when the caller passes
        it as elapsed_seconds.

        Returns:
            Dictionary with operation results; 'expired' is True when the
            correction used up the remaining time and the attempt was submitted
        """
        try:
            if learner_id in self._active_attempts:
                raise AttemptConflictError(f"Learner {learner_id} already has an attempt in progress")

            open_attempt = self.history.get_open(learner_id, quiz_id)
            if open_attempt is None:
                raise AttemptNotFoundError(f"No suspended attempt of quiz '{quiz_id}' for learner {learner_id}")

            engine = AttemptEngine.resume(
                open_attempt.quiz, open_attempt.snapshot, elapsed_seconds=elapsed_seconds
            )
            self.history.track(learner_id, engine)

            if engine.status is AttemptStatus.SUBMITTED:
                # Tracking happened after the engine submitted, record it directly
                self.history.on_submitted(engine.attempt_id, engine.score, engine.submission_reason)
                return {
                    'success': True,
                    'resumed': True,
                    'expired': True,
                    'message': "Time ran out while the attempt was suspended",
                    'result': self._build_result(learner_id, engine),
                }

            self._activate(learner_id, engine, channel_id, tick_callback, expiry_callback)
            self.logger.info(
                f"Resumed attempt {engine.attempt_id} of quiz '{quiz_id}' for learner {learner_id}",
                extra={
                    'event_type': 'attempt_resumed',
                    'learner_id': learner_id,
                    'attempt_id': engine.attempt_id,
                    'timestamp': time.time()
                }
            )
            return {
                'success': True,
                'resumed': True,
                'expired': False,
                'message': f"Resumed quiz '{engine.quiz.title}'",
                'attempt_info': self.get_attempt_progress(learner_id)
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "resume_attempt")

    def _activate(
        self,
        learner_id: int,
        engine: AttemptEngine,
        channel_id: Optional[int],
        tick_callback: Optional[TickCallback],
        expiry_callback: Optional[ExpiryCallback],
    ) -> None:
        async def on_expired(score: ScoreResult) -> None:
            result = self._finish(learner_id, engine)
            if expiry_callback is not None:
                await expiry_callback(result)

        timer = AttemptTimer(
            engine,
            interval=self.tick_interval,
            tick_callback=tick_callback,
            expiry_callback=on_expired,
        )
        self._active_attempts[learner_id] = ActiveAttempt(engine=engine, timer=timer, channel_id=channel_id)

        if engine.status is AttemptStatus.IN_PROGRESS:
            timer.start()

    def _finish(self, learner_id: int, engine: AttemptEngine) -> Dict[str, Any]:
        active = self._active_attempts.get(learner_id)
        if active is not None and active.engine is engine:
            del self._active_attempts[learner_id]
        return self._build_result(learner_id, engine)

    def _build_result(self, learner_id: int, engine: AttemptEngine) -> Dict[str, Any]:
        score = engine.score
        best = self.history.best_score(learner_id, engine.quiz.id)
        return {
            'quiz_id': engine.quiz.id,
            'quiz_title': engine.quiz.title,
            'attempt_id': engine.attempt_id,
            'attempt_number': engine.attempt_number,
            'max_attempts': engine.quiz.max_attempts,
            'submission_reason': engine.submission_reason.value,
            'elapsed_seconds': engine.elapsed_ticks,
            'score': score,
            'best_percent': best.percent if best else score.percent,
        }

    def answer_question(self, learner_id: int, question_number: int, answer: Any) -> Dict[str, Any]:
        """
        Record an answer for a question of the learner's attempt.

        Args:
            learner_id: Learner identifier
            question_number: 1-based position of the question in the attempt
            answer: Raw answer; for multi-choice a comma separated string is split

        Returns:
            Dictionary with operation results and answer progress
        """
        try:
            engine = self._require_attempt(learner_id).engine
            question = self._question_for_number(engine, question_number)

            if question.type is QuestionType.MULTI_CHOICE and isinstance(answer, str):
                answer = [part.strip() for part in answer.split(",") if part.strip()]
            elif question.type is not QuestionType.FREE_TEXT and isinstance(answer, str):
                answer = answer.strip()

            engine.set_answer(question.id, answer)
            answered = len(engine.answers)
            return {
                'success': True,
                'message': f"Answer saved for question {question_number}",
                'answered_count': answered,
                'total_questions': engine.quiz.question_count
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "answer_question")

    def clear_answer(self, learner_id: int, question_number: int) -> Dict[str, Any]:
        try:
            engine = self._require_attempt(learner_id).engine
            question = self._question_for_number(engine, question_number)
            cleared = engine.clear_answer(question.id)
            return {
                'success': True,
                'cleared': cleared,
                'message': (
                    f"Answer cleared for question {question_number}" if cleared
                    else f"Question {question_number} had no answer"
                )
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "clear_answer")

    def get_question(self, learner_id: int, question_number: int) -> Dict[str, Any]:
        """
        Get a question of the learner's attempt without its answer key.

        Returns:
            Dictionary with the question view and the learner's current answer
        """
        try:
            engine = self._require_attempt(learner_id).engine
            question = self._question_for_number(engine, question_number)
            current = engine.answers.get(question.id)
            return {
                'success': True,
                'number': question_number,
                'total_questions': engine.quiz.question_count,
                'question': question.student_view(),
                'current_answer': current.to_raw() if current is not None else None,
                'remaining_seconds': engine.remaining_seconds
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "get_question")

    def request_submit(self, learner_id: int) -> Dict[str, Any]:
        """
        Ask to submit the attempt. Tick delivery stops until confirm or cancel.

        Returns:
            Dictionary listing the unanswered question numbers
        """
        try:
            engine = self._require_attempt(learner_id).engine
            engine.request_submit()

            unanswered_ids = set(engine.unanswered_question_ids())
            unanswered = [
                number for number, question in enumerate(engine.quiz.questions, start=1)
                if question.id in unanswered_ids
            ]
            if unanswered:
                message = (
                    f"{len(unanswered)} question{'s are' if len(unanswered) != 1 else ' is'} unanswered. "
                    f"Use /confirm to submit anyway or /cancel to keep answering."
                )
            else:
                message = "All questions answered. Use /confirm to submit or /cancel to keep answering."

            return {
                'success': True,
                'message': message,
                'unanswered': unanswered
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "request_submit")

    def confirm_submit(self, learner_id: int) -> Dict[str, Any]:
        """
        Finalize and score the learner's attempt.

        Returns:
            Dictionary with the attempt result
        """
        try:
            engine = self._require_attempt(learner_id).engine
            score = engine.confirm_submit()
            result = self._finish(learner_id, engine)
            return {
                'success': True,
                'message': f"Attempt submitted: {score.percent}%",
                'result': result
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "confirm_submit")

    async def cancel_submit(self, learner_id: int) -> Dict[str, Any]:
        """
        Return to answering after a submit request and restart tick delivery.

        Returns:
            Dictionary with operation results; 'expired' is True when no time
            was left and the attempt was submitted instead
        """
        try:
            active = self._require_attempt(learner_id)
            engine = active.engine
            engine.cancel_submit()

            if engine.status is AttemptStatus.SUBMITTED:
                return {
                    'success': True,
                    'expired': True,
                    'message': "Time ran out, the attempt was submitted",
                    'result': self._finish(learner_id, engine)
                }

            active.timer.start()
            return {
                'success': True,
                'expired': False,
                'message': "Submission cancelled, you can keep answering",
                'attempt_info': self.get_attempt_progress(learner_id)
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "cancel_submit")

    async def suspend_attempt(self, learner_id: int) -> Dict[str, Any]:
        """
        Stop an attempt and keep its snapshot so it can be resumed later.

        An attempt waiting for submit confirmation is resumed in that state.

        Returns:
            Dictionary with operation results
        """
        try:
            active = self._require_attempt(learner_id)
            engine = active.engine
            if engine.status not in (AttemptStatus.IN_PROGRESS, AttemptStatus.COMPLETED):
                raise IllegalTransition("suspend", engine.status)

            self.history.save_open(learner_id, engine)
            engine.teardown()
            await active.timer.wait()
            del self._active_attempts[learner_id]

            self.logger.info(
                f"Suspended attempt {engine.attempt_id} for learner {learner_id}",
                extra={
                    'event_type': 'attempt_suspended',
                    'learner_id': learner_id,
                    'attempt_id': engine.attempt_id,
                    'remaining': engine.remaining_seconds,
                    'timestamp': time.time()
                }
            )
            return {
                'success': True,
                'message': f"Attempt paused. Use /take {engine.quiz.id} to continue."
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "suspend_attempt")

    async def abandon_attempt(self, learner_id: int) -> Dict[str, Any]:
        """
        Discard the learner's attempt without scoring it.

        Returns:
            Dictionary with operation results
        """
        try:
            active = self._active_attempts.get(learner_id)
            if active is None:
                return {
                    'success': False,
                    'message': "No attempt to abandon",
                    'user_message': "ℹ️ You have no quiz attempt in progress"
                }

            engine = active.engine
            engine.teardown()
            await active.timer.wait()
            del self._active_attempts[learner_id]
            self.history.discard_open(learner_id, engine.quiz.id)

            self.logger.info(
                f"Abandoned attempt {engine.attempt_id} for learner {learner_id}",
                extra={
                    'event_type': 'attempt_abandoned',
                    'learner_id': learner_id,
                    'attempt_id': engine.attempt_id,
                    'timestamp': time.time()
                }
            )
            return {
                'success': True,
                'message': f"Attempt of '{engine.quiz.title}' abandoned"
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "abandon_attempt")

    async def shutdown(self) -> int:
        """
        Suspend every running attempt so none is ticked after shutdown.

        Returns:
            Number of attempts stopped
        """
        learners = list(self._active_attempts)
        for learner_id in learners:
            result = await self.suspend_attempt(learner_id)
            if not result['success']:
                await self.abandon_attempt(learner_id)
        if learners:
            self.logger.info(f"Stopped {len(learners)} active attempts on shutdown")
        return len(learners)

    # --- reporting ---

    def get_attempt_progress(self, learner_id: int) -> Optional[Dict[str, Any]]:
        """
        Get progress information for the learner's active attempt.

        Returns:
            Dictionary with progress info, None if no active attempt
        """
        active = self._active_attempts.get(learner_id)
        if active is None:
            return None

        engine = active.engine
        return {
            'quiz_id': engine.quiz.id,
            'quiz_title': engine.quiz.title,
            'attempt_id': engine.attempt_id,
            'attempt_number': engine.attempt_number,
            'status': engine.status.value,
            'answered_count': len(engine.answers),
            'total_questions': engine.quiz.question_count,
            'remaining_seconds': engine.remaining_seconds,
            'elapsed_seconds': engine.elapsed_ticks,
            'started_at': engine.started_at
        }

    def get_attempt_status_summary(self, learner_id: int) -> str:
        """
        Get a human-readable summary of the learner's attempt.

        Returns:
            Formatted string describing the attempt status
        """
        info = self.get_attempt_progress(learner_id)
        if info is None:
            return "No quiz attempt in progress."

        status_parts = [
            f"Quiz: {info['quiz_title']}",
            f"Attempt: {info['attempt_number']}",
            f"Answered: {info['answered_count']}/{info['total_questions']}",
        ]

        if info['status'] == AttemptStatus.COMPLETED.value:
            status_parts.append("Status: Waiting for confirmation")
        else:
            status_parts.append("Status: In progress")

        remaining = info['remaining_seconds']
        if remaining is not None:
            status_parts.append(f"Time left: {remaining // 60}m {remaining % 60}s")

        elapsed = info['elapsed_seconds']
        status_parts.append(f"Time spent: {elapsed // 60}m {elapsed % 60}s")

        return " | ".join(status_parts)

    def get_results(self, learner_id: int, quiz_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get the learner's latest submitted result.

        The per-question breakdown is included only when the quiz shows
        correct answers.

        Returns:
            Dictionary with the latest record, best score and optional breakdown
        """
        try:
            record = self.history.latest_record(learner_id, quiz_id)
            if record is None:
                raise AttemptNotFoundError(f"No submitted attempts for learner {learner_id}")

            quiz = self.catalog.get_quiz(record.quiz_id)
            breakdown = None
            if quiz is not None and quiz.show_correct_answers:
                breakdown = []
                for question_result in record.score.results:
                    question = quiz.get_question(question_result.question_id)
                    breakdown.append({
                        'question_id': question_result.question_id,
                        'text': question.text if question else "",
                        'is_correct': question_result.is_correct,
                        'answered': question_result.answered,
                        'points_earned': question_result.points_earned,
                        'points_possible': question_result.points_possible,
                        'requires_manual_grading': question_result.requires_manual_grading,
                        'correct_answer': self._describe_correct_answer(question) if question else None,
                        'explanation': question.explanation if question else None,
                    })

            best = self.history.best_score(learner_id, record.quiz_id)
            return {
                'success': True,
                'record': record,
                'quiz_title': quiz.title if quiz else record.quiz_id,
                'attempts_used': self.history.attempt_count(learner_id, record.quiz_id),
                'max_attempts': quiz.max_attempts if quiz else None,
                'best_percent': best.percent if best else None,
                'breakdown': breakdown
            }

        except Exception as e:
            return self._handle_error(learner_id, e, "get_results")

    @staticmethod
    def _describe_correct_answer(question) -> Optional[str]:
        if question.type is QuestionType.FREE_TEXT:
            return question.reference_answer
        correct = [option.text for option in question.options if option.is_correct]
        return ", ".join(correct)

    # --- error handling ---

    def _handle_error(self, learner_id: int, error: Exception, operation: str) -> Dict[str, Any]:
        """
        Log an error and turn it into a result dictionary.

        Expected errors (bad input, illegal transitions, missing attempts)
        are logged as warnings; anything else is logged with its traceback.
        """
        error_msg = f"Error in {operation} for learner {learner_id}: {error}"
        if isinstance(error, (AttemptControllerError, InvalidAnswer, IllegalTransition, ValueError)):
            self.logger.warning(error_msg)
        else:
            self.logger.error(error_msg, exc_info=True)

        return {
            'success': False,
            'error': str(error),
            'operation': operation,
            'user_message': self._get_user_friendly_error_message(error, operation)
        }

    def _get_user_friendly_error_message(self, error: Exception, operation: str) -> str:
        if isinstance(error, AttemptConflictError):
            return "❌ You already have a quiz attempt in progress. Finish it or use `/abandon` first."

        elif isinstance(error, AttemptNotFoundError):
            if operation == "get_results":
                return "ℹ️ You have not submitted any quiz attempts yet."
            return "❌ You have no quiz attempt in progress. Start one with `/take`."

        elif isinstance(error, AttemptLimitReached):
            return f"❌ You have used all {error.max_attempts} attempts for this quiz."

        elif isinstance(error, InvalidAnswer):
            return f"❌ Answer not accepted: {error.reason}"

        elif isinstance(error, IllegalTransition):
            if error.status is AttemptStatus.COMPLETED:
                return "❌ Your attempt is waiting for confirmation. Use `/confirm` or `/cancel`."
            if error.status is AttemptStatus.SUBMITTED:
                return "❌ This attempt has already been submitted. Use `/results` to see your score."
            if error.status is AttemptStatus.IN_PROGRESS and error.event == "confirm_submit":
                return "❌ Use `/submit` before confirming."
            if error.event == "cancel_submit":
                return "❌ There is no submission to cancel."
            return "❌ That action is not available right now."

        elif "not found" in str(error).lower() or "no quiz files" in str(error).lower():
            return f"❌ {error}"

        else:
            return f"❌ An unexpected error occurred during {operation}. Please try again."
