"""
Tick delivery for quiz attempts.
Runs an asyncio task that feeds one tick per interval into an attempt engine.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .attempt_engine import AttemptEngine, AttemptListener
from .models import AttemptStatus, ScoreResult, SubmissionReason

# Set up logger for timer operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for tick delivery lifecycle events."""

    @staticmethod
    def log_timer_start(attempt_id: str, remaining: Optional[int], interval: float) -> None:
        logger.info(
            f"Timer lifecycle: START - Attempt {attempt_id}, remaining {remaining}, interval {interval}s",
            extra={
                'event_type': 'timer_start',
                'attempt_id': attempt_id,
                'remaining': remaining,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_tick(attempt_id: str, remaining: Optional[int]) -> None:
        """Log ticks at intervals to avoid spam."""
        if remaining is None or remaining % 60 == 0 or remaining <= 5:
            logger.debug(
                f"Timer lifecycle: TICK - Attempt {attempt_id}, {remaining} seconds remaining",
                extra={
                    'event_type': 'timer_tick',
                    'attempt_id': attempt_id,
                    'remaining': remaining,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_stop(attempt_id: str, stop_type: str, ticks_delivered: int) -> None:
        """Log how the timer ended: expired, status_changed, cancelled or torn_down."""
        logger.info(
            f"Timer lifecycle: STOP ({stop_type}) - Attempt {attempt_id}, {ticks_delivered} ticks delivered",
            extra={
                'event_type': 'timer_stop',
                'attempt_id': attempt_id,
                'stop_type': stop_type,
                'ticks_delivered': ticks_delivered,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(attempt_id: str, error_type: str, error_message: str, operation: str) -> None:
        logger.error(
            f"Timer lifecycle: ERROR - Attempt {attempt_id}, Type: {error_type}, "
            f"Operation: {operation}, Message: {error_message}",
            extra={
                'event_type': 'timer_error',
                'attempt_id': attempt_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class AttemptTimer(AttemptListener):
    """
    Delivers ticks to an attempt engine while it is in progress.

    The timer registers itself as a listener of the engine and stops the
    moment the attempt leaves IN_PROGRESS or is torn down. It never ticks a
    discarded attempt.
    """

    def __init__(
        self,
        engine: AttemptEngine,
        interval: float = 1.0,
        tick_callback: Optional[Callable[[Optional[int]], Awaitable[Any]]] = None,
        expiry_callback: Optional[Callable[[ScoreResult], Awaitable[Any]]] = None,
    ):
        """
        Initialize the timer.

        Args:
            engine: Attempt to drive
            interval: Seconds between ticks
            tick_callback: Awaited after each tick with the remaining seconds
            expiry_callback: Awaited once with the score when time runs out
        """
        self._engine = engine
        self._interval = interval
        self._tick_callback = tick_callback
        self._expiry_callback = expiry_callback
        self._task: Optional[asyncio.Task] = None
        self._is_cancelled = False
        self._ticks_delivered = 0
        self._stop_type: Optional[str] = None
        self._run_id = 0

        engine.add_listener(self)

    def start(self) -> asyncio.Task:
        """
        Start delivering ticks. Must be called from a running event loop.

        Returns:
            The background task running the countdown

        Raises:
            RuntimeError: If the attempt is not in progress
        """
        if self.is_running:
            return self._task
        if self._engine.is_torn_down or self._engine.status is not AttemptStatus.IN_PROGRESS:
            raise RuntimeError(
                f"Cannot start timer for attempt {self._engine.attempt_id} "
                f"in state {self._engine.status.value}"
            )

        self._is_cancelled = False
        self._stop_type = None
        self._run_id += 1
        TimerLifecycleLogger.log_timer_start(
            self._engine.attempt_id, self._engine.remaining_seconds, self._interval
        )
        self._task = asyncio.create_task(self._run(self._run_id))
        return self._task

    async def _run(self, run_id: int) -> None:
        attempt_id = self._engine.attempt_id
        try:
            while self._should_tick(run_id):
                await asyncio.sleep(self._interval)
                if not self._should_tick(run_id):
                    break

                self._engine.tick()
                self._ticks_delivered += 1
                remaining = self._engine.remaining_seconds
                TimerLifecycleLogger.log_tick(attempt_id, remaining)

                if self._tick_callback is not None and self._engine.status is AttemptStatus.IN_PROGRESS:
                    await self._tick_callback(remaining)

            if run_id != self._run_id:
                TimerLifecycleLogger.log_timer_stop(attempt_id, "superseded", self._ticks_delivered)
            elif self._has_expired():
                self._stop_type = "expired"
                TimerLifecycleLogger.log_timer_stop(attempt_id, "expired", self._ticks_delivered)
                if self._expiry_callback is not None:
                    await self._expiry_callback(self._engine.score)
            else:
                TimerLifecycleLogger.log_timer_stop(
                    attempt_id, self._stop_type or "status_changed", self._ticks_delivered
                )

        except asyncio.CancelledError:
            TimerLifecycleLogger.log_timer_stop(attempt_id, "cancelled", self._ticks_delivered)
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(attempt_id, "tick_delivery_error", str(e), "run")
            raise

    def _should_tick(self, run_id: int) -> bool:
        # A restarted timer supersedes any run still winding down
        return (
            run_id == self._run_id
            and not self._is_cancelled
            and not self._engine.is_torn_down
            and self._engine.status is AttemptStatus.IN_PROGRESS
        )

    def _has_expired(self) -> bool:
        return (
            self._engine.status is AttemptStatus.SUBMITTED
            and self._engine.submission_reason is SubmissionReason.TIMEOUT
        )

    def cancel(self, reason: str = "cancelled") -> None:
        """Stop delivering ticks."""
        self._is_cancelled = True
        if self._stop_type is None:
            self._stop_type = reason

        if self._task is None or self._task.done():
            return

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None

        # A tick that expires the attempt cancels the timer from inside its own task;
        # the loop exits on the flag instead so the expiry callback still runs.
        if self._task is not current:
            logger.debug(f"Cancelling timer task for attempt {self._engine.attempt_id}")
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the timer task to finish, swallowing its cancellation."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    # --- AttemptListener hooks ---

    def on_status_changed(self, attempt_id: str, old_status: AttemptStatus, new_status: AttemptStatus) -> None:
        if new_status is not AttemptStatus.IN_PROGRESS:
            self.cancel("status_changed")

    def on_torn_down(self, attempt_id: str) -> None:
        self.cancel("torn_down")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._is_cancelled

    @property
    def is_cancelled(self) -> bool:
        return self._is_cancelled

    @property
    def ticks_delivered(self) -> int:
        return self._ticks_delivered
