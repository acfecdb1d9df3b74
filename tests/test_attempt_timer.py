"""
Unit tests for tick delivery to attempt engines.
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from quiz_attempts.attempt_engine import AttemptEngine
from quiz_attempts.attempt_timer import AttemptTimer, TimerLifecycleLogger
from quiz_attempts.models import AttemptStatus, SubmissionReason
from tests.test_fixtures import TestFixtures


class TestAttemptTimer(unittest.IsolatedAsyncioTestCase):
    """Timer behaviour against real engines with a very short interval."""

    def _started_engine(self, time_limit=None):
        quiz = TestFixtures.timed_quiz(time_limit) if time_limit else TestFixtures.two_question_quiz()
        engine = AttemptEngine(quiz)
        engine.start()
        return engine

    async def test_timer_expires_attempt(self):
        engine = self._started_engine(time_limit=3)
        expiry_callback = AsyncMock()
        timer = AttemptTimer(engine, interval=0.001, expiry_callback=expiry_callback)

        timer.start()
        await asyncio.wait_for(timer.wait(), timeout=5.0)

        self.assertEqual(engine.status, AttemptStatus.SUBMITTED)
        self.assertEqual(engine.submission_reason, SubmissionReason.TIMEOUT)
        self.assertEqual(timer.ticks_delivered, 3)
        expiry_callback.assert_awaited_once_with(engine.score)

    async def test_tick_callback_receives_remaining_seconds(self):
        engine = self._started_engine(time_limit=3)
        tick_callback = AsyncMock()
        timer = AttemptTimer(engine, interval=0.001, tick_callback=tick_callback)

        timer.start()
        await asyncio.wait_for(timer.wait(), timeout=5.0)

        # No tick callback once the attempt has been submitted
        self.assertEqual([c.args[0] for c in tick_callback.await_args_list], [2, 1])

    async def test_request_submit_stops_ticks(self):
        engine = self._started_engine(time_limit=600)
        expiry_callback = AsyncMock()
        timer = AttemptTimer(engine, interval=0.001, expiry_callback=expiry_callback)

        timer.start()
        await asyncio.sleep(0.02)
        engine.request_submit()
        await timer.wait()
        ticks = timer.ticks_delivered
        await asyncio.sleep(0.02)

        self.assertFalse(timer.is_running)
        self.assertTrue(timer.is_cancelled)
        self.assertEqual(timer.ticks_delivered, ticks)
        self.assertEqual(engine.status, AttemptStatus.COMPLETED)
        expiry_callback.assert_not_awaited()

    async def test_teardown_stops_ticks(self):
        engine = self._started_engine(time_limit=600)
        timer = AttemptTimer(engine, interval=0.001)

        timer.start()
        await asyncio.sleep(0.01)
        engine.teardown()
        await timer.wait()
        remaining = engine.remaining_seconds
        await asyncio.sleep(0.01)

        self.assertFalse(timer.is_running)
        self.assertEqual(engine.remaining_seconds, remaining)

    async def test_restart_after_cancel_submit(self):
        engine = self._started_engine(time_limit=5)
        timer = AttemptTimer(engine, interval=0.001)

        timer.start()
        engine.request_submit()
        engine.cancel_submit()
        timer.start()
        self.assertTrue(timer.is_running)

        await asyncio.wait_for(timer.wait(), timeout=5.0)
        self.assertEqual(engine.status, AttemptStatus.SUBMITTED)
        self.assertEqual(engine.remaining_seconds, 0)

    async def test_untimed_attempt_counts_elapsed_ticks(self):
        engine = self._started_engine()
        timer = AttemptTimer(engine, interval=0.001)

        timer.start()
        await asyncio.sleep(0.02)
        timer.cancel()
        await timer.wait()

        self.assertGreater(engine.elapsed_ticks, 0)
        self.assertEqual(engine.elapsed_ticks, timer.ticks_delivered)
        self.assertEqual(engine.status, AttemptStatus.IN_PROGRESS)

    async def test_start_requires_in_progress_attempt(self):
        engine = AttemptEngine(TestFixtures.timed_quiz(10))
        timer = AttemptTimer(engine, interval=0.001)
        with self.assertRaises(RuntimeError):
            timer.start()

    async def test_start_twice_returns_same_task(self):
        engine = self._started_engine(time_limit=600)
        timer = AttemptTimer(engine, interval=0.001)

        first = timer.start()
        second = timer.start()

        self.assertIs(first, second)
        timer.cancel()
        await timer.wait()

    async def test_wait_without_start(self):
        engine = self._started_engine(time_limit=10)
        timer = AttemptTimer(engine)
        await timer.wait()
        self.assertEqual(timer.ticks_delivered, 0)

    async def test_callback_error_is_logged(self):
        engine = self._started_engine(time_limit=10)
        timer = AttemptTimer(engine, interval=0.001, tick_callback=AsyncMock(side_effect=RuntimeError("boom")))

        with patch.object(TimerLifecycleLogger, 'log_timer_error') as log_error:
            timer.start()
            with self.assertRaises(RuntimeError):
                await timer.wait()

        log_error.assert_called_once()
        self.assertEqual(log_error.call_args.args[1], "tick_delivery_error")


class TestTimerLifecycleLogger(unittest.TestCase):
    """Structured lifecycle logging."""

    def test_stop_event_is_logged_with_type(self):
        with self.assertLogs("quiz_attempts.attempt_timer", level="INFO") as logs:
            TimerLifecycleLogger.log_timer_stop("attempt-1", "expired", 30)

        self.assertIn("STOP (expired)", logs.output[0])
        self.assertEqual(logs.records[0].event_type, 'timer_stop')

    def test_tick_logging_is_throttled(self):
        with patch('quiz_attempts.attempt_timer.logger') as mock_logger:
            TimerLifecycleLogger.log_tick("attempt-1", 59)
            mock_logger.debug.assert_not_called()
            TimerLifecycleLogger.log_tick("attempt-1", 60)
            TimerLifecycleLogger.log_tick("attempt-1", 3)
            self.assertEqual(mock_logger.debug.call_count, 2)


if __name__ == '__main__':
    unittest.main()
