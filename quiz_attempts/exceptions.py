"""
Exceptions raised by the quiz attempt engine.
"""
from typing import Optional

from .models import AttemptStatus


class AttemptEngineError(Exception):
    """Base exception for attempt engine errors."""
    pass


class InvalidAnswer(AttemptEngineError):
    """Raised when an answer does not fit its question; the attempt is left unchanged."""

    def __init__(self, question_id: str, reason: str):
        self.question_id = question_id
        self.reason = reason
        super().__init__(f"Invalid answer for question '{question_id}': {reason}")


class IllegalTransition(AttemptEngineError):
    """Raised when an event is not defined for the attempt's current state."""

    def __init__(self, event: str, status: AttemptStatus, detail: Optional[str] = None):
        self.event = event
        self.status = status
        self.detail = detail
        message = f"Event '{event}' is not allowed while attempt is {status.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
