# fantasy_cricket/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class BettingError(RuntimeError):
    """
    Base failure raised by the engine. ``reason`` is a stable upper-case code
    (e.g. ``SUBMISSIONS_LOCKED``) that callers can map to a precise message.
    """
    status_code = 400

    def __init__(self, reason: str, message: Optional[str] = None, **details: Any):
        self.reason = reason
        self.message = message or reason
        self.details: Dict[str, Any] = details
        super().__init__(f"{reason}: {self.message}" if message else reason)

    def to_detail(self) -> Dict[str, Any]:
        return {"reason": self.reason, "message": self.message, **self.details}


class ValidationFailed(BettingError):
    """Bad or missing input; rejected before any mutation."""
    status_code = 422


class StateConflict(BettingError):
    """Request is well formed but the current state does not allow it."""
    status_code = 409


class NotFound(BettingError):
    status_code = 404


# Named reasons
MISSING_FIELD = "MISSING_FIELD"
MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
INVALID_QUESTION = "INVALID_QUESTION"
INVALID_OPTION = "INVALID_OPTION"
INVALID_ANSWER = "INVALID_ANSWER"
INVALID_SLOT = "INVALID_SLOT"
INVALID_OVERS = "INVALID_OVERS"
SUBMISSIONS_LOCKED = "SUBMISSIONS_LOCKED"
EMPTY_SUBMISSION = "EMPTY_SUBMISSION"
INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
BETTING_CLOSED = "BETTING_CLOSED"
LOCK_TIME_PASSED = "LOCK_TIME_PASSED"
BET_ALREADY_LOCKED = "BET_ALREADY_LOCKED"
MATCH_SCORED = "MATCH_SCORED"
UNMATCHED_PLAYERS = "UNMATCHED_PLAYERS"
RESULT_MISSING = "RESULT_MISSING"
NO_QUESTIONS = "NO_QUESTIONS"
INVALID_COST = "INVALID_COST"
