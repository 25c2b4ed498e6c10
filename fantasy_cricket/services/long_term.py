# fantasy_cricket/services/long_term.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.config import STARTING_BALANCE
from ..core.errors import (
    EMPTY_SUBMISSION,
    INSUFFICIENT_POINTS,
    INVALID_ANSWER,
    INVALID_COST,
    MISSING_FIELD,
    SUBMISSIONS_LOCKED,
    StateConflict,
    ValidationFailed,
)
from ..domain.models import (
    AuditEntry,
    LedgerTransaction,
    LongTermConfig,
    LongTermResults,
    LongTermScore,
    LongTermSubmission,
    PointsLedgerEntry,
)

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]

LONG_TERM_EDIT = "LONG_TERM_EDIT"
EDIT_REASON = "Long-term bet edit after reopen"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# -------------------------------
# Points ledger
# -------------------------------
class PointsLedger:
    """Per-user spendable balance. Every balance change writes a transaction row."""

    def __init__(self, starting_balance: int = STARTING_BALANCE, clock: Clock = utc_now):
        self._starting = starting_balance
        self._clock = clock
        self._entries: Dict[str, PointsLedgerEntry] = {}

    def reset(self) -> None:
        self._entries.clear()

    def _entry(self, user_id: str) -> PointsLedgerEntry:
        entry = self._entries.get(user_id)
        if entry is None:
            entry = PointsLedgerEntry(user_id=user_id, balance=self._starting)
            self._entries[user_id] = entry
        return entry

    def balance(self, user_id: str) -> int:
        return self._entry(user_id).balance

    def entry(self, user_id: str) -> PointsLedgerEntry:
        return self._entry(user_id).model_copy(deep=True)

    def transactions(self, user_id: str) -> List[LedgerTransaction]:
        return list(self._entry(user_id).transactions)

    def set_balance(self, user_id: str, balance: int) -> None:
        """Seed a balance without history (imports, tests)."""
        self._entries[user_id] = PointsLedgerEntry(user_id=user_id, balance=balance)

    def prepare_deduct(self, user_id: str, amount: int, reason: str) -> PointsLedgerEntry:
        """
        Build the entry a deduction would produce without applying it.
        Raises INSUFFICIENT_POINTS when the balance would go negative.
        """
        if amount < 0:
            raise ValueError("amount must be non-negative")
        entry = self._entry(user_id)
        if entry.balance < amount:
            raise StateConflict(
                INSUFFICIENT_POINTS,
                f"Need {amount} points, have {entry.balance}",
                required=amount,
                balance=entry.balance,
            )
        after = entry.balance - amount
        tx = LedgerTransaction(ts=self._clock(), type="DEDUCT", amount=amount, reason=reason, balance_after=after)
        return PointsLedgerEntry(user_id=user_id, balance=after, transactions=[*entry.transactions, tx])

    def commit(self, entry: PointsLedgerEntry) -> None:
        self._entries[entry.user_id] = entry

    def deduct(self, user_id: str, amount: int, reason: str) -> int:
        entry = self.prepare_deduct(user_id, amount, reason)
        self.commit(entry)
        return entry.balance

    def add(self, user_id: str, amount: int, reason: str) -> int:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        entry = self._entry(user_id)
        after = entry.balance + amount
        tx = LedgerTransaction(ts=self._clock(), type="ADD", amount=amount, reason=reason, balance_after=after)
        self.commit(PointsLedgerEntry(user_id=user_id, balance=after, transactions=[*entry.transactions, tx]))
        return after


# -------------------------------
# Audit log
# -------------------------------
class AuditLog:
    """Append-only; entries are frozen and reads return copies of the list."""

    def __init__(self):
        self._entries: List[AuditEntry] = []

    def append(self, entry: AuditEntry) -> AuditEntry:
        self._entries.append(entry)
        return entry

    def entries(self, user_id: Optional[str] = None) -> List[AuditEntry]:
        if user_id:
            return [e for e in self._entries if e.user_id == user_id]
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# -------------------------------
# Long-term bets
# -------------------------------
class LongTermLedger:
    """
    Season-long predictions for one event.

    OPEN -> LOCKED at ``longTermLockAt``. An admin may reopen a locked pool;
    then a user who already submitted pays ``reopenCostPoints`` per edit.
    The balance check, deduction, audit entry and submission update happen
    under one lock and are committed together, or not at all.
    """

    def __init__(
        self,
        event_id: str,
        config: LongTermConfig,
        points: Optional[PointsLedger] = None,
        audit: Optional[AuditLog] = None,
        clock: Clock = utc_now,
    ):
        self.event_id = event_id
        self._config = config
        self._clock = clock
        self.points = points or PointsLedger(clock=clock)
        self.audit = audit or AuditLog()
        self._submissions: Dict[str, LongTermSubmission] = {}
        self._lock = threading.Lock()

    # ------------ config ------------
    @property
    def config(self) -> LongTermConfig:
        return self._config

    def set_reopen_enabled(self, enabled: bool) -> LongTermConfig:
        self._config = self._config.model_copy(update={"reopen_enabled": bool(enabled)})
        log.info("long-term reopen for %s: %s", self.event_id, enabled)
        return self._config

    def set_reopen_cost(self, cost: int) -> LongTermConfig:
        if cost < 0:
            raise ValidationFailed(INVALID_COST, "Reopen cost must be non-negative")
        self._config = self._config.model_copy(update={"reopen_cost_points": int(cost)})
        return self._config

    def set_lock_at(self, lock_at: datetime) -> LongTermConfig:
        self._config = self._config.model_copy(update={"long_term_lock_at": lock_at})
        return self._config

    def questions(self) -> list:
        return list(self._config.questions)

    # ------------ lock state ------------
    def is_locked(self) -> bool:
        return self._clock() >= self._config.long_term_lock_at

    def is_reopened_for_edits(self) -> bool:
        return self.is_locked() and self._config.reopen_enabled

    def can_edit(self) -> bool:
        return not self.is_locked() or self.is_reopened_for_edits()

    def lock_status(self) -> Dict[str, Any]:
        reopened = self.is_reopened_for_edits()
        return {
            "eventId": self.event_id,
            "isLocked": self.is_locked(),
            "isReopened": reopened,
            "canEdit": self.can_edit(),
            "editCost": self._config.reopen_cost_points if reopened else 0,
            "lockAt": self._config.long_term_lock_at,
        }

    # ------------ submissions ------------
    def _check_selections(self, answers: Mapping[str, Any]) -> None:
        for q in self._config.questions:
            if q.max_selections is None or q.question_id not in answers:
                continue
            picked = _as_list(answers[q.question_id])
            if len(picked) > q.max_selections:
                raise ValidationFailed(
                    INVALID_ANSWER,
                    f"At most {q.max_selections} selection(s) for {q.question_id}",
                    questionId=q.question_id, maxSelections=q.max_selections,
                )

    def submit(self, user_id: str, answers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if not user_id:
            raise ValidationFailed(MISSING_FIELD, "userId is required", field="userId")

        with self._lock:
            if not self.can_edit():
                raise StateConflict(SUBMISSIONS_LOCKED, "Long-term submissions are locked", eventId=self.event_id)
            if not answers:
                raise StateConflict(EMPTY_SUBMISSION, "No answers submitted")
            self._check_selections(answers)

            answers = dict(answers)
            existing = self._submissions.get(user_id)
            reopened = self.is_reopened_for_edits()
            paid_edit = reopened and existing is not None
            cost = self._config.reopen_cost_points if paid_edit else 0

            # stage every change first; nothing is written until all of it is valid
            staged_points = None
            staged_audit = None
            if paid_edit:
                staged_points = self.points.prepare_deduct(user_id, cost, EDIT_REASON)
                staged_audit = AuditEntry(
                    user_id=user_id,
                    ts=self._clock(),
                    action=LONG_TERM_EDIT,
                    cost=cost,
                    details={"previousAnswers": dict(existing.answers), "newAnswers": dict(answers)},
                )

            now = self._clock()
            submission = LongTermSubmission(
                user_id=user_id,
                event_id=self.event_id,
                answers=answers,
                submitted_at=now,
                original_submitted_at=existing.original_submitted_at if existing else now,
                is_locked=self.is_locked() and not reopened,
                edit_count=existing.edit_count + 1 if existing else 0,
            )

            if staged_points is not None:
                self.points.commit(staged_points)
            if staged_audit is not None:
                self.audit.append(staged_audit)
            self._submissions[user_id] = submission

        if paid_edit:
            log.info("paid long-term edit by %s (-%d points)", user_id, cost)
        else:
            log.info("long-term submission by %s (edit #%d)", user_id, submission.edit_count)
        return {
            "success": True,
            "submittedAt": submission.submitted_at,
            "isLocked": submission.is_locked,
            "editCount": submission.edit_count,
            "pointsDeducted": cost,
        }

    def get_submission(self, user_id: str) -> Optional[LongTermSubmission]:
        return self._submissions.get(user_id)

    def all_submissions(self) -> Dict[str, LongTermSubmission]:
        return dict(self._submissions)

    # ------------ scoring ------------
    def score_all(self, results: LongTermResults) -> Dict[str, LongTermScore]:
        scores = {
            uid: score_long_term(uid, sub.answers, results, self._config)
            for uid, sub in self._submissions.items()
        }
        for uid, s in scores.items():
            self._submissions[uid] = self._submissions[uid].model_copy(update={"score": s.score})
        log.info("scored %d long-term submission(s) for %s", len(scores), self.event_id)
        return scores

    def reset(self) -> None:
        """Test support: drop submissions, balances and audit history."""
        with self._lock:
            self._submissions.clear()
            self.points.reset()
            self.audit.clear()


# answer keys used by the long-term form
WINNER_KEY = "winnerTeam"
FINALISTS_KEY = "finalistTeams"
FINAL_FOUR_KEY = "finalFourTeams"
ORANGE_CAP_KEY = "orangeCapPlayers"
PURPLE_CAP_KEY = "purpleCapPlayers"


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]


def score_long_term(
    user_id: str,
    answers: Mapping[str, Any],
    results: LongTermResults,
    config: LongTermConfig,
) -> LongTermScore:
    """
    Winner: flat points. Finalists / final four: points per correct team
    (each team counted once). Orange / purple cap: flat points when the
    actual cap holder is among the user's picks.
    """
    out = LongTermScore(user_id=user_id)

    winner = answers.get(WINNER_KEY)
    if results.winner and winner == results.winner:
        out.winner_points = config.winner_points

    finalists = set(_as_list(answers.get(FINALISTS_KEY)))
    out.finalist_points = len(finalists & set(results.finalists)) * config.finalist_points

    final_four = set(_as_list(answers.get(FINAL_FOUR_KEY)))
    out.final_four_points = len(final_four & set(results.final_four)) * config.final_four_points

    if results.orange_cap and results.orange_cap in _as_list(answers.get(ORANGE_CAP_KEY)):
        out.orange_cap_points = config.orange_cap_points
    if results.purple_cap and results.purple_cap in _as_list(answers.get(PURPLE_CAP_KEY)):
        out.purple_cap_points = config.purple_cap_points
    return out
