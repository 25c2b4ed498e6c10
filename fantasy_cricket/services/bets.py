# fantasy_cricket/services/bets.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..core.errors import (
    BET_ALREADY_LOCKED,
    BETTING_CLOSED,
    INVALID_ANSWER,
    INVALID_OPTION,
    INVALID_QUESTION,
    INVALID_SLOT,
    LOCK_TIME_PASSED,
    MISSING_FIELD,
    StateConflict,
    ValidationFailed,
)
from ..domain.models import (
    Bet,
    BetScore,
    PlayerPick,
    PlayerPickQuestion,
    RunnerPickQuestion,
    SideBetQuestion,
    TotalRunsQuestion,
    WinnerQuestion,
)
from .matches import MatchRegistry
from .question_store import QuestionStore

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def bet_id_for(user_id: str, match_id: str) -> str:
    """One live bet per (user, match): resubmissions land on the same id."""
    return f"bet_{user_id}_{match_id}"


class BetBook:
    """Match bets keyed by their deterministic id; submissions are upserts."""

    def __init__(self, matches: MatchRegistry, questions: QuestionStore, clock: Clock = utc_now):
        self._matches = matches
        self._questions = questions
        self._clock = clock
        self._bets: Dict[str, Bet] = {}

    def reset(self) -> None:
        self._bets.clear()

    # ------------ submission ------------
    def submit_bet(
        self,
        user_id: str,
        match_id: Optional[str],
        answers: Optional[Mapping[str, Any]] = None,
        player_picks: Optional[Sequence[PlayerPick]] = None,
        side_bet_answers: Optional[Mapping[str, str]] = None,
        runner_picks: Optional[Sequence[str]] = None,
    ) -> Bet:
        if not user_id:
            raise ValidationFailed(MISSING_FIELD, "userId is required", field="userId")
        if not match_id:
            raise ValidationFailed(MISSING_FIELD, "matchId is required", field="matchId")

        match = self._matches.require_match(match_id)
        now = self._clock()
        if match.status != "OPEN":
            raise StateConflict(BETTING_CLOSED, "Betting is closed for this match", matchId=match_id)
        if match.lock_time is not None and now >= match.lock_time:
            raise StateConflict(LOCK_TIME_PASSED, "Lock time has passed for this match", matchId=match_id)

        bet_id = bet_id_for(user_id, match_id)
        existing = self._bets.get(bet_id)
        if existing is not None and existing.is_locked:
            raise StateConflict(BET_ALREADY_LOCKED, "Bet is locked", betId=bet_id)

        answers = dict(answers or {})
        picks = list(player_picks or [])
        side = dict(side_bet_answers or {})
        runners = list(runner_picks or [])
        self._validate(match_id, answers, picks, side, runners)

        bet = Bet(
            bet_id=bet_id,
            user_id=user_id,
            match_id=match_id,
            answers=answers,
            player_picks=picks,
            side_bet_answers=side,
            runner_picks=runners,
            submitted_at=now,
        )
        self._bets[bet_id] = bet
        log.info("%s bet %s", "updated" if existing else "created", bet_id)
        return bet

    def _validate(
        self,
        match_id: str,
        answers: Dict[str, Any],
        picks: List[PlayerPick],
        side: Dict[str, str],
        runners: List[str],
    ) -> None:
        questions = {q.question_id: q for q in self._questions.get_questions(match_id) if not q.disabled}

        for qid, value in answers.items():
            q = questions.get(qid)
            if q is None:
                raise ValidationFailed(INVALID_QUESTION, f"Unknown question {qid}", questionId=qid)
            if isinstance(q, TotalRunsQuestion):
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise ValidationFailed(INVALID_ANSWER, "Total runs must be a non-negative integer", questionId=qid)
            elif isinstance(q, (WinnerQuestion, SideBetQuestion, PlayerPickQuestion)):
                if q.option(str(value)) is None:
                    raise ValidationFailed(INVALID_OPTION, f"Unknown option {value} for {qid}", questionId=qid)

        for qid, value in side.items():
            q = questions.get(qid)
            if not isinstance(q, SideBetQuestion):
                raise ValidationFailed(INVALID_QUESTION, f"Unknown side bet {qid}", questionId=qid)
            if q.option(value) is None:
                raise ValidationFailed(INVALID_OPTION, f"Unknown option {value} for {qid}", questionId=qid)

        slots = {q.slot.index: q for q in questions.values() if isinstance(q, PlayerPickQuestion)}
        taken = set()
        chosen: Dict[str, int] = {}
        for pick in sorted(picks, key=lambda p: p.slot):
            q = slots.get(pick.slot)
            if q is None:
                raise ValidationFailed(INVALID_SLOT, f"Unknown player slot {pick.slot}", slot=pick.slot)
            if pick.slot in taken:
                raise ValidationFailed(INVALID_SLOT, f"Slot {pick.slot} picked twice", slot=pick.slot)
            taken.add(pick.slot)
            # one player per match; the lowest slot keeps them
            if pick.player_id in chosen:
                raise ValidationFailed(
                    INVALID_SLOT,
                    f"Player {pick.player_id} already fills slot {chosen[pick.player_id]}",
                    slot=pick.slot, playerId=pick.player_id, heldBySlot=chosen[pick.player_id],
                )
            chosen[pick.player_id] = pick.slot
            if q.options and not any(o.reference_id == pick.player_id for o in q.options):
                raise ValidationFailed(INVALID_OPTION, f"Player {pick.player_id} is not in this match", slot=pick.slot)

        if runners:
            runner_qs = [q for q in questions.values() if isinstance(q, RunnerPickQuestion)]
            if not runner_qs:
                raise ValidationFailed(INVALID_QUESTION, "Runners are not enabled for this match")
            limit = runner_qs[0].runner_config.max_runners
            if len(runners) > limit:
                raise ValidationFailed(INVALID_ANSWER, f"At most {limit} runner(s) allowed", maxRunners=limit)

    # ------------ reads ------------
    def get_bet(self, user_id: str, match_id: str) -> Optional[Bet]:
        return self._bets.get(bet_id_for(user_id, match_id))

    def bets_for_match(self, match_id: str) -> List[Bet]:
        return [b for b in self._bets.values() if b.match_id == match_id]

    # ------------ lifecycle ------------
    def lock_match(self, match_id: str) -> int:
        """Freeze every bet on the match; returns how many were newly locked."""
        now = self._clock()
        n = 0
        for bet_id, bet in list(self._bets.items()):
            if bet.match_id == match_id and not bet.is_locked:
                self._bets[bet_id] = bet.model_copy(update={"is_locked": True, "locked_at": now})
                n += 1
        log.info("locked %d bet(s) for %s", n, match_id)
        return n

    def apply_scores(self, scores: Mapping[str, BetScore]) -> int:
        n = 0
        for bet_id, s in scores.items():
            bet = self._bets.get(bet_id)
            if bet is None:
                continue
            self._bets[bet_id] = bet.model_copy(update={
                "score": s.score,
                "winner_points": s.winner_points,
                "total_runs_points": s.total_runs_points,
                "player_pick_points": s.player_pick_points,
                "side_bet_points": s.side_bet_points,
                "runner_points": s.runner_points,
            })
            n += 1
        return n
