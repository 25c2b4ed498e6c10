# fantasy_cricket/services/scoring.py
from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from ..domain.models import (
    Bet,
    BetScore,
    MatchResult,
    PlayerMatchStat,
    PlayerPickQuestion,
    QuestionScore,
    RunnerConfig,
    RunnerPickQuestion,
    SideBetQuestion,
    TotalRunsQuestion,
    WinnerQuestion,
)
from .fantasy_points import compute_fantasy_points, round_half_up

log = logging.getLogger(__name__)


class RuleOutcome(NamedTuple):
    points: int
    is_correct: bool


NO_ANSWER = RuleOutcome(0, False)


def _exact(value: float) -> Fraction:
    # 0.7 as a decimal, not as its binary approximation
    return Fraction(str(value))

# Total runs: (max distance, share of base points). Beyond the last tier -> 0.
TOTAL_RUNS_TIERS = (
    (0, Fraction(5)),
    (1, Fraction(1)),
    (5, Fraction(1, 2)),
    (10, Fraction(1, 4)),
    (15, Fraction(1, 10)),
)


# -------------------------------
# Per-kind rules
# -------------------------------
def score_winner(question: WinnerQuestion, answer: Optional[str], actual: Optional[str]) -> RuleOutcome:
    """
    ``actual`` may be the winning optionId or the winning team code. Tie,
    No-Result and Super Over only earn credit when they match exactly.
    """
    if answer is None or answer == "":
        return NO_ANSWER
    option = question.option(str(answer))
    if option is None or actual is None:
        return RuleOutcome(question.points_wrong, False)
    if actual in (option.option_id, option.reference_id):
        weight = option.weight if option.weight is not None else 1
        return RuleOutcome(round_half_up(question.points * _exact(weight)), True)
    return RuleOutcome(question.points_wrong, False)


def total_runs_multiplier(distance: int) -> Fraction:
    for max_distance, share in TOTAL_RUNS_TIERS:
        if distance <= max_distance:
            return share
    return Fraction(0)


def score_total_runs(guess: Optional[int], actual: Optional[int], base_points: int) -> RuleOutcome:
    if guess is None or actual is None:
        return NO_ANSWER
    distance = abs(int(guess) - int(actual))
    points = round_half_up(base_points * total_runs_multiplier(distance))
    return RuleOutcome(max(points, 0), distance == 0)


def score_player_pick(stat: Optional[PlayerMatchStat], multiplier: float) -> RuleOutcome:
    if stat is None:
        return NO_ANSWER
    fantasy = compute_fantasy_points(stat)
    points = round_half_up(fantasy * _exact(multiplier))
    return RuleOutcome(points, points > 0)


def score_side_bet(question: SideBetQuestion, answer: Optional[str], correct_answer: Optional[str]) -> RuleOutcome:
    """Unanswered side bets score 0 and never count as wrong."""
    if answer is None or answer == "":
        return NO_ANSWER
    if correct_answer is None:
        return NO_ANSWER
    if _matches_option(question, answer, correct_answer):
        return RuleOutcome(question.points, True)
    return RuleOutcome(question.points_wrong, False)


def score_runner_pick(pool_points: int, runner_config: RunnerConfig) -> RuleOutcome:
    """Runner picks earn a share of a pool; deriving the pool is not this module's job."""
    if pool_points <= 0:
        return NO_ANSWER
    points = round_half_up(pool_points * _exact(runner_config.percent) / 100)
    return RuleOutcome(points, points > 0)


def _matches_option(question: SideBetQuestion, answer: str, correct: str) -> bool:
    # answers and results may carry either the optionId or the option label
    if answer == correct:
        return True
    chosen = question.option(answer)
    expected = question.option(correct)
    if chosen is not None and chosen.label == correct:
        return True
    if expected is not None and expected.label == answer:
        return True
    return False


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# -------------------------------
# Whole-bet scoring
# -------------------------------
def score_bet(
    bet: Bet,
    questions: Sequence[Any],
    result: MatchResult,
    stats: Mapping[str, PlayerMatchStat],
) -> BetScore:
    """
    Score one bet against the finalized result. ``stats`` maps playerId to
    that player's stat row for the match; a missing row scores 0.
    """
    out = BetScore(bet_id=bet.bet_id, user_id=bet.user_id, match_id=bet.match_id)
    picks_by_slot = {p.slot: p.player_id for p in bet.player_picks}

    for q in questions:
        if q.disabled:
            continue

        if isinstance(q, WinnerQuestion):
            answer = bet.answers.get(q.question_id)
            outcome = score_winner(q, None if answer is None else str(answer), result.winner)
            out.winner_points += outcome.points
            out.breakdown.append(QuestionScore(
                question_id=q.question_id, kind=q.kind, answer=answer,
                points=outcome.points, is_correct=outcome.is_correct,
            ))

        elif isinstance(q, TotalRunsQuestion):
            answer = bet.answers.get(q.question_id)
            outcome = score_total_runs(_as_int(answer), result.total_runs, q.points)
            out.total_runs_points += outcome.points
            out.breakdown.append(QuestionScore(
                question_id=q.question_id, kind=q.kind, answer=answer,
                points=outcome.points, is_correct=outcome.is_correct,
            ))

        elif isinstance(q, PlayerPickQuestion):
            player_id = picks_by_slot.get(q.slot.index)
            if player_id is None:
                answer = bet.answers.get(q.question_id)
                player_id = _player_for_option(q, answer)
            stat = stats.get(player_id) if player_id else None
            if player_id and stat is None:
                log.warning("bet %s: picked player %s has no stats for %s", bet.bet_id, player_id, bet.match_id)
            outcome = score_player_pick(stat, q.slot.multiplier)
            out.player_pick_points += outcome.points
            out.breakdown.append(QuestionScore(
                question_id=q.question_id, kind=q.kind, answer=player_id,
                points=outcome.points, is_correct=outcome.is_correct, multiplier=q.slot.multiplier,
            ))

        elif isinstance(q, RunnerPickQuestion):
            if not bet.runner_picks:
                continue
            outcome = score_runner_pick(result.runner_pool, q.runner_config)
            out.runner_points += outcome.points
            out.breakdown.append(QuestionScore(
                question_id=q.question_id, kind=q.kind, answer=list(bet.runner_picks),
                points=outcome.points, is_correct=outcome.is_correct,
            ))

        elif isinstance(q, SideBetQuestion):
            answer = bet.side_bet_answers.get(q.question_id)
            if answer is None:
                raw = bet.answers.get(q.question_id)
                answer = None if raw is None else str(raw)
            outcome = score_side_bet(q, answer, result.side_bet_answers.get(q.question_id))
            out.side_bet_points += outcome.points
            out.breakdown.append(QuestionScore(
                question_id=q.question_id, kind=q.kind, answer=answer,
                points=outcome.points, is_correct=outcome.is_correct,
            ))

    return out


def _player_for_option(question: PlayerPickQuestion, answer: Any) -> Optional[str]:
    # older submissions stored the chosen optionId under answers[questionId]
    if answer is None:
        return None
    opt = question.option(str(answer))
    if opt is not None:
        return opt.reference_id
    return str(answer)


def score_match(
    bets: Iterable[Bet],
    questions: Sequence[Any],
    result: MatchResult,
    stats: Iterable[PlayerMatchStat],
) -> Dict[str, BetScore]:
    """
    Score every bet on a match. Bets are independent of one another; the
    only precondition is that results and stats are final.
    """
    by_player = {s.player_id: s for s in stats}
    scores: Dict[str, BetScore] = {}
    for bet in bets:
        scores[bet.bet_id] = score_bet(bet, questions, result, by_player)
    log.info("scored %d bet(s) for match %s", len(scores), result.match_id)
    return scores


def summarize(scores: Mapping[str, BetScore]) -> List[Dict[str, Any]]:
    """Compact rows for admin verification output, highest score first."""
    rows = [
        {
            "betId": s.bet_id,
            "userId": s.user_id,
            "score": s.score,
            "winnerPoints": s.winner_points,
            "totalRunsPoints": s.total_runs_points,
            "playerPickPoints": s.player_pick_points,
            "sideBetPoints": s.side_bet_points,
            "runnerPoints": s.runner_points,
        }
        for s in scores.values()
    ]
    rows.sort(key=lambda r: r["score"], reverse=True)
    return rows
