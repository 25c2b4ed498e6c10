# fantasy_cricket/services/scorecard.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.errors import INVALID_OVERS, UNMATCHED_PLAYERS, ValidationFailed
from ..domain.models import Player, PlayerMatchStat
from ..schemas.scorecard import Scorecard, UnmatchedName
from .resolve import resolve_player, suggest_players
from .stats_store import StatsStore

log = logging.getLogger(__name__)

BALLS_PER_OVER = 6


def cricket_overs_to_decimal(overs: float) -> float:
    """
    Cricket notation to decimal overs: ``3.3`` (3 overs, 3 balls) -> ``3.5``.
    The part after the point counts balls, so anything above 5 is invalid.
    """
    if overs < 0:
        raise ValidationFailed(INVALID_OVERS, f"Invalid overs: {overs}", overs=overs)
    full = math.floor(overs)
    balls = round((overs - full) * 10)
    if balls >= BALLS_PER_OVER:
        raise ValidationFailed(
            INVALID_OVERS,
            f"Invalid overs: {overs} (balls part is {balls}, max 5)",
            overs=overs,
        )
    return full + balls / BALLS_PER_OVER


def _blank() -> Dict[str, Any]:
    return {
        "runs": 0, "balls_faced": 0, "fours": 0, "sixes": 0,
        "wickets": 0, "overs_bowled": 0.0, "runs_conceded": 0,
        "catches": 0, "run_outs": 0, "stumpings": 0,
        "has_hat_trick": False,
    }


def merge_scorecard(
    match_id: str,
    card: Scorecard,
    players: Sequence[Player],
) -> Tuple[List[PlayerMatchStat], List[UnmatchedName]]:
    """
    Fold every innings into one stat row per resolved player.

    Batting and bowling lines set their figures; fielding counts add up.
    Different spellings of the same player land on the same row. Names
    that resolve to nobody are returned (with suggestions) instead of rows.
    """
    rows: Dict[str, Dict[str, Any]] = {}
    unmatched: Dict[str, UnmatchedName] = {}
    resolved: Dict[str, Optional[Player]] = {}

    def row_for(name: str) -> Optional[Dict[str, Any]]:
        if name not in resolved:
            resolved[name] = resolve_player(name, players)
        player = resolved[name]
        if player is None:
            unmatched.setdefault(name, UnmatchedName(name=name, suggestions=suggest_players(name, players)))
            return None
        return rows.setdefault(player.player_id, _blank())

    for innings in card.innings:
        for b in innings.batting:
            s = row_for(b.name)
            if s is not None:
                s.update(runs=b.runs, balls_faced=b.balls, fours=b.fours, sixes=b.sixes)
        for b in innings.bowling:
            overs = cricket_overs_to_decimal(b.overs)
            s = row_for(b.name)
            if s is not None:
                s.update(overs_bowled=overs, runs_conceded=b.runs, wickets=b.wickets)
                if b.hat_trick:
                    s["has_hat_trick"] = True
        if innings.fielding is not None:
            for field, counts in (
                ("catches", innings.fielding.catches),
                ("stumpings", innings.fielding.stumpings),
                ("run_outs", innings.fielding.run_outs),
            ):
                for name, count in counts.items():
                    s = row_for(name)
                    if s is not None:
                        s[field] += count

    stats = [PlayerMatchStat(match_id=match_id, player_id=pid, **vals) for pid, vals in rows.items()]
    return stats, list(unmatched.values())


class ScorecardIngestor:
    """Turns a typed-in scorecard into stored PlayerMatchStat rows."""

    def __init__(self, stats: StatsStore):
        self._stats = stats

    def ingest(self, match_id: str, card: Scorecard, players: Sequence[Player]) -> List[PlayerMatchStat]:
        """
        All or nothing: any unmatched name (or an unknown man of the match)
        rejects the whole card before a single row is written.
        """
        rows, unmatched = merge_scorecard(match_id, card, players)
        mom: Optional[Player] = None
        if card.man_of_match:
            mom = resolve_player(card.man_of_match, players)
            if mom is None:
                unmatched.append(UnmatchedName(
                    name=card.man_of_match,
                    suggestions=suggest_players(card.man_of_match, players),
                ))

        if unmatched:
            for u in unmatched:
                log.warning("scorecard %s: no player matches %r (possible: %s)",
                            match_id, u.name, ", ".join(u.suggestions) or "-")
            raise ValidationFailed(
                UNMATCHED_PLAYERS,
                f"{len(unmatched)} scorecard name(s) did not match a squad player",
                unmatched=[u.model_dump() for u in unmatched],
            )

        if mom is not None:
            hit = next((i for i, r in enumerate(rows) if r.player_id == mom.player_id), None)
            if hit is None:
                # man of the match without a line on the card
                rows.append(PlayerMatchStat(match_id=match_id, player_id=mom.player_id, is_man_of_match=True))
            else:
                rows[hit] = rows[hit].model_copy(update={"is_man_of_match": True})

        saved = self._stats.save_stats(match_id, rows)
        log.info("scorecard %s: %d player row(s), man of the match %s",
                 match_id, len(saved), mom.player_id if mom else "-")
        return saved
