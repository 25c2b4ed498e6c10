from __future__ import annotations

import math
from fractions import Fraction
from typing import Optional, Union

from ..domain.models import PlayerMatchStat

# ----- formula constants -----
POINTS_PER_FOUR = 10
POINTS_PER_SIX = 20
POINTS_PER_WICKET = 20
POINTS_PER_FIELDING_EVENT = 5       # catch, run-out, stumping
BONUS_POINTS = 200                  # century, 5-for, hat-trick, man of the match

# (max economy, bonus); first match wins
ECONOMY_TIERS = ((6, 100), (8, 50), (10, 25))
MIN_OVERS_FOR_ECONOMY = 1

Number = Union[int, float, Fraction]


def round_half_up(value: Number) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3), unlike round()."""
    if value < 0:
        return -math.floor(-value + Fraction(1, 2))
    return math.floor(value + Fraction(1, 2))


def strike_rate_bonus(runs: int, balls_faced: int) -> int:
    if balls_faced <= 0:
        return 0
    return round_half_up(Fraction(100 * runs, balls_faced))


def economy_bonus(runs_conceded: int, overs_bowled: float) -> int:
    if overs_bowled < MIN_OVERS_FOR_ECONOMY:
        return 0
    economy = runs_conceded / overs_bowled
    for ceiling, bonus in ECONOMY_TIERS:
        if economy <= ceiling:
            return bonus
    return 0


def compute_fantasy_points(stat: PlayerMatchStat) -> int:
    """
    Fantasy points for one player's match box score.

    Batting:  runs + 10/four + 20/six + round(100 * runs / balls) when balls > 0
    Bowling:  20/wicket + economy bonus (<=6: 100, <=8: 50, <=10: 25) from 1 over up
    Fielding: 5 per catch, run-out and stumping
    Bonuses:  200 each for century, five-wicket haul, hat-trick, man of the match

    Bonus flags are read as stored; they are derived from runs/wickets when
    the row is captured, not here.
    """
    pts = stat.runs
    pts += stat.fours * POINTS_PER_FOUR
    pts += stat.sixes * POINTS_PER_SIX
    pts += strike_rate_bonus(stat.runs, stat.balls_faced)

    pts += stat.wickets * POINTS_PER_WICKET
    pts += economy_bonus(stat.runs_conceded, stat.overs_bowled)

    pts += (stat.catches + stat.run_outs + stat.stumpings) * POINTS_PER_FIELDING_EVENT

    for flag in (stat.has_century, stat.has_five_wicket_haul, stat.has_hat_trick, stat.is_man_of_match):
        if flag:
            pts += BONUS_POINTS
    return pts


def strike_rate(stat: PlayerMatchStat) -> float:
    if stat.balls_faced <= 0:
        return 0.0
    return round(stat.runs / stat.balls_faced * 100, 2)


def economy_rate(stat: PlayerMatchStat) -> Optional[float]:
    if stat.overs_bowled <= 0:
        return None
    return round(stat.runs_conceded / stat.overs_bowled, 2)
