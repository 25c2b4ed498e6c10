# fantasy_cricket/services/stats_store.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.errors import MATCH_SCORED, StateConflict
from ..domain.models import PlayerMatchStat
from .fantasy_points import compute_fantasy_points

log = logging.getLogger(__name__)

CENTURY_RUNS = 100
FIVE_WICKET_HAUL = 5


def derive_bonus_flags(stat: PlayerMatchStat) -> PlayerMatchStat:
    """Century and five-wicket haul follow from the box score at capture time."""
    return stat.model_copy(update={
        "has_century": stat.runs >= CENTURY_RUNS,
        "has_five_wicket_haul": stat.wickets >= FIVE_WICKET_HAUL,
    })


class StatsStore:
    """
    One PlayerMatchStat per (matchId, playerId).

    Man of the match is tracked in a ``matchId -> playerId`` index so that
    at most one row per match carries the flag. Rows are frozen once the
    match is marked scored.
    """

    def __init__(self):
        self._rows: Dict[Tuple[str, str], PlayerMatchStat] = {}
        self._mom: Dict[str, str] = {}
        self._scored: Set[str] = set()

    def reset(self) -> None:
        self._rows.clear()
        self._mom.clear()
        self._scored.clear()

    # ------------ guards ------------
    def is_scored(self, match_id: str) -> bool:
        return match_id in self._scored

    def _ensure_writable(self, match_id: str) -> None:
        if match_id in self._scored:
            raise StateConflict(MATCH_SCORED, f"Stats for {match_id} are final", matchId=match_id)

    def mark_scored(self, match_id: str) -> None:
        self._scored.add(match_id)

    # ------------ writes ------------
    def save_stat(self, stat: PlayerMatchStat, derive_flags: bool = True) -> PlayerMatchStat:
        self._ensure_writable(stat.match_id)
        if derive_flags:
            stat = derive_bonus_flags(stat)

        current = self._mom.get(stat.match_id)
        if stat.is_man_of_match and current != stat.player_id:
            self._clear_mom(stat.match_id)
            self._mom[stat.match_id] = stat.player_id
        elif not stat.is_man_of_match and current == stat.player_id:
            del self._mom[stat.match_id]

        self._rows[(stat.match_id, stat.player_id)] = stat
        return stat

    def save_stats(self, match_id: str, stats: Iterable[PlayerMatchStat], derive_flags: bool = True) -> List[PlayerMatchStat]:
        self._ensure_writable(match_id)
        rows = list(stats)
        foreign = [s.player_id for s in rows if s.match_id != match_id]
        if foreign:
            raise ValueError(f"stats for {foreign} do not belong to match {match_id}")
        if sum(1 for s in rows if s.is_man_of_match) > 1:
            raise ValueError(f"more than one man of the match in stats for {match_id}")
        saved = [self.save_stat(s, derive_flags) for s in rows]
        log.info("saved %d stat row(s) for %s", len(saved), match_id)
        return saved

    def toggle_mom(self, match_id: str, player_id: str) -> Optional[str]:
        """
        Make ``player_id`` the man of the match, clearing whoever held it.
        Toggling the current holder clears the award. Returns the new holder.
        """
        self._ensure_writable(match_id)
        current = self._mom.get(match_id)
        self._clear_mom(match_id)
        if current == player_id:
            log.info("man of the match cleared for %s", match_id)
            return None

        key = (match_id, player_id)
        row = self._rows.get(key) or PlayerMatchStat(match_id=match_id, player_id=player_id)
        self._rows[key] = row.model_copy(update={"is_man_of_match": True})
        self._mom[match_id] = player_id
        log.info("man of the match for %s: %s", match_id, player_id)
        return player_id

    def _clear_mom(self, match_id: str) -> None:
        holder = self._mom.pop(match_id, None)
        if holder is None:
            return
        key = (match_id, holder)
        row = self._rows.get(key)
        if row is not None:
            self._rows[key] = row.model_copy(update={"is_man_of_match": False})

    # ------------ reads ------------
    def get_stat(self, match_id: str, player_id: str) -> Optional[PlayerMatchStat]:
        return self._rows.get((match_id, player_id))

    def stats_for_match(self, match_id: str) -> List[PlayerMatchStat]:
        return [s for (mid, _), s in self._rows.items() if mid == match_id]

    def man_of_match(self, match_id: str) -> Optional[str]:
        return self._mom.get(match_id)

    def fantasy_points(self, match_id: str) -> Dict[str, int]:
        return {s.player_id: compute_fantasy_points(s) for s in self.stats_for_match(match_id)}
