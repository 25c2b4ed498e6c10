from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.errors import MATCH_NOT_FOUND, NotFound
from ..domain.models import Match, MatchStatus, Player, Team, TournamentDocument

log = logging.getLogger(__name__)


class MatchRegistry:
    """Teams, squads and fixtures of one tournament."""

    def __init__(self, document: Optional[TournamentDocument] = None):
        self.event_id: Optional[str] = None
        self._teams: Dict[str, Team] = {}
        self._players: Dict[str, Player] = {}
        self._matches: Dict[str, Match] = {}
        if document is not None:
            self.load(document)

    def load(self, document: TournamentDocument) -> None:
        self.event_id = document.event_id
        self._teams = {t.team_id: t for t in document.teams}
        self._players = {p.player_id: p for p in document.players}
        self._matches = {}
        for m in document.matches:
            if m.event_id is None:
                m = m.model_copy(update={"event_id": document.event_id})
            self._matches[m.match_id] = m
        log.info(
            "tournament %s loaded: %d team(s), %d player(s), %d match(es)",
            document.event_id, len(self._teams), len(self._players), len(self._matches),
        )

    def reset(self) -> None:
        self.event_id = None
        self._teams, self._players, self._matches = {}, {}, {}

    # ------------ matches ------------
    def list_matches(self, status: Optional[MatchStatus] = None) -> List[Match]:
        rows = list(self._matches.values())
        if status is not None:
            rows = [m for m in rows if m.status == status]
        return rows

    def get_match(self, match_id: str) -> Optional[Match]:
        return self._matches.get(match_id)

    def require_match(self, match_id: str) -> Match:
        match = self._matches.get(match_id)
        if match is None:
            raise NotFound(MATCH_NOT_FOUND, f"Unknown match {match_id}", matchId=match_id)
        return match

    def upsert_match(self, match: Match) -> Match:
        self._matches[match.match_id] = match
        return match

    def set_status(self, match_id: str, status: MatchStatus) -> Match:
        match = self.require_match(match_id).model_copy(update={"status": status})
        self._matches[match_id] = match
        log.info("match %s -> %s", match_id, status)
        return match

    # ------------ squads ------------
    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def players_by_id(self) -> Dict[str, Player]:
        return dict(self._players)

    def squad(self, team_id: str) -> List[str]:
        return [p.player_id for p in self._players.values() if p.team_id == team_id]

    def squads_for(self, match: Match) -> Dict[str, List[str]]:
        return {
            match.team_a.team_id: self.squad(match.team_a.team_id),
            match.team_b.team_id: self.squad(match.team_b.team_id),
        }

    def players_for(self, match: Match) -> List[Player]:
        teams = {match.team_a.team_id, match.team_b.team_id}
        return [p for p in self._players.values() if p.team_id in teams]
