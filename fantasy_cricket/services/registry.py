# fantasy_cricket/services/registry.py
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from ..core.config import Settings, get_settings
from ..core.errors import (
    MATCH_SCORED,
    NO_QUESTIONS,
    RESULT_MISSING,
    StateConflict,
    ValidationFailed,
)
from ..core.http import HttpRetryingClient
from ..domain.models import (
    BetScore,
    MatchBettingConfig,
    MatchResult,
    PlayerMatchStat,
    SideBetLibrary,
)
from ..schemas.scorecard import Scorecard
from . import templates
from .bets import BetBook, Clock, utc_now
from .bootstrap import Bootstrap, load_documents
from .long_term import LongTermLedger, PointsLedger
from .matches import MatchRegistry
from .question_store import QuestionStore
from .scorecard import ScorecardIngestor
from .scoring import score_match
from .stats_store import StatsStore

log = logging.getLogger(__name__)


class Registry:
    """
    Every store the service needs, built once per process (or per test).
    Holds the admin flows that touch more than one store.
    """

    def __init__(self, settings: Settings, docs: Bootstrap, clock: Clock = utc_now):
        self.settings = settings
        self.clock = clock
        self._docs = docs
        self.matches = MatchRegistry()
        self.questions = QuestionStore()
        self.stats = StatsStore()
        self.bets = BetBook(self.matches, self.questions, clock)
        self.long_term = self._new_ledger()
        self.scorecards = ScorecardIngestor(self.stats)
        self.library = SideBetLibrary()
        self.results: Dict[str, MatchResult] = {}
        self._load()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, clock: Clock = utc_now,
                      client: Optional[HttpRetryingClient] = None) -> "Registry":
        settings = settings or get_settings()
        return cls(settings, load_documents(settings, client), clock)

    def _new_ledger(self) -> LongTermLedger:
        docs = self._docs
        return LongTermLedger(
            self.settings.event_id, docs.long_term.model_copy(deep=True),
            PointsLedger(clock=self.clock), clock=self.clock,
        )

    def _load(self) -> None:
        self.matches.load(self._docs.tournament)
        self.questions.load(self._docs.questions)
        self.library = self._docs.library.model_copy(deep=True)

    def reset(self) -> None:
        """Back to the bootstrap documents; drops bets, stats, results and long-term state."""
        self.matches.reset()
        self.questions.reset()
        self.stats.reset()
        self.bets.reset()
        self.long_term = self._new_ledger()
        self.results.clear()
        self._load()
        log.info("registry reset")

    # ------------ question generation ------------
    def config_for(self, match_id: str) -> MatchBettingConfig:
        return self.questions.get_match_config(match_id) or MatchBettingConfig()

    def generate_standard_pack(self, match_id: str) -> List:
        match = self.matches.require_match(match_id)
        pack = templates.generate_standard_pack(
            match,
            self.matches.squads_for(match),
            self.config_for(match_id),
            players=self.matches.players_by_id(),
            early_match_ids=self.settings.early_match_ids,
        )
        self.questions.save_standard_questions(match_id, pack)
        return pack

    def generate_side_bets(
        self,
        match_id: str,
        template_ids: Optional[List[str]] = None,
        count: Optional[int] = None,
        override_points: Optional[Mapping[str, int]] = None,
    ) -> List:
        match = self.matches.require_match(match_id)
        cfg = self.config_for(match_id)
        updates = {}
        if template_ids is not None:
            updates["side_bet_template_ids"] = template_ids
        if count is not None:
            updates["side_bet_count"] = count
        if updates:
            cfg = cfg.model_copy(update=updates)
        side = templates.side_bets_for_config(
            match, self.library, cfg, override_points,
            early_match_ids=self.settings.early_match_ids,
        )
        self.questions.save_side_bet_questions(match_id, side)
        return side

    # ------------ results & scoring ------------
    def record_result(self, result: MatchResult) -> MatchResult:
        """Store the outcome, lock the match and freeze its bets."""
        match = self.matches.require_match(result.match_id)
        if match.status == "SCORED":
            raise StateConflict(MATCH_SCORED, f"{result.match_id} is already scored", matchId=result.match_id)
        flagged = self.stats.man_of_match(result.match_id)
        if result.man_of_match is None:
            result = result.model_copy(update={"man_of_match": flagged})
        elif result.man_of_match != flagged:
            # the recorded result wins; the bonus follows the stat flag
            log.warning(
                "result for %s names %s as man of the match but stats flag %s; moving the award",
                result.match_id, result.man_of_match, flagged,
            )
            self.stats.toggle_mom(result.match_id, result.man_of_match)
        self.results[result.match_id] = result
        self.bets.lock_match(result.match_id)
        if match.status != "LOCKED":
            self.matches.set_status(result.match_id, "LOCKED")
        return result

    def ingest_scorecard(self, match_id: str, card: Scorecard) -> List[PlayerMatchStat]:
        match = self.matches.require_match(match_id)
        rows = self.scorecards.ingest(match_id, card, self.matches.players_for(match))
        if card.winner is not None or card.total_runs is not None or card.side_bet_answers:
            current = self.results.get(match_id) or MatchResult(match_id=match_id)
            updates = {"side_bet_answers": {**current.side_bet_answers, **card.side_bet_answers}}
            if card.winner is not None:
                updates["winner"] = card.winner
            if card.total_runs is not None:
                updates["total_runs"] = card.total_runs
            self.record_result(current.model_copy(update=updates))
        return rows

    def score(self, match_id: str) -> Dict[str, BetScore]:
        """
        Score every bet on a finished match. Needs a recorded result; the
        stats rows are frozen afterwards and the match becomes SCORED.
        """
        match = self.matches.require_match(match_id)
        if match.status == "SCORED":
            raise StateConflict(MATCH_SCORED, f"{match_id} is already scored", matchId=match_id)
        result = self.results.get(match_id)
        if result is None:
            raise ValidationFailed(RESULT_MISSING, f"No result recorded for {match_id}", matchId=match_id)
        questions = self.questions.get_questions(match_id)
        if not questions:
            raise ValidationFailed(NO_QUESTIONS, f"No questions for {match_id}", matchId=match_id)

        self.bets.lock_match(match_id)
        scores = score_match(self.bets.bets_for_match(match_id), questions, result, self.stats.stats_for_match(match_id))
        self.bets.apply_scores(scores)
        self.stats.mark_scored(match_id)
        self.matches.set_status(match_id, "SCORED")
        return scores
