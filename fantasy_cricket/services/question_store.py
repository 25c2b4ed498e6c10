# fantasy_cricket/services/question_store.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..domain.models import MatchBettingConfig, QuestionDocument, Section

log = logging.getLogger(__name__)


class QuestionStore:
    """
    Generated questions and per-match betting config, keyed by matchId.

    Loaded once from a question document; standard and side sections can be
    regenerated independently without clobbering each other. Single writer
    (admin tooling); no locking here.
    """

    def __init__(self, document: Optional[QuestionDocument] = None):
        self._questions: Dict[str, List[Any]] = {}
        self._configs: Dict[str, MatchBettingConfig] = {}
        if document is not None:
            self.load(document)

    # ------------ lifecycle ------------
    def load(self, document: QuestionDocument) -> None:
        self._questions = {mid: list(qs) for mid, qs in document.questions_by_match.items()}
        self._configs = dict(document.configs_by_match)
        log.info(
            "question store loaded: %d match(es), %d config(s)",
            len(self._questions), len(self._configs),
        )

    def reset(self) -> None:
        self._questions = {}
        self._configs = {}

    def snapshot(self) -> QuestionDocument:
        return QuestionDocument(
            questions_by_match={mid: list(qs) for mid, qs in self._questions.items()},
            configs_by_match=dict(self._configs),
        )

    # ------------ reads ------------
    def get_questions(self, match_id: str) -> List[Any]:
        return list(self._questions.get(match_id, []))

    def get_questions_by_section(self, match_id: str, section: Section) -> List[Any]:
        return [q for q in self._questions.get(match_id, []) if q.section == section]

    def get_standard_questions(self, match_id: str) -> List[Any]:
        return self.get_questions_by_section(match_id, "STANDARD")

    def get_side_bet_questions(self, match_id: str) -> List[Any]:
        return self.get_questions_by_section(match_id, "SIDE")

    def get_question(self, match_id: str, question_id: str) -> Optional[Any]:
        for q in self._questions.get(match_id, []):
            if q.question_id == question_id:
                return q
        return None

    def has_standard_pack(self, match_id: str) -> bool:
        return any(q.section == "STANDARD" for q in self._questions.get(match_id, []))

    def has_side_bets(self, match_id: str) -> bool:
        return any(q.section == "SIDE" for q in self._questions.get(match_id, []))

    def get_match_config(self, match_id: str) -> Optional[MatchBettingConfig]:
        return self._configs.get(match_id)

    # ------------ writes ------------
    def save_questions(self, match_id: str, questions: Sequence[Any]) -> Dict[str, Any]:
        foreign = [q.question_id for q in questions if q.match_id != match_id]
        if foreign:
            raise ValueError(f"questions {foreign} do not belong to match {match_id}")
        self._questions[match_id] = list(questions)
        log.info("saved %d question(s) for match %s", len(questions), match_id)
        return {"success": True, "count": len(questions)}

    def save_questions_by_section(self, match_id: str, section: Section, questions: Sequence[Any]) -> Dict[str, Any]:
        """Replace only ``section`` for the match; the other section is kept as is."""
        wrong = [q.question_id for q in questions if q.section != section]
        if wrong:
            raise ValueError(f"questions {wrong} are not in section {section}")
        kept = [q for q in self._questions.get(match_id, []) if q.section != section]
        return self.save_questions(match_id, kept + list(questions))

    def save_standard_questions(self, match_id: str, questions: Sequence[Any]) -> Dict[str, Any]:
        return self.save_questions_by_section(match_id, "STANDARD", questions)

    def save_side_bet_questions(self, match_id: str, questions: Sequence[Any]) -> Dict[str, Any]:
        return self.save_questions_by_section(match_id, "SIDE", questions)

    def save_match_config(self, match_id: str, config: MatchBettingConfig) -> Dict[str, Any]:
        self._configs[match_id] = config
        log.info("saved config for match %s", match_id)
        return {"success": True}
