# fantasy_cricket/routers/matches.py
from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core.errors import BettingError
from ..deps import as_http, registry_dep
from ..domain.models import MatchStatus, Section
from ..services.registry import Registry

router = APIRouter(tags=["matches"])


@router.get("/matches", summary="Fixtures of the tournament, optionally by status")
def list_matches(
    status: Optional[MatchStatus] = Query(None, description="UPCOMING|OPEN|LOCKED|SCORED"),
    r: Registry = Depends(registry_dep),
):
    return {"eventId": r.matches.event_id, "matches": r.matches.list_matches(status)}


@router.get("/matches/{match_id}")
def get_match(match_id: str, r: Registry = Depends(registry_dep)):
    try:
        match = r.matches.require_match(match_id)
    except BettingError as e:
        raise as_http(e)
    return {
        "match": match,
        "hasStandardPack": r.questions.has_standard_pack(match_id),
        "hasSideBets": r.questions.has_side_bets(match_id),
        "manOfMatch": r.stats.man_of_match(match_id),
    }


@router.get("/matches/{match_id}/questions", summary="Questions for a match (STANDARD, SIDE or both)")
def get_questions(
    match_id: str,
    section: Optional[Section] = Query(None, description="STANDARD|SIDE; omit for both"),
    r: Registry = Depends(registry_dep),
):
    try:
        r.matches.require_match(match_id)
    except BettingError as e:
        raise as_http(e)
    if section is None:
        questions = r.questions.get_questions(match_id)
    else:
        questions = r.questions.get_questions_by_section(match_id, section)
    return {"matchId": match_id, "count": len(questions), "questions": questions}
