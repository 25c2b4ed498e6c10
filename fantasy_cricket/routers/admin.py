# fantasy_cricket/routers/admin.py
from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException

from ..core.errors import BettingError
from ..deps import as_http, registry_dep
from ..domain.models import MatchBettingConfig, MatchResult
from ..schemas.requests import MomToggle, ResultsRequest, SideBetRequest, StatsUpload, StatusUpdate
from ..schemas.scorecard import Scorecard
from ..services.registry import Registry
from ..services.fantasy_points import economy_rate, strike_rate
from ..services.scoring import summarize

router = APIRouter(prefix="/admin/matches", tags=["admin"])


def _require(r: Registry, match_id: str):
    try:
        return r.matches.require_match(match_id)
    except BettingError as e:
        raise as_http(e)


def _bad_request(match_id: str, e: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail={"reason": "INVALID_INPUT", "message": str(e), "matchId": match_id})


# ------------ config & generation ------------
@router.get("/{match_id}/config")
def get_config(match_id: str, r: Registry = Depends(registry_dep)):
    _require(r, match_id)
    return {"matchId": match_id, "config": r.config_for(match_id),
            "isDefault": r.questions.get_match_config(match_id) is None}


@router.put("/{match_id}/config")
def put_config(match_id: str, config: MatchBettingConfig, r: Registry = Depends(registry_dep)):
    _require(r, match_id)
    r.questions.save_match_config(match_id, config)
    return {"success": True, "matchId": match_id, "config": config}


@router.post("/{match_id}/standard-pack", summary="(Re)generate the STANDARD section; SIDE is left as is")
def standard_pack(match_id: str, r: Registry = Depends(registry_dep)):
    try:
        pack = r.generate_standard_pack(match_id)
    except BettingError as e:
        raise as_http(e)
    return {"matchId": match_id, "count": len(pack), "questions": pack}


@router.post("/{match_id}/side-bets", summary="(Re)generate the SIDE section from the template library")
def side_bets(match_id: str, body: Optional[SideBetRequest] = None, r: Registry = Depends(registry_dep)):
    body = body or SideBetRequest()
    try:
        side = r.generate_side_bets(match_id, body.template_ids, body.count, body.override_points)
    except BettingError as e:
        raise as_http(e)
    return {"matchId": match_id, "count": len(side), "questions": side}


@router.put("/{match_id}/status")
def set_status(match_id: str, body: StatusUpdate, r: Registry = Depends(registry_dep)):
    try:
        match = r.matches.set_status(match_id, body.status)
    except BettingError as e:
        raise as_http(e)
    return {"success": True, "match": match}


# ------------ stats ------------
@router.put("/{match_id}/stats", summary="Upsert player stat rows for a match")
def put_stats(match_id: str, body: StatsUpload, r: Registry = Depends(registry_dep)):
    _require(r, match_id)
    try:
        saved = r.stats.save_stats(match_id, body.stats, body.derive_flags)
    except BettingError as e:
        raise as_http(e)
    except ValueError as e:
        raise _bad_request(match_id, e)
    return {"success": True, "count": len(saved), "fantasyPoints": r.stats.fantasy_points(match_id)}


@router.post("/{match_id}/mom", summary="Toggle man of the match (one per match)")
def toggle_mom(match_id: str, body: MomToggle, r: Registry = Depends(registry_dep)):
    match = _require(r, match_id)
    if body.player_id not in {p.player_id for p in r.matches.players_for(match)}:
        raise HTTPException(
            status_code=404,
            detail={"reason": "PLAYER_NOT_FOUND", "message": "Player is not in either squad", "playerId": body.player_id},
        )
    try:
        holder = r.stats.toggle_mom(match_id, body.player_id)
    except BettingError as e:
        raise as_http(e)
    return {"matchId": match_id, "manOfMatch": holder}


@router.post("/{match_id}/scorecard", summary="Ingest a typed scorecard (cricket overs notation)")
def scorecard(match_id: str, card: Scorecard, r: Registry = Depends(registry_dep)):
    try:
        rows = r.ingest_scorecard(match_id, card)
    except BettingError as e:
        raise as_http(e)
    return {
        "matchId": match_id,
        "count": len(rows),
        "manOfMatch": r.stats.man_of_match(match_id),
        "fantasyPoints": r.stats.fantasy_points(match_id),
        "rates": {s.player_id: {"strikeRate": strike_rate(s), "economy": economy_rate(s)} for s in rows},
        "result": r.results.get(match_id),
    }


# ------------ results & scoring ------------
@router.post("/{match_id}/results", summary="Record the outcome; locks the match and its bets")
def results(match_id: str, body: ResultsRequest, r: Registry = Depends(registry_dep)):
    try:
        result = r.record_result(MatchResult(match_id=match_id, **body.model_dump()))
    except BettingError as e:
        raise as_http(e)
    return {"success": True, "result": result}


@router.post("/{match_id}/score", summary="Score every bet on the match")
def score(match_id: str, r: Registry = Depends(registry_dep)):
    try:
        scores = r.score(match_id)
    except BettingError as e:
        raise as_http(e)
    return {"matchId": match_id, "scored": len(scores), "scores": summarize(scores)}
