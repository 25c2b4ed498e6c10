# fantasy_cricket/routers/bets.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import BettingError
from ..deps import as_http, registry_dep
from ..schemas.requests import BetSubmitRequest
from ..services.registry import Registry

router = APIRouter(tags=["bets"])


@router.post("/bets", summary="Create or replace the caller's bet on a match")
def submit_bet(body: BetSubmitRequest, r: Registry = Depends(registry_dep)):
    try:
        bet = r.bets.submit_bet(
            body.user_id,
            body.match_id,
            answers=body.answers,
            player_picks=body.player_picks,
            side_bet_answers=body.side_bet_answers,
            runner_picks=body.runner_picks,
        )
    except BettingError as e:
        raise as_http(e)
    return {"success": True, "betId": bet.bet_id, "bet": bet}


@router.get("/bets/{match_id}")
def get_bet(match_id: str, user_id: str = Query(..., description="Bet owner"), r: Registry = Depends(registry_dep)):
    bet = r.bets.get_bet(user_id, match_id)
    if bet is None:
        raise HTTPException(
            status_code=404,
            detail={"reason": "BET_NOT_FOUND", "message": "No bet for this user and match", "matchId": match_id},
        )
    return bet
