# fantasy_cricket/routers/long_term.py
from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core.errors import BettingError
from ..deps import as_http, registry_dep
from ..domain.models import LongTermResults
from ..schemas.requests import LongTermSubmitRequest, ReopenUpdate
from ..services.registry import Registry

router = APIRouter(tags=["long-term"])


@router.get("/long-term/status", summary="Lock / reopen state and the current edit cost")
def status(r: Registry = Depends(registry_dep)):
    lt = r.long_term
    return {**lt.lock_status(), "questions": lt.questions()}


@router.post("/long-term/submit")
def submit(body: LongTermSubmitRequest, r: Registry = Depends(registry_dep)):
    try:
        return r.long_term.submit(body.user_id, body.answers)
    except BettingError as e:
        raise as_http(e)


@router.get("/long-term/submissions/{user_id}")
def submission(user_id: str, r: Registry = Depends(registry_dep)):
    return {"userId": user_id, "submission": r.long_term.get_submission(user_id)}


@router.get("/long-term/points/{user_id}", summary="Spendable balance and its transaction history")
def points(user_id: str, r: Registry = Depends(registry_dep)):
    return r.long_term.points.entry(user_id)


@router.get("/long-term/audit")
def audit(user_id: Optional[str] = Query(None), r: Registry = Depends(registry_dep)):
    rows = r.long_term.audit.entries(user_id)
    return {"count": len(rows), "entries": rows}


# ------------ admin ------------
@router.put("/admin/long-term/reopen", summary="Open or close paid edits after the lock")
def reopen(body: ReopenUpdate, r: Registry = Depends(registry_dep)):
    lt = r.long_term
    try:
        if body.reopen_enabled is not None:
            lt.set_reopen_enabled(body.reopen_enabled)
        if body.reopen_cost_points is not None:
            lt.set_reopen_cost(body.reopen_cost_points)
        if body.long_term_lock_at is not None:
            lt.set_lock_at(body.long_term_lock_at)
    except BettingError as e:
        raise as_http(e)
    return lt.lock_status()


@router.post("/admin/long-term/score")
def score(results: LongTermResults, r: Registry = Depends(registry_dep)):
    scores = r.long_term.score_all(results)
    rows = [{"userId": uid, "score": s.score, "breakdown": s} for uid, s in scores.items()]
    rows.sort(key=lambda row: row["score"], reverse=True)
    return {"scored": len(rows), "scores": rows}
