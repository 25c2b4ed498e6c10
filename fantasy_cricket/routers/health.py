from fastapi import APIRouter, Depends, Response

from ..deps import registry_dep
from ..services.registry import Registry

router = APIRouter(tags=["health"])

@router.get("/api/v1/ping")
def ping():
    return {"pong": True}

@router.get("/health")
def health(r: Registry = Depends(registry_dep)):
    return {"status": "ok", "eventId": r.settings.event_id, "matches": len(r.matches.list_matches())}

@router.head("/")
def head_root():
    return Response(status_code=200)
