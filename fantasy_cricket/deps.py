# fantasy_cricket/deps.py
from fastapi import Depends, HTTPException, Request

from fantasy_cricket.core.errors import BettingError
from fantasy_cricket.services.registry import Registry

def get_registry(request: Request) -> Registry:
    """
    Returns the process registry built at startup (see main.lifespan).
    Tests install their own on ``app.state.registry``.
    """
    return request.app.state.registry

def registry_dep(r: Registry = Depends(get_registry)) -> Registry:
    return r

def as_http(e: BettingError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())
