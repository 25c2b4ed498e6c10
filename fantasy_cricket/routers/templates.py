from __future__ import annotations

from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..deps import registry_dep
from ..services import templates
from ..services.registry import Registry

router = APIRouter(tags=["templates"])


@router.get("/templates", summary="Side-bet library, optionally filtered by tags (any match)")
def list_templates(
    tags: Optional[List[str]] = Query(None, description="Repeat the parameter for several tags"),
    r: Registry = Depends(registry_dep),
):
    rows = templates.filter_templates_by_tags(r.library, tags)
    return {"count": len(rows), "templates": rows}


@router.get("/templates/tags")
def list_tags(r: Registry = Depends(registry_dep)):
    return {"tags": templates.all_tags(r.library)}
