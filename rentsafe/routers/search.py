from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..services.search import global_search

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=dict)
def search(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return global_search(db, owner_id=p.owner_id, term=q, limit=limit)
