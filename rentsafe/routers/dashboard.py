from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..schemas import FinancialSummaryOut
from ..services.dashboard_rollups import compute_dashboard, compute_financials, compute_reminders
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_property

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=dict)
def dashboard_summary(
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """
    Portfolio overview over every active property:
      - open maintenance count, upcoming inspections, recent activity
      - critical compliance (non-valid documents)
      - this month's rent collection breakdown

    failed_subscriptions lists properties whose child data could not be read;
    their slices count as empty.
    """
    return compute_dashboard(store, owner_id=p.owner_id)


@router.get("/reminders", response_model=list[dict])
def reminders(
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return compute_reminders(store, owner_id=p.owner_id)


@router.get("/financials", response_model=FinancialSummaryOut)
def financials(
    year: Optional[int] = Query(default=None, ge=1900, le=2200),
    property_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    if property_id is not None:
        _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    summary = compute_financials(
        store,
        owner_id=p.owner_id,
        year=year or datetime.utcnow().year,
        property_id=property_id,
    )
    return asdict(summary)
