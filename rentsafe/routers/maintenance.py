from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.vocab import COLLECTION_MAINTENANCE, CONTRACTOR_ACTIVE
from ..models import MaintenanceLog
from ..schemas import MaintenanceCreate, MaintenanceOut
from ..services.child_writes import create_child, delete_child, update_child
from ..services.dashboard_rollups import compute_portfolio_list
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_child, must_get_contractor, must_get_property

router = APIRouter(tags=["maintenance"])


def _values(db: Session, p: Principal, payload: MaintenanceCreate) -> dict[str, Any]:
    values = payload.model_dump()
    if values["reported_date"] is None:
        values["reported_date"] = datetime.utcnow()
    if values["status"] == "Completed" and values["completed_date"] is None:
        values["completed_date"] = datetime.utcnow()
    if payload.contractor_id is not None:
        # Picking from the directory copies its name and phone onto the log.
        contractor = must_get_contractor(db, owner_id=p.owner_id, contractor_id=payload.contractor_id)
        if contractor.status != CONTRACTOR_ACTIVE:
            raise HTTPException(status_code=422, detail="contractor is archived")
        values["contractor_name"] = contractor.name
        values["contractor_phone"] = contractor.phone
    return values


@router.get("/maintenance")
def portfolio_maintenance(
    status: Optional[list[str]] = Query(default=None),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """Every maintenance log across active properties, newest first."""
    return compute_portfolio_list(
        store,
        owner_id=p.owner_id,
        collection=COLLECTION_MAINTENANCE,
        date_field="reported_date",
        statuses=status,
    )


@router.post("/properties/{property_id}/maintenance", response_model=MaintenanceOut)
def create_maintenance(
    property_id: int,
    payload: MaintenanceCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return create_child(
        db,
        store,
        p,
        MaintenanceLog,
        property_id=property_id,
        collection=COLLECTION_MAINTENANCE,
        values=_values(db, p, payload),
    )


@router.get("/properties/{property_id}/maintenance", response_model=list[MaintenanceOut])
def list_maintenance(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    q = (
        select(MaintenanceLog)
        .where(MaintenanceLog.owner_id == p.owner_id, MaintenanceLog.property_id == property_id)
        .order_by(desc(MaintenanceLog.reported_date), desc(MaintenanceLog.id))
    )
    return list(db.scalars(q).all())


@router.get("/properties/{property_id}/maintenance/{log_id}", response_model=MaintenanceOut)
def get_maintenance(
    property_id: int,
    log_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return must_get_child(db, MaintenanceLog, owner_id=p.owner_id, property_id=property_id, child_id=log_id)


@router.put("/properties/{property_id}/maintenance/{log_id}", response_model=MaintenanceOut)
def update_maintenance(
    property_id: int,
    log_id: int,
    payload: MaintenanceCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return update_child(
        db,
        store,
        p,
        MaintenanceLog,
        property_id=property_id,
        child_id=log_id,
        collection=COLLECTION_MAINTENANCE,
        values=_values(db, p, payload),
    )


@router.delete("/properties/{property_id}/maintenance/{log_id}")
def delete_maintenance(
    property_id: int,
    log_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return delete_child(
        db, store, p, MaintenanceLog, property_id=property_id, child_id=log_id, collection=COLLECTION_MAINTENANCE
    )
