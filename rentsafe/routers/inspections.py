from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.checklists import blank_checklist, inspection_template, normalize_checklist, summarize_checklist
from ..domain.vocab import COLLECTION_INSPECTIONS
from ..models import Inspection
from ..schemas import ChecklistSummaryOut, InspectionCreate, InspectionOut
from ..services.child_writes import create_child, delete_child, update_child
from ..services.dashboard_rollups import compute_portfolio_list
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_child, must_get_property

router = APIRouter(tags=["inspections"])


def inspection_view(row: Inspection) -> InspectionOut:
    out = InspectionOut.model_validate(row)
    summary = summarize_checklist(inspection_template(out.inspection_type), out.checklist)
    return out.model_copy(update={"checklist_summary": ChecklistSummaryOut(**asdict(summary))})


def _values(payload: InspectionCreate) -> dict[str, Any]:
    values = payload.model_dump()
    checklist = values.pop("checklist")
    values["checklist_json"] = json.dumps(normalize_checklist(inspection_template(payload.inspection_type), checklist))
    if payload.inspection_type != "HMO":
        values["occupant_count"] = None
        values["licence_expiry_date"] = None
    return values


@router.get("/inspections/templates/{inspection_type}")
def get_inspection_template(inspection_type: str):
    try:
        template = inspection_template(inspection_type)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"inspection_type": inspection_type, "checklist": blank_checklist(template)}


@router.get("/inspections")
def portfolio_inspections(
    status: Optional[list[str]] = Query(default=None),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """Every inspection across active properties, newest scheduled date first."""
    return compute_portfolio_list(
        store,
        owner_id=p.owner_id,
        collection=COLLECTION_INSPECTIONS,
        date_field="scheduled_date",
        statuses=status,
    )


@router.post("/properties/{property_id}/inspections", response_model=InspectionOut)
def create_inspection(
    property_id: int,
    payload: InspectionCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = create_child(
        db,
        store,
        p,
        Inspection,
        property_id=property_id,
        collection=COLLECTION_INSPECTIONS,
        values=_values(payload),
    )
    return inspection_view(row)


@router.get("/properties/{property_id}/inspections", response_model=list[InspectionOut])
def list_inspections(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    q = (
        select(Inspection)
        .where(Inspection.owner_id == p.owner_id, Inspection.property_id == property_id)
        .order_by(desc(Inspection.scheduled_date), desc(Inspection.id))
    )
    return [inspection_view(r) for r in db.scalars(q).all()]


@router.get("/properties/{property_id}/inspections/{inspection_id}", response_model=InspectionOut)
def get_inspection(
    property_id: int,
    inspection_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_get_child(db, Inspection, owner_id=p.owner_id, property_id=property_id, child_id=inspection_id)
    return inspection_view(row)


@router.put("/properties/{property_id}/inspections/{inspection_id}", response_model=InspectionOut)
def update_inspection(
    property_id: int,
    inspection_id: int,
    payload: InspectionCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = update_child(
        db,
        store,
        p,
        Inspection,
        property_id=property_id,
        child_id=inspection_id,
        collection=COLLECTION_INSPECTIONS,
        values=_values(payload),
    )
    return inspection_view(row)


@router.delete("/properties/{property_id}/inspections/{inspection_id}")
def delete_inspection(
    property_id: int,
    inspection_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return delete_child(
        db, store, p, Inspection, property_id=property_id, child_id=inspection_id, collection=COLLECTION_INSPECTIONS
    )
