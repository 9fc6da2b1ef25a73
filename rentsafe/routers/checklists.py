from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.checklists import TENANCY_TEMPLATE, blank_checklist, normalize_checklist, summarize_checklist
from ..domain.vocab import COLLECTION_CHECKLISTS
from ..models import TenancyChecklist
from ..schemas import ChecklistSummaryOut, TenancyChecklistCreate, TenancyChecklistOut
from ..services.child_writes import create_child, delete_child, update_child
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_child, must_get_property, must_get_tenant

router = APIRouter(tags=["checklists"])


def checklist_view(row: TenancyChecklist) -> TenancyChecklistOut:
    out = TenancyChecklistOut.model_validate(row)
    summary = summarize_checklist(TENANCY_TEMPLATE, out.checklist)
    return out.model_copy(update={"checklist_summary": ChecklistSummaryOut(**asdict(summary))})


def _values(db: Session, p: Principal, property_id: int, payload: TenancyChecklistCreate) -> dict[str, Any]:
    tenant = must_get_tenant(db, owner_id=p.owner_id, tenant_id=payload.tenant_id)
    if tenant.property_id != property_id:
        raise HTTPException(status_code=422, detail="tenant does not belong to this property")

    values = payload.model_dump()
    checklist = values.pop("checklist")
    values["checklist_json"] = json.dumps(normalize_checklist(TENANCY_TEMPLATE, checklist))
    return values


@router.get("/checklists/template")
def tenancy_checklist_template():
    return blank_checklist(TENANCY_TEMPLATE)


@router.post("/properties/{property_id}/checklists", response_model=TenancyChecklistOut)
def create_tenancy_checklist(
    property_id: int,
    payload: TenancyChecklistCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    row = create_child(
        db,
        store,
        p,
        TenancyChecklist,
        property_id=property_id,
        collection=COLLECTION_CHECKLISTS,
        values=_values(db, p, property_id, payload),
    )
    return checklist_view(row)


@router.get("/properties/{property_id}/checklists", response_model=list[TenancyChecklistOut])
def list_tenancy_checklists(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    q = (
        select(TenancyChecklist)
        .where(TenancyChecklist.owner_id == p.owner_id, TenancyChecklist.property_id == property_id)
        .order_by(desc(TenancyChecklist.completed_date), desc(TenancyChecklist.id))
    )
    return [checklist_view(r) for r in db.scalars(q).all()]


@router.get("/properties/{property_id}/checklists/{checklist_id}", response_model=TenancyChecklistOut)
def get_tenancy_checklist(
    property_id: int,
    checklist_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_get_child(db, TenancyChecklist, owner_id=p.owner_id, property_id=property_id, child_id=checklist_id)
    return checklist_view(row)


@router.put("/properties/{property_id}/checklists/{checklist_id}", response_model=TenancyChecklistOut)
def update_tenancy_checklist(
    property_id: int,
    checklist_id: int,
    payload: TenancyChecklistCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    _ = must_get_child(db, TenancyChecklist, owner_id=p.owner_id, property_id=property_id, child_id=checklist_id)
    row = update_child(
        db,
        store,
        p,
        TenancyChecklist,
        property_id=property_id,
        child_id=checklist_id,
        collection=COLLECTION_CHECKLISTS,
        values=_values(db, p, property_id, payload),
    )
    return checklist_view(row)


@router.delete("/properties/{property_id}/checklists/{checklist_id}")
def delete_tenancy_checklist(
    property_id: int,
    checklist_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return delete_child(
        db, store, p, TenancyChecklist, property_id=property_id, child_id=checklist_id, collection=COLLECTION_CHECKLISTS
    )
