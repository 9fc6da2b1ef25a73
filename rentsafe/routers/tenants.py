from __future__ import annotations

import json
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..config import settings
from ..db import get_db
from ..domain.audit import audit_write
from ..domain.checklists import SCREENING_TEMPLATE, blank_checklist, normalize_checklist, summarize_checklist
from ..domain.derived_status import assess_affordability
from ..domain.vocab import COLLECTION_TENANTS, TENANT_ACTIVE, TENANT_ARCHIVED, TENANT_STATUSES
from ..models import Tenant, TenantScreening
from ..schemas import (
    AffordabilityOut,
    ChecklistSummaryOut,
    ScreeningCreate,
    ScreeningOut,
    TenantCreate,
    TenantOut,
)
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_property, must_get_screening, must_get_tenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


def screening_view(row: TenantScreening) -> ScreeningOut:
    """Screening plus its affordability assessment and checklist progress."""
    out = ScreeningOut.model_validate(row)
    aff = assess_affordability(out.monthly_rent, out.monthly_income, threshold_pct=settings.affordability_risk_pct)
    summary = summarize_checklist(SCREENING_TEMPLATE, out.checklist)
    return out.model_copy(
        update={
            "affordability": (
                AffordabilityOut(
                    ratio=round(aff.ratio, 1), display=aff.display, is_risky=aff.is_risky, message=aff.message
                )
                if aff
                else None
            ),
            "checklist_summary": ChecklistSummaryOut(**asdict(summary)),
        }
    )


@router.post("", response_model=TenantOut)
def create_tenant(
    payload: TenantCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=payload.property_id)

    row = Tenant(**payload.model_dump(), owner_id=p.owner_id, status=TENANT_ACTIVE)
    db.add(row)
    db.flush()

    audit_write(db, owner_id=p.owner_id, action="tenant.create", entity_type="Tenant", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, row.property_id, COLLECTION_TENANTS)
    return row


@router.get("", response_model=list[TenantOut])
def list_tenants(
    status: str = Query(default=TENANT_ACTIVE, description="Active|Archived"),
    property_id: Optional[int] = Query(default=None),
    limit: int = Query(default=500, ge=1, le=2000),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    if status not in TENANT_STATUSES:
        raise HTTPException(status_code=422, detail=f"unknown status: {status}")

    q = select(Tenant).where(Tenant.owner_id == p.owner_id, Tenant.status == status)
    if property_id is not None:
        q = q.where(Tenant.property_id == property_id)
    return list(db.scalars(q.order_by(Tenant.full_name, Tenant.id).limit(limit)).all())


@router.get("/{tenant_id}", response_model=TenantOut)
def get_tenant(tenant_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)


@router.put("/{tenant_id}", response_model=TenantOut)
def update_tenant(
    tenant_id: int,
    payload: TenantCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)
    _ = must_get_property(db, owner_id=p.owner_id, property_id=payload.property_id)
    before = row.to_dict()
    old_property_id = row.property_id

    for k, v in payload.model_dump().items():
        setattr(row, k, v)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action="tenant.update",
        entity_type="Tenant",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, row.property_id, COLLECTION_TENANTS)
    if old_property_id != row.property_id:
        store.notify(p.owner_id, old_property_id, COLLECTION_TENANTS)
    return row


def _set_tenant_status(
    db: Session, p: Principal, store: DocumentStore, tenant_id: int, status: str, action: str
) -> Tenant:
    row = must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)
    if row.status == status:
        raise HTTPException(status_code=409, detail=f"tenant already {status.lower()}")

    before = row.to_dict()
    row.status = status
    db.flush()
    audit_write(
        db,
        owner_id=p.owner_id,
        action=action,
        entity_type="Tenant",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, row.property_id, COLLECTION_TENANTS)
    return row


@router.post("/{tenant_id}/archive", response_model=TenantOut)
def archive_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return _set_tenant_status(db, p, store, tenant_id, TENANT_ARCHIVED, "tenant.archive")


@router.post("/{tenant_id}/unarchive", response_model=TenantOut)
def unarchive_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return _set_tenant_status(db, p, store, tenant_id, TENANT_ACTIVE, "tenant.unarchive")


@router.delete("/{tenant_id}")
def delete_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)
    property_id = row.property_id

    audit_write(
        db,
        owner_id=p.owner_id,
        action="tenant.delete",
        entity_type="Tenant",
        entity_id=row.id,
        before=row.to_dict(),
    )
    db.delete(row)
    db.commit()

    store.notify(p.owner_id, property_id, COLLECTION_TENANTS)
    return {"ok": True}


# -------------------- Screenings --------------------

@router.get("/screenings/template")
def screening_template():
    return blank_checklist(SCREENING_TEMPLATE)


@router.post("/{tenant_id}/screenings", response_model=ScreeningOut)
def create_screening(
    tenant_id: int,
    payload: ScreeningCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    tenant = must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)

    rent = payload.monthly_rent
    if rent is None:
        rent = tenant.monthly_rent if tenant.monthly_rent is not None else tenant.property.monthly_rent

    row = TenantScreening(
        owner_id=p.owner_id,
        tenant_id=tenant.id,
        property_id=tenant.property_id,
        screening_date=payload.screening_date,
        monthly_income=payload.monthly_income,
        monthly_rent=rent,
        checklist_json=json.dumps(normalize_checklist(SCREENING_TEMPLATE, payload.checklist)),
        overall_notes=payload.overall_notes,
    )
    db.add(row)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action="screening.create",
        entity_type="TenantScreening",
        entity_id=row.id,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)
    return screening_view(row)


@router.get("/{tenant_id}/screenings", response_model=list[ScreeningOut])
def list_screenings(tenant_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    tenant = must_get_tenant(db, owner_id=p.owner_id, tenant_id=tenant_id)
    q = (
        select(TenantScreening)
        .where(TenantScreening.owner_id == p.owner_id, TenantScreening.tenant_id == tenant.id)
        .order_by(desc(TenantScreening.screening_date), desc(TenantScreening.id))
    )
    return [screening_view(r) for r in db.scalars(q).all()]


@router.get("/{tenant_id}/screenings/{screening_id}", response_model=ScreeningOut)
def get_screening(
    tenant_id: int,
    screening_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_get_screening(db, owner_id=p.owner_id, tenant_id=tenant_id, screening_id=screening_id)
    return screening_view(row)
