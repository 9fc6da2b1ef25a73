from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.audit import audit_write
from ..domain.vocab import CONTRACTOR_ACTIVE, CONTRACTOR_ARCHIVED, CONTRACTOR_STATUSES
from ..models import Contractor
from ..schemas import ContractorCreate, ContractorOut
from ..services.ownership import must_get_contractor

router = APIRouter(prefix="/contractors", tags=["contractors"])


def _phone_taken(db: Session, *, owner_id: int, phone: str, exclude_id: Optional[int] = None) -> bool:
    """Archived contractors do not block a number from being reused."""
    q = select(Contractor.id).where(
        Contractor.owner_id == owner_id,
        Contractor.status == CONTRACTOR_ACTIVE,
        Contractor.phone == phone,
    )
    if exclude_id is not None:
        q = q.where(Contractor.id != exclude_id)
    return db.scalar(q.limit(1)) is not None


@router.post("", response_model=ContractorOut)
def create_contractor(payload: ContractorCreate, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    values = payload.model_dump()
    values["phone"] = values["phone"].strip()
    if _phone_taken(db, owner_id=p.owner_id, phone=values["phone"]):
        raise HTTPException(status_code=409, detail="a contractor with this phone number already exists")

    row = Contractor(**values, owner_id=p.owner_id, status=CONTRACTOR_ACTIVE)
    db.add(row)
    db.flush()

    audit_write(
        db, owner_id=p.owner_id, action="contractor.create", entity_type="Contractor", entity_id=row.id, after=row.to_dict()
    )
    db.commit()
    db.refresh(row)
    return row


@router.get("", response_model=list[ContractorOut])
def list_contractors(
    status: str = Query(default=CONTRACTOR_ACTIVE, description="Active|Archived"),
    trade: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    if status not in CONTRACTOR_STATUSES:
        raise HTTPException(status_code=422, detail=f"unknown status: {status}")

    q = select(Contractor).where(Contractor.owner_id == p.owner_id, Contractor.status == status)
    if trade:
        q = q.where(Contractor.trade == trade)
    return list(db.scalars(q.order_by(Contractor.name, Contractor.id)).all())


@router.get("/{contractor_id}", response_model=ContractorOut)
def get_contractor(contractor_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_contractor(db, owner_id=p.owner_id, contractor_id=contractor_id)


@router.put("/{contractor_id}", response_model=ContractorOut)
def update_contractor(
    contractor_id: int,
    payload: ContractorCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_get_contractor(db, owner_id=p.owner_id, contractor_id=contractor_id)
    values = payload.model_dump()
    values["phone"] = values["phone"].strip()
    if row.status == CONTRACTOR_ACTIVE and _phone_taken(
        db, owner_id=p.owner_id, phone=values["phone"], exclude_id=row.id
    ):
        raise HTTPException(status_code=409, detail="a contractor with this phone number already exists")

    before = row.to_dict()
    for k, v in values.items():
        setattr(row, k, v)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action="contractor.update",
        entity_type="Contractor",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)
    return row


def _set_contractor_status(db: Session, p: Principal, contractor_id: int, status: str, action: str) -> Contractor:
    row = must_get_contractor(db, owner_id=p.owner_id, contractor_id=contractor_id)
    if row.status == status:
        raise HTTPException(status_code=409, detail=f"contractor already {status.lower()}")
    if status == CONTRACTOR_ACTIVE and _phone_taken(db, owner_id=p.owner_id, phone=row.phone, exclude_id=row.id):
        raise HTTPException(status_code=409, detail="an active contractor already uses this phone number")

    before = row.to_dict()
    row.status = status
    db.flush()
    audit_write(
        db,
        owner_id=p.owner_id,
        action=action,
        entity_type="Contractor",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)
    return row


@router.post("/{contractor_id}/archive", response_model=ContractorOut)
def archive_contractor(contractor_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return _set_contractor_status(db, p, contractor_id, CONTRACTOR_ARCHIVED, "contractor.archive")


@router.post("/{contractor_id}/unarchive", response_model=ContractorOut)
def unarchive_contractor(contractor_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return _set_contractor_status(db, p, contractor_id, CONTRACTOR_ACTIVE, "contractor.unarchive")
