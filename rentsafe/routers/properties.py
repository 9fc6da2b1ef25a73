from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.audit import audit_write
from ..domain.vocab import ACTIVE_PROPERTY_STATUSES, PROPERTY_DELETED, PROPERTY_STATUSES, PROPERTY_VACANT
from ..models import Property
from ..schemas import PropertyCreate, PropertyOut, PropertyUpdate
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_property

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("", response_model=PropertyOut)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = Property(**payload.model_dump(), owner_id=p.owner_id)
    db.add(row)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action="property.create",
        entity_type="Property",
        entity_id=row.id,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id)
    return row


@router.get("", response_model=list[PropertyOut])
def list_properties(
    status: Optional[str] = Query(default=None, description="Vacant|Occupied|Under Maintenance|Deleted"),
    limit: int = Query(default=500, ge=1, le=2000),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    """
    Active properties by default. status=Deleted returns the soft-deleted list.
    """
    if status is None:
        statuses = ACTIVE_PROPERTY_STATUSES
    elif status in PROPERTY_STATUSES:
        statuses = (status,)
    else:
        raise HTTPException(status_code=422, detail=f"unknown status: {status}")

    q = (
        select(Property)
        .where(Property.owner_id == p.owner_id, Property.status.in_(statuses))
        .order_by(Property.id)
        .limit(limit)
    )
    return list(db.scalars(q).all())


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_property(db, owner_id=p.owner_id, property_id=property_id)


@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    if row.status == PROPERTY_DELETED:
        raise HTTPException(status_code=409, detail="property is deleted; restore it first")

    before = row.to_dict()
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(row, k, v)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action="property.update",
        entity_type="Property",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id)
    return row


def _set_status(db: Session, p: Principal, store: DocumentStore, row: Property, status: str, action: str) -> Property:
    before = row.to_dict()
    row.status = status
    db.flush()
    audit_write(
        db,
        owner_id=p.owner_id,
        action=action,
        entity_type="Property",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)
    store.notify(p.owner_id)
    return row


@router.delete("/{property_id}", response_model=PropertyOut)
def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """Soft delete. The row and its children stay; it just leaves every active view."""
    row = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    if row.status == PROPERTY_DELETED:
        raise HTTPException(status_code=409, detail="property already deleted")
    return _set_status(db, p, store, row, PROPERTY_DELETED, "property.delete")


@router.post("/{property_id}/restore", response_model=PropertyOut)
def restore_property(
    property_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    if row.status != PROPERTY_DELETED:
        raise HTTPException(status_code=409, detail="property is not deleted")
    return _set_status(db, p, store, row, PROPERTY_VACANT, "property.restore")
