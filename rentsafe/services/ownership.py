from __future__ import annotations

from typing import Type, TypeVar

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Contractor, Property, Tenant, TenantScreening

T = TypeVar("T")


def must_get_property(db: Session, *, owner_id: int, property_id: int) -> Property:
    row = db.scalar(select(Property).where(Property.id == property_id, Property.owner_id == owner_id))
    if not row:
        raise HTTPException(status_code=404, detail="property not found")
    return row


def must_get_tenant(db: Session, *, owner_id: int, tenant_id: int) -> Tenant:
    row = db.scalar(select(Tenant).where(Tenant.id == tenant_id, Tenant.owner_id == owner_id))
    if not row:
        raise HTTPException(status_code=404, detail="tenant not found")
    return row


def must_get_screening(db: Session, *, owner_id: int, tenant_id: int, screening_id: int) -> TenantScreening:
    row = db.scalar(
        select(TenantScreening).where(
            TenantScreening.id == screening_id,
            TenantScreening.tenant_id == tenant_id,
            TenantScreening.owner_id == owner_id,
        )
    )
    if not row:
        raise HTTPException(status_code=404, detail="screening not found")
    return row


def must_get_child(db: Session, model: Type[T], *, owner_id: int, property_id: int, child_id: int) -> T:
    """Child record under owners/{owner}/properties/{property}/..."""
    row = db.scalar(
        select(model).where(
            model.id == child_id,
            model.owner_id == owner_id,
            model.property_id == property_id,
        )
    )
    if not row:
        raise HTTPException(status_code=404, detail=f"{model.__tablename__.rstrip('s')} not found")
    return row


def must_get_contractor(db: Session, *, owner_id: int, contractor_id: int) -> Contractor:
    row = db.scalar(select(Contractor).where(Contractor.id == contractor_id, Contractor.owner_id == owner_id))
    if not row:
        raise HTTPException(status_code=404, detail="contractor not found")
    return row
