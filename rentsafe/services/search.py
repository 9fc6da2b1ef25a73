from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.derived_status import format_address
from ..domain.vocab import is_active_status
from ..models import Contractor, Property, Tenant


def global_search(db: Session, *, owner_id: int, term: str, limit: int = 10) -> dict[str, list[dict[str, Any]]]:
    """
    Case-insensitive substring match.
    Properties match on their formatted address (soft-deleted ones excluded);
    tenants match on name or email; contractors match on name or trade.
    """
    t = (term or "").strip().lower()
    if not t:
        return {"properties": [], "tenants": [], "contractors": []}

    props = db.scalars(
        select(Property).where(Property.owner_id == owner_id).order_by(Property.id)
    ).all()
    prop_hits = []
    for p in props:
        if not is_active_status(p.status):
            continue
        addr = format_address(p)
        if t in addr.lower():
            prop_hits.append({"id": p.id, "address": addr, "status": p.status})
        if len(prop_hits) >= limit:
            break

    tenants = db.scalars(select(Tenant).where(Tenant.owner_id == owner_id).order_by(Tenant.id)).all()
    tenant_hits = []
    for tn in tenants:
        if t in (tn.full_name or "").lower() or t in (tn.email or "").lower():
            tenant_hits.append(
                {"id": tn.id, "full_name": tn.full_name, "email": tn.email, "property_id": tn.property_id, "status": tn.status}
            )
        if len(tenant_hits) >= limit:
            break

    contractors = db.scalars(
        select(Contractor).where(Contractor.owner_id == owner_id).order_by(Contractor.name, Contractor.id)
    ).all()
    contractor_hits = []
    for c in contractors:
        if t in (c.name or "").lower() or t in (c.trade or "").lower():
            contractor_hits.append(
                {"id": c.id, "name": c.name, "trade": c.trade, "phone": c.phone, "status": c.status}
            )
        if len(contractor_hits) >= limit:
            break

    return {"properties": prop_hits, "tenants": tenant_hits, "contractors": contractor_hits}
