from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.audit import audit_write
from ..domain.rent_ledger import amount_paid_for_status, annual_rent_statement, normalize_month
from ..domain.vocab import COLLECTION_RENT_PAYMENTS
from ..models import RentPayment
from ..schemas import RentPaymentOut, RentStatementOut, RentStatusUpdate
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_property

router = APIRouter(prefix="/properties/{property_id}/rent", tags=["rent"])


@router.get("/{year}", response_model=RentStatementOut)
def rent_statement(
    property_id: int,
    year: int = Path(ge=1900, le=2200),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    """Twelve months for one property. Months with nothing stored read as Pending."""
    prop = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    rows = db.scalars(
        select(RentPayment).where(
            RentPayment.owner_id == p.owner_id,
            RentPayment.property_id == prop.id,
            RentPayment.year == year,
        )
    ).all()
    return {
        "property_id": prop.id,
        "year": year,
        "rows": annual_rent_statement(rows, property_id=prop.id, year=year, default_rent=prop.monthly_rent),
    }


@router.put("/{year}/{month}", response_model=RentPaymentOut)
def set_rent_status(
    property_id: int,
    month: str,
    payload: RentStatusUpdate,
    year: int = Path(ge=1900, le=2200),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """
    Upsert the ledger entry for (property, year, month).
    Paid records amount_paid = expected amount; anything else records 0
    unless amount_paid is given.
    """
    prop = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    try:
        month_name = normalize_month(month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    row = db.scalar(
        select(RentPayment).where(
            RentPayment.owner_id == p.owner_id,
            RentPayment.property_id == prop.id,
            RentPayment.year == year,
            RentPayment.month == month_name,
        )
    )
    before = row.to_dict() if row else None

    expected = payload.expected_amount
    if expected is None:
        expected = row.expected_amount if row else float(prop.monthly_rent or 0.0)

    if row is None:
        row = RentPayment(owner_id=p.owner_id, property_id=prop.id, year=year, month=month_name)
        db.add(row)
    row.status = payload.status
    row.expected_amount = float(expected)
    row.amount_paid = amount_paid_for_status(payload.status, expected, payload.amount_paid)

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"rent entry for {month_name} {year} was written concurrently")

    audit_write(
        db,
        owner_id=p.owner_id,
        action="rent.set_status",
        entity_type="RentPayment",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, prop.id, COLLECTION_RENT_PAYMENTS)
    return row
