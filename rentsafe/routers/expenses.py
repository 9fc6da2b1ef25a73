from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.cashflow import expenses_in_year
from ..domain.vocab import COLLECTION_EXPENSES
from ..models import Expense
from ..schemas import ExpenseCreate, ExpenseOut
from ..services.child_writes import create_child, delete_child, update_child
from ..services.dashboard_rollups import compute_portfolio_list
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_child, must_get_property

router = APIRouter(tags=["expenses"])


@router.get("/expenses")
def portfolio_expenses(
    year: Optional[int] = Query(default=None, ge=1900, le=2200),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    out = compute_portfolio_list(
        store,
        owner_id=p.owner_id,
        collection=COLLECTION_EXPENSES,
        date_field="expense_date",
    )
    if year is not None:
        out["items"] = expenses_in_year(out["items"], year)
    out["total"] = round(sum(float(e.get("amount") or 0.0) for e in out["items"]), 2)
    return out


@router.post("/properties/{property_id}/expenses", response_model=ExpenseOut)
def create_expense(
    property_id: int,
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return create_child(
        db,
        store,
        p,
        Expense,
        property_id=property_id,
        collection=COLLECTION_EXPENSES,
        values=payload.model_dump(),
    )


@router.get("/properties/{property_id}/expenses", response_model=list[ExpenseOut])
def list_expenses(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    q = (
        select(Expense)
        .where(Expense.owner_id == p.owner_id, Expense.property_id == property_id)
        .order_by(desc(Expense.expense_date), desc(Expense.id))
    )
    return list(db.scalars(q).all())


@router.get("/properties/{property_id}/expenses/{expense_id}", response_model=ExpenseOut)
def get_expense(
    property_id: int,
    expense_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return must_get_child(db, Expense, owner_id=p.owner_id, property_id=property_id, child_id=expense_id)


@router.put("/properties/{property_id}/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    property_id: int,
    expense_id: int,
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return update_child(
        db,
        store,
        p,
        Expense,
        property_id=property_id,
        child_id=expense_id,
        collection=COLLECTION_EXPENSES,
        values=payload.model_dump(),
    )


@router.delete("/properties/{property_id}/expenses/{expense_id}")
def delete_expense(
    property_id: int,
    expense_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return delete_child(
        db, store, p, Expense, property_id=property_id, child_id=expense_id, collection=COLLECTION_EXPENSES
    )
