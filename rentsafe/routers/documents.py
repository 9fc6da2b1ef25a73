from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..config import settings
from ..db import get_db
from ..domain.derived_status import document_status
from ..domain.vocab import COLLECTION_DOCUMENTS
from ..models import Document
from ..schemas import DocumentCreate, DocumentOut
from ..services.child_writes import create_child, delete_child, update_child
from ..services.dashboard_rollups import compute_portfolio_documents
from ..services.document_store import DocumentStore, get_store
from ..services.ownership import must_get_child, must_get_property

router = APIRouter(tags=["documents"])


def document_view(row: Document) -> DocumentOut:
    out = DocumentOut.model_validate(row)
    return out.model_copy(
        update={"status": document_status(row.expiry_date, warning_days=settings.compliance_warning_days)}
    )


@router.get("/documents")
def portfolio_documents(
    property_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Expired|Expiring Soon|Valid|All"),
    search: Optional[str] = Query(default=None),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    """Compliance documents across active properties with status counts."""
    return compute_portfolio_documents(
        store,
        owner_id=p.owner_id,
        property_id=property_id,
        status=status,
        search=search,
    )


@router.post("/properties/{property_id}/documents", response_model=DocumentOut)
def create_document(
    property_id: int,
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = create_child(
        db,
        store,
        p,
        Document,
        property_id=property_id,
        collection=COLLECTION_DOCUMENTS,
        values=payload.model_dump(),
    )
    return document_view(row)


@router.get("/properties/{property_id}/documents", response_model=list[DocumentOut])
def list_documents(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)
    q = (
        select(Document)
        .where(Document.owner_id == p.owner_id, Document.property_id == property_id)
        .order_by(Document.expiry_date, Document.id)
    )
    return [document_view(r) for r in db.scalars(q).all()]


@router.get("/properties/{property_id}/documents/{document_id}", response_model=DocumentOut)
def get_document(
    property_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_get_child(db, Document, owner_id=p.owner_id, property_id=property_id, child_id=document_id)
    return document_view(row)


@router.put("/properties/{property_id}/documents/{document_id}", response_model=DocumentOut)
def update_document(
    property_id: int,
    document_id: int,
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    row = update_child(
        db,
        store,
        p,
        Document,
        property_id=property_id,
        child_id=document_id,
        collection=COLLECTION_DOCUMENTS,
        values=payload.model_dump(),
    )
    return document_view(row)


@router.delete("/properties/{property_id}/documents/{document_id}")
def delete_document(
    property_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return delete_child(
        db, store, p, Document, property_id=property_id, child_id=document_id, collection=COLLECTION_DOCUMENTS
    )
