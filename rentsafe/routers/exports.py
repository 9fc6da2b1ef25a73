from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..config import settings
from ..db import get_db
from ..domain.checklists import SCREENING_TEMPLATE, summarize_checklist
from ..domain.derived_status import assess_affordability, format_address
from ..models import TenantScreening
from ..services.dashboard_rollups import compute_financials, compute_portfolio_documents, compute_property_export
from ..services.document_store import DocumentStore, get_store, record_from_row
from ..services.exports import compliance_report_pdf, properties_csv, screening_report_pdf, tax_summary_pdf
from ..services.ownership import must_get_property

router = APIRouter(prefix="/exports", tags=["exports"])

CSV_FILENAME = "rentsafe_portfolio_export.csv"


def _pdf(body: bytes, filename: str) -> Response:
    return Response(
        content=body,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/properties.csv")
def export_properties_csv(
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    props, open_counts = compute_property_export(store, owner_id=p.owner_id)
    body = properties_csv(props, open_counts)
    return StreamingResponse(
        iter([body]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )


@router.get("/compliance.pdf")
def export_compliance_pdf(
    property_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    view = compute_portfolio_documents(store, owner_id=p.owner_id, property_id=property_id, status=status)
    body = compliance_report_pdf(view["documents"], generated_for=p.email, generated_at=datetime.utcnow())
    return _pdf(body, "compliance_report.pdf")


@router.get("/tax-summary.pdf")
def export_tax_summary_pdf(
    year: Optional[int] = Query(default=None, ge=1900, le=2200),
    property_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    scope = "All Properties"
    if property_id is not None:
        scope = format_address(must_get_property(db, owner_id=p.owner_id, property_id=property_id))

    summary = compute_financials(
        store,
        owner_id=p.owner_id,
        year=year or datetime.utcnow().year,
        property_id=property_id,
    )
    body = tax_summary_pdf(summary, generated_for=p.email, scope=scope)
    return _pdf(body, f"hmrc_tax_summary_{summary.year}.pdf")


@router.get("/screenings/{screening_id}.pdf")
def export_screening_pdf(
    screening_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = db.scalar(
        select(TenantScreening).where(TenantScreening.id == screening_id, TenantScreening.owner_id == p.owner_id)
    )
    if not row:
        raise HTTPException(status_code=404, detail="screening not found")

    screening = record_from_row(row)
    tenant = row.tenant
    body = screening_report_pdf(
        tenant=tenant.to_dict(),
        property_=tenant.property.to_dict() if tenant.property else None,
        screening=screening,
        affordability=assess_affordability(
            row.monthly_rent, row.monthly_income, threshold_pct=settings.affordability_risk_pct
        ),
        summary=summarize_checklist(SCREENING_TEMPLATE, screening.get("checklist")),
    )
    return _pdf(body, f"screening_{screening_id}.pdf")
