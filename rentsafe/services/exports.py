from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from ..config import settings
from ..domain.cashflow import HMRC_LABELS, FinancialSummary
from ..domain.checklists import ChecklistSummary
from ..domain.derived_status import Affordability, format_address, to_date

PROPERTY_CSV_HEADERS = ["Address", "County", "Type", "Status", "Bedrooms", "Bathrooms", "Postcode", "Open Maintenance"]


def _gbp(v: float) -> str:
    return f"£{float(v or 0.0):,.2f}"


def _d(v: Any) -> str:
    d = to_date(v)
    return d.strftime("%d %b %Y") if d else "-"


# -----------------------------
# CSV
# -----------------------------
def properties_csv(properties: Iterable[Mapping[str, Any]], open_maintenance: Mapping[Any, int]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(PROPERTY_CSV_HEADERS)
    for p in properties:
        writer.writerow(
            [
                format_address({k: p.get(k) for k in ("name_or_number", "street", "city")}),
                p.get("county") or "",
                p.get("property_type") or "",
                p.get("status") or "",
                p.get("bedrooms"),
                p.get("bathrooms"),
                p.get("postcode") or "",
                int(open_maintenance.get(p.get("id"), 0)),
            ]
        )
    return output.getvalue()


# -----------------------------
# PDF
# -----------------------------
class _Report(FPDF):
    def __init__(self, title: str, subtitle_lines: Iterable[str]) -> None:
        super().__init__()
        self.set_title(title)
        self.set_author(settings.export_author)
        self.add_page()
        self.set_font("Helvetica", "B", 18)
        self.cell(0, 12, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font("Helvetica", size=10)
        for line in subtitle_lines:
            self.cell(0, 6, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(4)

    def heading(self, text: str) -> None:
        self.set_font("Helvetica", "B", 12)
        self.cell(0, 8, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font("Helvetica", size=10)

    def row(self, cells: list[str], widths: list[float], *, bold: bool = False) -> None:
        self.set_font("Helvetica", "B" if bold else "", 9)
        for text, w in zip(cells, widths):
            self.cell(w, 7, text[:60], border=1)
        self.ln(7)

    def para(self, text: str) -> None:
        self.set_font("Helvetica", size=10)
        self.multi_cell(0, 6, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def render(self) -> bytes:
        return bytes(self.output())


def compliance_report_pdf(
    documents: Iterable[Mapping[str, Any]],
    *,
    generated_for: str,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Documents must already carry their derived status."""
    docs = list(documents)
    pdf = _Report(
        "Compliance Report",
        [
            f"Generated for: {generated_for}",
            f"Generated on: {_d(generated_at or datetime.utcnow())}",
            f"Documents: {len(docs)}",
        ],
    )
    widths = [55.0, 45.0, 30.0, 30.0, 30.0]
    pdf.row(["Document", "Property", "Type", "Expiry", "Status"], widths, bold=True)
    for d in docs:
        pdf.row(
            [
                str(d.get("title") or ""),
                str(d.get("property_address") or ""),
                str(d.get("document_type") or ""),
                _d(d.get("expiry_date")),
                str(d.get("status") or ""),
            ],
            widths,
        )
    return pdf.render()


def tax_summary_pdf(summary: FinancialSummary, *, generated_for: str, scope: str) -> bytes:
    pdf = _Report(
        f"HMRC Self-Assessment Export - {summary.year}",
        [f"Generated for: {generated_for}", f"Portfolio Scope: {scope}"],
    )
    widths = [130.0, 50.0]
    pdf.row(["Standard HMRC Category Grouping", "Total Amount"], widths, bold=True)
    for key, label in HMRC_LABELS.items():
        pdf.row([label, _gbp(summary.hmrc.get(key, 0.0))], widths)

    pdf.ln(4)
    pdf.heading("Summary")
    pdf.row(["Annual rent roll", _gbp(summary.annual_rent_roll)], widths)
    pdf.row(["Rent received", _gbp(summary.rent_received)], widths)
    pdf.row(["Total expenses", _gbp(summary.total_expenses)], widths)
    pdf.row(["Net income", _gbp(summary.net_income)], widths, bold=True)
    return pdf.render()


def screening_report_pdf(
    *,
    tenant: Mapping[str, Any],
    property_: Optional[Mapping[str, Any]],
    screening: Mapping[str, Any],
    affordability: Optional[Affordability],
    summary: ChecklistSummary,
) -> bytes:
    pdf = _Report(
        "Tenant Screening Report",
        [
            f"Tenant: {tenant.get('full_name')}",
            f"Property: {format_address(property_) if property_ else 'Unknown'}",
            f"Screening date: {_d(screening.get('screening_date'))}",
        ],
    )

    pdf.heading("Affordability")
    if affordability is None:
        pdf.para("Not enough information (rent and income required).")
    else:
        pdf.para(f"Rent to income: {affordability.display}%. {affordability.message}")

    pdf.heading("Checklist")
    pdf.para(f"{summary.checked} of {summary.total} checks complete ({summary.pct_complete}%).")
    if summary.flagged:
        pdf.para("Flagged: " + ", ".join(summary.flagged))
    if summary.outstanding:
        pdf.para("Outstanding: " + ", ".join(summary.outstanding))

    notes = screening.get("overall_notes")
    if notes:
        pdf.heading("Notes")
        pdf.para(str(notes))
    return pdf.render()
