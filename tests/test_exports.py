from __future__ import annotations

import csv
import io
from datetime import date, datetime

from rentsafe.domain.cashflow import financial_summary
from rentsafe.domain.checklists import SCREENING_TEMPLATE, summarize_checklist
from rentsafe.domain.derived_status import assess_affordability
from rentsafe.services.exports import (
    PROPERTY_CSV_HEADERS,
    compliance_report_pdf,
    properties_csv,
    screening_report_pdf,
    tax_summary_pdf,
)


def test_properties_csv_columns_and_counts():
    props = [
        {
            "id": 7,
            "name_or_number": "Flat 3",
            "street": "Park Row",
            "city": "Bath",
            "county": "Somerset",
            "property_type": "Flat",
            "status": "Occupied",
            "bedrooms": 2,
            "bathrooms": 1,
            "postcode": "BA1 1AA",
        },
        {"id": 8, "street": "Lone Road", "city": "Hull", "status": "Vacant", "bedrooms": 1, "bathrooms": 1, "postcode": "HU1 1AA"},
    ]
    rows = list(csv.reader(io.StringIO(properties_csv(props, {7: 2}))))

    assert rows[0] == PROPERTY_CSV_HEADERS
    assert rows[1] == ["Flat 3, Park Row, Bath", "Somerset", "Flat", "Occupied", "2", "1", "BA1 1AA", "2"]
    assert rows[2][0] == "Lone Road, Hull"
    assert rows[2][-1] == "0"


def test_pdfs_render():
    docs = [
        {
            "title": "Gas Safety",
            "property_address": "1 Mill Lane",
            "document_type": "Gas Safety",
            "expiry_date": date(2024, 5, 1),
            "status": "Expired",
        }
    ]
    assert compliance_report_pdf(docs, generated_for="me@example.com", generated_at=datetime(2024, 6, 1)).startswith(b"%PDF")

    summary = financial_summary(properties=[], expenses=[], rent_payments=[], year=2024)
    assert tax_summary_pdf(summary, generated_for="me@example.com", scope="All Properties").startswith(b"%PDF")

    checklist = {"creditCheck": {"reportReceived": True}}
    body = screening_report_pdf(
        tenant={"full_name": "Sam Tenant"},
        property_={"street": "Mill Lane", "city": "Leeds"},
        screening={"screening_date": date(2024, 3, 1), "overall_notes": "Good references."},
        affordability=assess_affordability(1200, 2500),
        summary=summarize_checklist(SCREENING_TEMPLATE, checklist),
    )
    assert body.startswith(b"%PDF")


def test_screening_pdf_without_affordability():
    body = screening_report_pdf(
        tenant={"full_name": "No Income"},
        property_=None,
        screening={"screening_date": None},
        affordability=None,
        summary=summarize_checklist(SCREENING_TEMPLATE, None),
    )
    assert body.startswith(b"%PDF")
