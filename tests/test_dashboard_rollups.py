from __future__ import annotations

from datetime import date, datetime

from rentsafe.services.dashboard_rollups import (
    build_dashboard,
    build_document_view,
    build_reminders,
    open_maintenance_by_property,
    upcoming_inspections,
)

NOW = datetime(2024, 6, 1, 9, 0)

PROPS = [
    {"id": 1, "name_or_number": "1", "street": "Mill Lane", "city": "Leeds", "postcode": "LS1 1AA", "status": "Occupied"},
    {"id": 2, "name_or_number": "2", "street": "Mill Lane", "city": "Leeds", "postcode": "LS1 1AA", "status": "Occupied"},
    {"id": 3, "name_or_number": "3", "street": "Mill Lane", "city": "Leeds", "postcode": "LS1 1AA", "status": "Vacant"},
]

MAINT = [
    {"id": 10, "property_id": 1, "title": "Leak", "status": "Open", "priority": "High", "reported_date": datetime(2024, 5, 30)},
    {"id": 11, "property_id": 2, "title": "Door", "status": "In Progress", "priority": "Low", "reported_date": datetime(2024, 5, 1)},
    {"id": 12, "property_id": 2, "title": "Paint", "status": "Completed", "priority": "Low", "reported_date": datetime(2024, 5, 31)},
]

INSPECTIONS = [
    {"id": 20, "property_id": 1, "status": "Scheduled", "inspection_type": "HMO", "scheduled_date": datetime(2024, 7, 1)},
    {"id": 21, "property_id": 2, "status": "Scheduled", "inspection_type": "Single-Let", "scheduled_date": datetime(2024, 6, 10)},
    {"id": 22, "property_id": 2, "status": "Scheduled", "inspection_type": "Single-Let", "scheduled_date": datetime(2024, 5, 10)},
    {"id": 23, "property_id": 3, "status": "Completed", "inspection_type": "Single-Let", "scheduled_date": datetime(2024, 8, 10)},
]

DOCS = [
    {"id": 30, "property_id": 1, "title": "Gas Safety", "expiry_date": date(2024, 5, 1)},
    {"id": 31, "property_id": 2, "title": "EICR", "expiry_date": date(2024, 7, 15)},
    {"id": 32, "property_id": 3, "title": "EPC", "expiry_date": date(2030, 1, 1)},
]

RENT = [
    {"property_id": 1, "year": 2024, "month": "June", "status": "Paid"},
]


def test_upcoming_inspections_future_scheduled_only_soonest_first():
    out = upcoming_inspections(INSPECTIONS, now=NOW)
    assert [i["id"] for i in out] == [21, 20]
    assert [i["id"] for i in upcoming_inspections(INSPECTIONS, now=NOW, limit=1)] == [21]


def test_build_dashboard():
    d = build_dashboard(
        properties=PROPS,
        maintenance=MAINT,
        inspections=INSPECTIONS,
        documents=DOCS,
        rent_payments=RENT,
        now=NOW,
    )
    assert d["active_properties"] == 3
    assert d["open_maintenance"] == 2
    assert [a["id"] for a in d["recent_activity"]] == [12, 10, 11]
    assert d["recent_activity"][0]["property"] == "2, Mill Lane, Leeds, LS1 1AA"
    assert [c["id"] for c in d["critical_compliance"]] == [30, 31]
    assert [c["status"] for c in d["critical_compliance"]] == ["Expired", "Expiring Soon"]
    assert d["rent_status"]["month"] == "June"
    assert d["rent_status"]["breakdown"] == [{"status": "Paid", "count": 1}, {"status": "Pending", "count": 1}]


def test_reminders_merge_documents_and_inspections_by_due_date():
    addresses = {1: "One", 2: "Two", 3: "Three"}
    out = build_reminders(DOCS, INSPECTIONS, addresses, now=NOW)
    assert [(r["kind"], r["id"]) for r in out] == [
        ("document", 30),
        ("inspection", 21),
        ("inspection", 20),
        ("document", 31),
    ]
    assert out[0]["property"] == "One"


def test_document_view_filters_and_counts():
    view = build_document_view(DOCS, now=NOW)
    assert view["counts"] == {"Expired": 1, "Expiring Soon": 1, "Valid": 1}
    assert [d["id"] for d in view["documents"]] == [30, 31, 32]

    only_expired = build_document_view(DOCS, now=NOW, status="Expired")
    assert [d["id"] for d in only_expired["documents"]] == [30]
    # counts are computed before status/search filtering
    assert only_expired["counts"]["Valid"] == 1

    searched = build_document_view(DOCS, now=NOW, search="eicr")
    assert [d["id"] for d in searched["documents"]] == [31]

    one_prop = build_document_view(DOCS, now=NOW, property_id=3)
    assert one_prop["counts"] == {"Expired": 0, "Expiring Soon": 0, "Valid": 1}


def test_open_maintenance_by_property():
    assert open_maintenance_by_property(MAINT) == {1: 1, 2: 1}
