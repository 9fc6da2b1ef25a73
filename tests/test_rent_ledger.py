from __future__ import annotations

from dataclasses import dataclass

import pytest

from rentsafe.domain.rent_ledger import (
    amount_paid_for_status,
    annual_rent_statement,
    normalize_month,
    rent_ledger_bucket,
    rent_status_breakdown,
)


@dataclass
class Pay:
    property_id: int
    year: int
    month: str
    status: str
    expected_amount: float = 1000.0
    amount_paid: float = 0.0


def test_bucket_defaults_to_pending():
    pays = [Pay(1, 2024, "March", "Paid")]
    assert rent_ledger_bucket(pays, property_id=1, year=2024, month="March") == "Paid"
    assert rent_ledger_bucket(pays, property_id=1, year=2024, month="April") == "Pending"
    assert rent_ledger_bucket(pays, property_id=2, year=2024, month="March") == "Pending"
    assert rent_ledger_bucket([], property_id=1, year=2023, month="March") == "Pending"


def test_annual_statement_has_twelve_rows():
    pays = [
        Pay(1, 2024, "January", "Paid", 950.0, 950.0),
        Pay(1, 2024, "February", "Partially Paid", 950.0, 400.0),
        Pay(1, 2023, "March", "Unpaid"),
        Pay(2, 2024, "April", "Unpaid", 700.0),
    ]
    rows = annual_rent_statement(pays, property_id=1, year=2024, default_rent=1000.0)
    assert len(rows) == 12
    assert rows[0] == {"month": "January", "rent": 950.0, "status": "Paid", "amount_paid": 950.0}
    assert rows[1]["status"] == "Partially Paid"
    assert rows[1]["amount_paid"] == 400.0
    assert rows[2] == {"month": "March", "rent": 1000.0, "status": "Pending", "amount_paid": 0.0}
    # another property's April record is not this property's April
    assert rows[3] == {"month": "April", "rent": 1000.0, "status": "Pending", "amount_paid": 0.0}


def test_annual_statement_status_matches_ledger_bucket():
    pays = [Pay(1, 2024, "May", "Unpaid"), Pay(1, 2024, "June", "Paid", 1000.0, 1000.0)]
    rows = annual_rent_statement(pays, property_id=1, year=2024, default_rent=1000.0)
    for row in rows:
        assert row["status"] == rent_ledger_bucket(pays, property_id=1, year=2024, month=row["month"])


def test_amount_paid_follows_status():
    assert amount_paid_for_status("Paid", 1200.0) == 1200.0
    assert amount_paid_for_status("Unpaid", 1200.0) == 0.0
    assert amount_paid_for_status("Partially Paid", 1200.0) == 0.0
    assert amount_paid_for_status("Partially Paid", 1200.0, 500.0) == 500.0


@pytest.mark.parametrize("raw", ["March", "march", "mar", 3, "3"])
def test_normalize_month(raw):
    assert normalize_month(raw) == "March"


def test_normalize_month_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_month("Smarch")
    with pytest.raises(ValueError):
        normalize_month(13)


def test_breakdown_pending_is_occupied_minus_recorded():
    props = [
        {"id": 1, "status": "Occupied"},
        {"id": 2, "status": "Occupied"},
        {"id": 3, "status": "Occupied"},
        {"id": 4, "status": "Occupied"},
        {"id": 5, "status": "Vacant"},
    ]
    pays = [
        Pay(1, 2024, "May", "Paid"),
        Pay(2, 2024, "May", "Unpaid"),
        Pay(3, 2024, "April", "Paid"),
    ]
    out = rent_status_breakdown(props, pays, year=2024, month="May")
    assert out == [
        {"status": "Paid", "count": 1},
        {"status": "Unpaid", "count": 1},
        {"status": "Pending", "count": 2},
    ]


def test_breakdown_never_negative():
    props = [{"id": 1, "status": "Vacant"}]
    pays = [Pay(1, 2024, "May", "Paid")]
    assert rent_status_breakdown(props, pays, year=2024, month="May") == [{"status": "Paid", "count": 1}]
