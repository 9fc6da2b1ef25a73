from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentsafe.auth import get_or_create_owner
from rentsafe.db import SessionLocal, create_tables
from rentsafe.domain.checklists import SCREENING_TEMPLATE, blank_checklist
from rentsafe.domain.vocab import MONTHS
from rentsafe.models import (
    Document,
    Expense,
    Inspection,
    MaintenanceLog,
    Property,
    RentPayment,
    Tenant,
    TenantScreening,
)


@dataclass(frozen=True)
class SeedResult:
    owner_id: int
    owner_email: str
    property_ids: list[int] = field(default_factory=list)


SAMPLE_PROPERTIES = [
    {
        "name_or_number": "14",
        "street": "Albert Road",
        "city": "Manchester",
        "county": "Greater Manchester",
        "postcode": "M14 6AB",
        "property_type": "Terraced House",
        "status": "Occupied",
        "bedrooms": 3,
        "bathrooms": 1,
        "monthly_rent": 1150.0,
        "deposit_amount": 1325.0,
    },
    {
        "name_or_number": "Flat 2",
        "street": "Queens Court",
        "city": "Leeds",
        "county": "West Yorkshire",
        "postcode": "LS6 2QT",
        "property_type": "Flat",
        "status": "Vacant",
        "bedrooms": 2,
        "bathrooms": 1,
        "monthly_rent": 875.0,
    },
]


def _seed_children(db: Session, owner_id: int, prop: Property, today: date) -> None:
    db.add_all(
        [
            Document(
                owner_id=owner_id,
                property_id=prop.id,
                title="Gas Safety Certificate",
                document_type="Gas Safety",
                issue_date=today - timedelta(days=330),
                expiry_date=today + timedelta(days=35),
            ),
            Document(
                owner_id=owner_id,
                property_id=prop.id,
                title="EPC",
                document_type="EPC",
                issue_date=today - timedelta(days=900),
                expiry_date=today + timedelta(days=2700),
            ),
            MaintenanceLog(
                owner_id=owner_id,
                property_id=prop.id,
                title="Boiler pressure dropping",
                category="Heating",
                priority="High",
                status="Open",
                reported_date=datetime.utcnow() - timedelta(days=2),
            ),
            Inspection(
                owner_id=owner_id,
                property_id=prop.id,
                inspection_type="Single-Let",
                status="Scheduled",
                scheduled_date=datetime.utcnow() + timedelta(days=14),
                checklist_json="{}",
            ),
            Expense(
                owner_id=owner_id,
                property_id=prop.id,
                expense_date=today - timedelta(days=20),
                expense_type="Repairs and Maintenance",
                amount=180.0,
                paid_by="Landlord",
                notes="Replaced kitchen tap",
            ),
        ]
    )

    if prop.status == "Occupied":
        tenant = Tenant(
            owner_id=owner_id,
            property_id=prop.id,
            full_name="Jane Doe",
            email="jane.doe@example.com",
            tenancy_start_date=today - timedelta(days=200),
            monthly_rent=prop.monthly_rent,
        )
        db.add(tenant)
        db.flush()
        db.add(
            TenantScreening(
                owner_id=owner_id,
                tenant_id=tenant.id,
                property_id=prop.id,
                screening_date=today - timedelta(days=210),
                monthly_income=3200.0,
                monthly_rent=prop.monthly_rent,
                checklist_json=json.dumps(blank_checklist(SCREENING_TEMPLATE)),
            )
        )
        rent = float(prop.monthly_rent or 0.0)
        db.add(
            RentPayment(
                owner_id=owner_id,
                property_id=prop.id,
                year=today.year,
                month=MONTHS[today.month - 1],
                status="Paid",
                expected_amount=rent,
                amount_paid=rent,
            )
        )


def seed_demo(*, owner_email: str, display_name: Optional[str] = None, with_samples: bool = True) -> SeedResult:
    """Idempotent: sample properties are only added when the owner has none."""
    create_tables()
    db = SessionLocal()
    try:
        owner = get_or_create_owner(db, owner_email, display_name)

        existing = list(db.scalars(select(Property.id).where(Property.owner_id == owner.id)).all())
        if existing or not with_samples:
            return SeedResult(owner_id=owner.id, owner_email=owner.email, property_ids=existing)

        today = date.today()
        ids: list[int] = []
        for values in SAMPLE_PROPERTIES:
            prop = Property(owner_id=owner.id, **values)
            db.add(prop)
            db.flush()
            _seed_children(db, owner.id, prop, today)
            ids.append(prop.id)
        db.commit()
        return SeedResult(owner_id=owner.id, owner_email=owner.email, property_ids=ids)
    finally:
        db.close()
