from __future__ import annotations

import uuid

from rentsafe.cli.seed_demo import seed_demo


def test_seed_is_idempotent_and_visible_through_api(client):
    email = f"seed-{uuid.uuid4().hex[:8]}@example.com"

    first = seed_demo(owner_email=email, display_name="Demo Landlord")
    assert len(first.property_ids) == 2

    again = seed_demo(owner_email=email)
    assert again.owner_id == first.owner_id
    assert sorted(again.property_ids) == sorted(first.property_ids)

    headers = {"X-User-Email": email}
    props = client.get("/api/properties", headers=headers).json()
    assert sorted(p["id"] for p in props) == sorted(first.property_ids)

    d = client.get("/api/dashboard", headers=headers).json()
    assert d["active_properties"] == 2
    assert d["failed_subscriptions"] == []


def test_seed_without_samples(client):
    email = f"empty-{uuid.uuid4().hex[:8]}@example.com"
    out = seed_demo(owner_email=email, with_samples=False)
    assert out.property_ids == []
    assert client.get("/api/properties", headers={"X-User-Email": email}).json() == []
