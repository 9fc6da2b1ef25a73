from __future__ import annotations

import uuid


def _contractor(client, headers, **overrides):
    body = {"name": "Pete Plumb", "trade": "Plumber", "phone": "0117 496 0001", "email": "pete@example.com"}
    body.update(overrides)
    return client.post("/api/contractors", json=body, headers=headers)


def test_contractor_directory_lifecycle(client, owner_headers):
    r = _contractor(client, owner_headers)
    assert r.status_code == 200, r.text
    pete = r.json()
    assert pete["status"] == "Active"

    # same phone while Pete is active
    assert _contractor(client, owner_headers, name="Other Pete").status_code == 409
    assert _contractor(client, owner_headers, name="X").status_code == 422
    assert _contractor(client, owner_headers, phone="0117").status_code == 422

    sparky = _contractor(client, owner_headers, name="Sally Spark", trade="Electrician", phone="0117 496 0002").json()
    active = client.get("/api/contractors", headers=owner_headers).json()
    assert [c["name"] for c in active] == ["Pete Plumb", "Sally Spark"]

    r = client.post(f"/api/contractors/{pete['id']}/archive", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "Archived"
    assert client.post(f"/api/contractors/{pete['id']}/archive", headers=owner_headers).status_code == 409

    assert [c["id"] for c in client.get("/api/contractors", headers=owner_headers).json()] == [sparky["id"]]
    archived = client.get("/api/contractors", params={"status": "Archived"}, headers=owner_headers).json()
    assert [c["id"] for c in archived] == [pete["id"]]
    assert client.get("/api/contractors", params={"status": "Retired"}, headers=owner_headers).status_code == 422

    # an archived contractor's number is free again; unarchiving would now clash
    assert _contractor(client, owner_headers, name="New Pete").status_code == 200
    assert client.post(f"/api/contractors/{pete['id']}/unarchive", headers=owner_headers).status_code == 409

    r = client.put(
        f"/api/contractors/{sparky['id']}",
        json={"name": "Sally Spark", "trade": "Electrician", "phone": "0117 496 0002", "notes": "NICEIC"},
        headers=owner_headers,
    )
    assert r.status_code == 200
    assert r.json()["notes"] == "NICEIC"
    assert client.get(f"/api/contractors/{sparky['id']}", headers=owner_headers).json()["notes"] == "NICEIC"


def test_contractors_are_owner_scoped(client, owner_headers):
    pete = _contractor(client, owner_headers).json()
    other = {"X-User-Email": f"other-{uuid.uuid4().hex[:10]}@example.com"}
    assert client.get(f"/api/contractors/{pete['id']}", headers=other).status_code == 404
    assert client.post(f"/api/contractors/{pete['id']}/archive", headers=other).status_code == 404
    # another landlord may hold the same number
    assert _contractor(client, other, phone="0117 496 0001").status_code == 200


def test_maintenance_quick_select_copies_contractor(client, owner_headers, make_property):
    pid = make_property()["id"]
    pete = _contractor(client, owner_headers).json()

    r = client.post(
        f"/api/properties/{pid}/maintenance",
        json={"title": "Leaking tap", "contractor_id": pete["id"], "contractor_name": "typed over"},
        headers=owner_headers,
    )
    assert r.status_code == 200, r.text
    log = r.json()
    assert log["contractor_id"] == pete["id"]
    assert log["contractor_name"] == "Pete Plumb"
    assert log["contractor_phone"] == "0117 496 0001"

    client.post(f"/api/contractors/{pete['id']}/archive", headers=owner_headers)
    r = client.post(
        f"/api/properties/{pid}/maintenance",
        json={"title": "Dripping shower", "contractor_id": pete["id"]},
        headers=owner_headers,
    )
    assert r.status_code == 422

    r = client.post(
        f"/api/properties/{pid}/maintenance",
        json={"title": "Dripping shower", "contractor_id": 999999},
        headers=owner_headers,
    )
    assert r.status_code == 404


def test_search_matches_contractor_name_or_trade(client, owner_headers):
    _contractor(client, owner_headers)
    _contractor(client, owner_headers, name="Gail Gardner", trade="Gardening", phone="0117 496 0003")

    out = client.get("/api/search", params={"q": "plumb"}, headers=owner_headers).json()
    assert [c["name"] for c in out["contractors"]] == ["Pete Plumb"]

    out = client.get("/api/search", params={"q": "garden"}, headers=owner_headers).json()
    assert [c["trade"] for c in out["contractors"]] == ["Gardening"]


def test_tenancy_checklist_crud_and_summary(client, owner_headers, make_property):
    pid = make_property()["id"]
    tenant = client.post(
        "/api/tenants", json={"property_id": pid, "full_name": "Tom Tenant"}, headers=owner_headers
    ).json()

    template = client.get("/api/checklists/template", headers=owner_headers).json()
    assert set(template) == {"beforeTenancy", "deposit", "atMoveIn", "optional"}
    assert template["deposit"] == {
        "prescribedInfo": False,
        "schemeLeaflet": False,
        "protectionCertificate": False,
        "notes": "",
    }

    body = {
        "tenant_id": tenant["id"],
        "completed_date": "2024-09-01",
        "checklist": {
            "beforeTenancy": {"howToRentGuide": True, "epc": True, "notes": "sent by email"},
            "deposit": {"prescribedInfo": True},
            "optional": {"welcomeLetter": True, "binInfo": True},
            "pets": {"dog": True},
        },
    }
    r = client.post(f"/api/properties/{pid}/checklists", json=body, headers=owner_headers)
    assert r.status_code == 200, r.text
    out = r.json()
    assert out["tenant_id"] == tenant["id"]
    assert out["checklist"]["beforeTenancy"]["notes"] == "sent by email"
    assert "pets" not in out["checklist"]
    assert out["checklist_summary"]["total"] == 13
    assert out["checklist_summary"]["checked"] == 3
    assert not any(code.startswith("optional.") for code in out["checklist_summary"]["outstanding"])

    listed = client.get(f"/api/properties/{pid}/checklists", headers=owner_headers).json()
    assert [c["id"] for c in listed] == [out["id"]]

    body["checklist"]["atMoveIn"] = {"inventory": True, "keysRecord": True}
    r = client.put(f"/api/properties/{pid}/checklists/{out['id']}", json=body, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["checklist_summary"]["checked"] == 5

    assert client.delete(f"/api/properties/{pid}/checklists/{out['id']}", headers=owner_headers).status_code == 200
    assert client.get(f"/api/properties/{pid}/checklists/{out['id']}", headers=owner_headers).status_code == 404


def test_tenancy_checklist_rejects_tenant_from_elsewhere(client, owner_headers, make_property):
    pid = make_property()["id"]
    other_pid = make_property(street="Elm Street")["id"]
    tenant = client.post(
        "/api/tenants", json={"property_id": other_pid, "full_name": "Ellie Elm"}, headers=owner_headers
    ).json()

    body = {"tenant_id": tenant["id"], "completed_date": "2024-09-01"}
    assert client.post(f"/api/properties/{pid}/checklists", json=body, headers=owner_headers).status_code == 422

    body["tenant_id"] = 999999
    assert client.post(f"/api/properties/{pid}/checklists", json=body, headers=owner_headers).status_code == 404
