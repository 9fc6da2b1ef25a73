from __future__ import annotations

import uuid


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers.get("X-Request-ID")


def test_request_id_is_propagated(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_requires_auth(client):
    r = client.get("/api/properties")
    assert r.status_code == 401


def test_property_crud_and_soft_delete(client, owner_headers, make_property):
    prop = make_property()
    pid = prop["id"]
    assert prop["status"] == "Occupied"

    r = client.patch(f"/api/properties/{pid}", json={"monthly_rent": 1250.0}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["monthly_rent"] == 1250.0
    assert r.json()["street"] == "Acacia Avenue"

    r = client.delete(f"/api/properties/{pid}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "Deleted"

    active = client.get("/api/properties", headers=owner_headers).json()
    assert pid not in [p["id"] for p in active]
    deleted = client.get("/api/properties", params={"status": "Deleted"}, headers=owner_headers).json()
    assert [p["id"] for p in deleted] == [pid]

    # the row is still there
    assert client.get(f"/api/properties/{pid}", headers=owner_headers).status_code == 200
    assert client.delete(f"/api/properties/{pid}", headers=owner_headers).status_code == 409
    assert client.patch(f"/api/properties/{pid}", json={"bedrooms": 4}, headers=owner_headers).status_code == 409

    r = client.post(f"/api/properties/{pid}/restore", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "Vacant"
    assert client.post(f"/api/properties/{pid}/restore", headers=owner_headers).status_code == 409


def test_create_rejects_deleted_status_and_bad_input(client, owner_headers):
    base = {"street": "A Road", "city": "Derby", "postcode": "DE1 1AA"}
    assert client.post("/api/properties", json={**base, "status": "Deleted"}, headers=owner_headers).status_code == 422
    assert client.post("/api/properties", json={**base, "bedrooms": -1}, headers=owner_headers).status_code == 422
    assert client.get("/api/properties", params={"status": "Haunted"}, headers=owner_headers).status_code == 422


def test_cross_owner_access_is_blocked(client, make_property):
    prop = make_property()
    intruder = {"X-User-Email": f"intruder-{uuid.uuid4().hex[:8]}@example.com"}

    assert client.get(f"/api/properties/{prop['id']}", headers=intruder).status_code == 404
    assert client.delete(f"/api/properties/{prop['id']}", headers=intruder).status_code == 404
    assert client.get(f"/api/properties/{prop['id']}/documents", headers=intruder).status_code == 404
    assert client.get("/api/properties", headers=intruder).json() == []


def test_token_flow(client):
    email = f"jwt-{uuid.uuid4().hex[:8]}@example.com"
    r = client.post("/api/auth/token", json={"email": email})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == email

    bad = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_search(client, owner_headers, make_property):
    prop = make_property(street="Wisteria Lane")
    make_property(street="Other Street")
    r = client.post(
        "/api/tenants",
        json={"property_id": prop["id"], "full_name": "Wendy Wisteria", "email": "wendy@example.com"},
        headers=owner_headers,
    )
    assert r.status_code == 200

    out = client.get("/api/search", params={"q": "wisteria"}, headers=owner_headers).json()
    assert [p["id"] for p in out["properties"]] == [prop["id"]]
    assert [t["full_name"] for t in out["tenants"]] == ["Wendy Wisteria"]

    client.delete(f"/api/properties/{prop['id']}", headers=owner_headers)
    out = client.get("/api/search", params={"q": "wisteria"}, headers=owner_headers).json()
    assert out["properties"] == []


def test_patch_rejects_explicit_null_on_required_fields(client, owner_headers, make_property):
    pid = make_property()["id"]
    for field in ("status", "street", "city", "postcode", "bedrooms"):
        r = client.patch(f"/api/properties/{pid}", json={field: None}, headers=owner_headers)
        assert r.status_code == 422, field

    # optional money fields can still be cleared
    r = client.patch(f"/api/properties/{pid}", json={"monthly_rent": None, "status": "Vacant"}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["monthly_rent"] is None
    assert r.json()["status"] == "Vacant"
    assert r.json()["street"] == "Acacia Avenue"
