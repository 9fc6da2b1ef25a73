from __future__ import annotations

import os
import tempfile
import uuid

import pytest

# Must be set before rentsafe.config builds its Settings instance.
_TMP_DIR = tempfile.mkdtemp(prefix="rentsafe-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["APP_ENV"] = "local"
os.environ["AUTH_MODE"] = "dev"
os.environ["AUTO_CREATE_TABLES"] = "true"

from fastapi.testclient import TestClient  # noqa: E402

from rentsafe.db import create_tables  # noqa: E402
from rentsafe.main import create_app  # noqa: E402

create_tables()


@pytest.fixture(scope="session")
def app():
    return create_app()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def owner_headers():
    """A fresh landlord per test; dev auth auto-provisions them on first request."""
    return {"X-User-Email": f"landlord-{uuid.uuid4().hex[:10]}@example.com"}


@pytest.fixture()
def make_property(client, owner_headers):
    def _make(**overrides):
        body = {
            "name_or_number": "12",
            "street": "Acacia Avenue",
            "city": "Bristol",
            "county": "Avon",
            "postcode": "BS1 4DJ",
            "status": "Occupied",
            "bedrooms": 3,
            "bathrooms": 1,
            "monthly_rent": 1200.0,
        }
        body.update(overrides)
        r = client.post("/api/properties", json=body, headers=owner_headers)
        assert r.status_code == 200, r.text
        return r.json()

    return _make
