from __future__ import annotations

import uuid
from datetime import date

import pytest

from rentsafe.config import settings
from rentsafe.db import SessionLocal
from rentsafe.domain.vocab import (
    CHILD_COLLECTIONS,
    COLLECTION_DOCUMENTS,
    COLLECTION_MAINTENANCE,
    COLLECTION_RENT_PAYMENTS,
)
from rentsafe.models import Document, Owner, Property
from rentsafe.services.change_feed import ChangeFeed
from rentsafe.services.dashboard_rollups import open_portfolio, watch_portfolio
from rentsafe.services.document_store import COLLECTION_MODELS, DocumentStore, child_path, properties_path
from rentsafe.services.portfolio_aggregator import PortfolioAggregator


def _mk_owner_with_property(status: str = "Occupied") -> tuple[int, int]:
    db = SessionLocal()
    try:
        owner = Owner(email=f"store-{uuid.uuid4().hex[:8]}@example.com")
        db.add(owner)
        db.flush()
        prop = Property(owner_id=owner.id, street="High Street", city="York", postcode="YO1 7HH", status=status)
        db.add(prop)
        db.commit()
        return int(owner.id), int(prop.id)
    finally:
        db.close()


def _add_document(owner_id: int, property_id: int, title: str) -> None:
    db = SessionLocal()
    try:
        db.add(
            Document(
                owner_id=owner_id,
                property_id=property_id,
                title=title,
                document_type="Gas Safety",
                issue_date=date(2024, 1, 1),
                expiry_date=date(2025, 1, 1),
            )
        )
        db.commit()
    finally:
        db.close()


def test_subscribe_delivers_immediately_and_on_publish():
    feed = ChangeFeed()
    data = [[{"id": 1}]]
    seen = []

    unsub = feed.subscribe("a/b", lambda: data[0], seen.append)
    assert seen == [[{"id": 1}]]

    data[0] = [{"id": 1}, {"id": 2}]
    assert feed.publish("a/b") == 1
    assert seen[-1] == [{"id": 1}, {"id": 2}]

    unsub()
    unsub()  # idempotent
    assert feed.publish("a/b") == 0
    assert feed.subscriber_count() == 0


def test_fetch_errors_go_to_on_error_only():
    feed = ChangeFeed()
    errors = []
    seen = []

    def boom():
        raise RuntimeError("store unavailable")

    feed.subscribe("x", boom, seen.append, errors.append)
    assert seen == []
    assert isinstance(errors[0], RuntimeError)


def test_broken_listener_does_not_break_publish():
    feed = ChangeFeed()
    good = []
    feed.subscribe("p", lambda: [], lambda rows: None)

    calls = {"n": 0}

    def flaky(rows):
        calls["n"] += 1
        if calls["n"] > 1:
            raise ValueError("listener bug")

    feed.subscribe("p", lambda: [], flaky)
    feed.subscribe("p", lambda: [], good.append)
    assert feed.publish("p") == 3
    assert len(good) == 2


def test_store_lists_are_owner_scoped():
    owner_a, prop_a = _mk_owner_with_property()
    owner_b, _ = _mk_owner_with_property()
    _add_document(owner_a, prop_a, "EICR")

    store = DocumentStore(feed=ChangeFeed())
    assert [d["title"] for d in store.list_children(owner_a, prop_a, "documents")] == ["EICR"]
    assert store.list_children(owner_b, prop_a, "documents") == []
    assert [p["id"] for p in store.list_properties(owner_a)] == [prop_a]


def test_store_rejects_unknown_collection_and_field():
    owner_id, prop_id = _mk_owner_with_property()
    store = DocumentStore(feed=ChangeFeed())
    with pytest.raises(ValueError):
        store.list_children(owner_id, prop_id, "contracts")
    with pytest.raises(ValueError):
        store.list_children(owner_id, prop_id, "documents", filters={"colour": "red"})


def test_aggregator_sees_committed_writes_after_notify():
    owner_id, prop_id = _mk_owner_with_property()
    store = DocumentStore(feed=ChangeFeed())

    with PortfolioAggregator(store, owner_id=owner_id, collections=("documents",)) as agg:
        agg.set_parents([prop_id])
        assert not agg.loading
        assert agg.flattened("documents") == []

        _add_document(owner_id, prop_id, "Gas Safety Certificate")
        assert agg.flattened("documents") == []  # no notify yet

        assert store.notify(owner_id, prop_id, "documents") == 1
        docs = agg.flattened("documents")
        assert [d["title"] for d in docs] == ["Gas Safety Certificate"]
        assert docs[0]["property_id"] == prop_id

    assert store.feed.subscriber_count(child_path(owner_id, prop_id, "documents")) == 0


def test_every_child_collection_has_a_model():
    assert set(COLLECTION_MODELS) == set(CHILD_COLLECTIONS)


def test_watch_portfolio_follows_soft_delete_and_restore(client, owner_headers, make_property):
    keep = make_property()["id"]
    gone = make_property(street="Gone Road")["id"]
    owner_id = client.get("/api/auth/me", headers=owner_headers).json()["owner_id"]
    store = DocumentStore()

    with watch_portfolio(store, owner_id=owner_id, collections=(COLLECTION_MAINTENANCE,)) as agg:
        assert agg.parents == (keep, gone)
        assert store.feed.subscriber_count(properties_path(owner_id)) == 1

        for pid in (keep, gone):
            r = client.post(f"/api/properties/{pid}/maintenance", json={"title": f"Job {pid}"}, headers=owner_headers)
            assert r.status_code == 200
        assert sorted(r["property_id"] for r in agg.flattened(COLLECTION_MAINTENANCE)) == sorted([keep, gone])

        assert client.delete(f"/api/properties/{gone}", headers=owner_headers).status_code == 200
        assert agg.parents == (keep,)
        assert [r["property_id"] for r in agg.flattened(COLLECTION_MAINTENANCE)] == [keep]
        assert [p["id"] for p in agg.parent_records] == [keep]
        assert store.feed.subscriber_count(child_path(owner_id, gone, COLLECTION_MAINTENANCE)) == 0
        assert store.feed.subscriber_count(child_path(owner_id, keep, COLLECTION_MAINTENANCE)) == 1

        assert client.post(f"/api/properties/{gone}/restore", headers=owner_headers).status_code == 200
        assert agg.parents == (keep, gone)
        assert len(agg.flattened(COLLECTION_MAINTENANCE)) == 2

    assert store.feed.subscriber_count(properties_path(owner_id)) == 0
    assert store.feed.subscriber_count(child_path(owner_id, keep, COLLECTION_MAINTENANCE)) == 0


class _LimitRecordingStore(DocumentStore):
    def __init__(self):
        super().__init__(feed=ChangeFeed())
        self.limits = {}

    def watch_children(self, owner_id, property_id, collection, on_snapshot, on_error=None, *, filters=None, limit=None):
        self.limits[collection] = limit
        return super().watch_children(
            owner_id, property_id, collection, on_snapshot, on_error, filters=filters, limit=limit
        )


def test_portfolio_documents_are_not_capped():
    owner_id, prop_id = _mk_owner_with_property()
    for title in ("Gas Safety", "EICR", "EPC"):
        _add_document(owner_id, prop_id, title)

    store = _LimitRecordingStore()
    agg, props = open_portfolio(
        store, owner_id=owner_id, collections=(COLLECTION_DOCUMENTS, COLLECTION_RENT_PAYMENTS)
    )
    with agg:
        assert [p["id"] for p in props] == [prop_id]
        assert len(agg.flattened(COLLECTION_DOCUMENTS)) == 3
    assert store.limits[COLLECTION_DOCUMENTS] is None
    assert store.limits[COLLECTION_RENT_PAYMENTS] == settings.rent_payment_query_limit
