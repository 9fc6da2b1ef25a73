from __future__ import annotations

import logging

import pytest

from rentsafe.services.portfolio_aggregator import PortfolioAggregator


class FakeSource:
    """Records subscriptions; the test decides when (and in what order) snapshots arrive."""

    def __init__(self):
        self.subs = {}
        self.opened = []
        self.closed = []

    def watch_children(self, owner_id, property_id, collection, on_snapshot, on_error=None, *, filters=None, limit=None):
        key = (collection, property_id)
        self.subs[key] = (on_snapshot, on_error)
        self.opened.append(key)

        def unsubscribe():
            self.closed.append(key)
            self.subs.pop(key, None)

        return unsubscribe

    def push(self, collection, property_id, rows):
        self.subs[(collection, property_id)][0](rows)

    def fail(self, collection, property_id, exc):
        self.subs[(collection, property_id)][1](exc)


def _ids(rows):
    return sorted(r["id"] for r in rows)


def _agg(src, collections=("maintenance_logs",)):
    return PortfolioAggregator(src, owner_id=1, collections=collections)


@pytest.mark.parametrize("order", [("P1", "P2"), ("P2", "P1")])
def test_flattening_is_order_independent(order):
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1", "P2"])

    payload = {"P1": [{"id": "a"}, {"id": "b"}], "P2": [{"id": "c"}]}
    for pid in order:
        src.push("maintenance_logs", pid, payload[pid])

    assert _ids(agg.flattened("maintenance_logs")) == ["a", "b", "c"]


def test_records_are_tagged_with_parent():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents([{"id": "P1"}])
    src.push("maintenance_logs", "P1", [{"id": "a"}])
    assert agg.flattened("maintenance_logs") == [{"id": "a", "property_id": "P1"}]


def test_redelivering_a_snapshot_does_not_duplicate():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1", "P2"])
    src.push("maintenance_logs", "P1", [{"id": "a"}, {"id": "b"}])
    src.push("maintenance_logs", "P2", [{"id": "c"}])
    first = agg.flattened("maintenance_logs")

    src.push("maintenance_logs", "P1", [{"id": "a"}, {"id": "b"}])
    src.push("maintenance_logs", "P1", [{"id": "a"}, {"id": "b"}])
    assert agg.flattened("maintenance_logs") == first


def test_snapshot_replaces_only_its_slice():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1", "P2"])
    src.push("maintenance_logs", "P1", [{"id": "a"}, {"id": "b"}])
    src.push("maintenance_logs", "P2", [{"id": "c"}])

    src.push("maintenance_logs", "P1", [{"id": "b"}])
    assert _ids(agg.flattened("maintenance_logs")) == ["b", "c"]


def test_parent_change_resubscribes_without_duplicates():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1", "P2"])
    src.push("maintenance_logs", "P1", [{"id": "a"}])
    src.push("maintenance_logs", "P2", [{"id": "c"}])

    agg.set_parents(["P2", "P3"])
    # every old subscription was torn down, including the retained parent
    assert ("maintenance_logs", "P1") in src.closed
    assert ("maintenance_logs", "P2") in src.closed
    # P1's slice is gone; P2's is kept until its fresh snapshot lands
    assert _ids(agg.flattened("maintenance_logs")) == ["c"]

    src.push("maintenance_logs", "P2", [{"id": "c"}])
    src.push("maintenance_logs", "P3", [{"id": "d"}])
    assert _ids(agg.flattened("maintenance_logs")) == ["c", "d"]


def test_same_parent_set_is_a_noop():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1"])
    agg.set_parents([{"id": "P1"}])
    assert src.opened == [("maintenance_logs", "P1")]
    assert src.closed == []


def test_stale_callbacks_after_parent_change_are_ignored():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1"])
    stale_cb = src.subs[("maintenance_logs", "P1")][0]

    agg.set_parents(["P2"])
    stale_cb([{"id": "ghost"}])
    assert agg.flattened("maintenance_logs") == []


def test_failure_is_isolated_and_reported(caplog):
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1", "P2"])
    src.push("maintenance_logs", "P1", [{"id": "a"}])

    with caplog.at_level(logging.WARNING, logger="rentsafe.aggregator"):
        src.fail("maintenance_logs", "P2", PermissionError("denied"))

    assert _ids(agg.flattened("maintenance_logs")) == ["a"]
    assert ("maintenance_logs", "P2") in agg.failures
    assert agg.failed_parents() == [{"collection": "maintenance_logs", "property_id": "P2", "error": "denied"}]
    assert any("subscription failed" in r.getMessage() for r in caplog.records)


def test_later_snapshot_clears_failure():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents(["P1"])
    src.fail("maintenance_logs", "P1", RuntimeError("offline"))
    src.push("maintenance_logs", "P1", [{"id": "a"}])
    assert agg.failures == {}
    assert _ids(agg.flattened("maintenance_logs")) == ["a"]


def test_loading_until_every_subscription_reports():
    src = FakeSource()
    agg = _agg(src, collections=("maintenance_logs", "documents"))
    agg.set_parents(["P1"])
    assert agg.loading

    src.push("maintenance_logs", "P1", [])
    assert agg.loading
    src.fail("documents", "P1", RuntimeError("x"))
    assert not agg.loading


def test_empty_parent_set_is_not_loading_and_notifies():
    src = FakeSource()
    agg = _agg(src)
    seen = []
    agg.add_listener(lambda a: seen.append(a.loading))
    agg.set_parents([])
    assert not agg.loading
    assert seen == [False]
    assert agg.flattened("maintenance_logs") == []


def test_close_tears_down_and_rejects_reuse():
    src = FakeSource()
    with _agg(src) as agg:
        agg.set_parents(["P1", "P2"])
    assert sorted(src.closed) == [("maintenance_logs", "P1"), ("maintenance_logs", "P2")]
    with pytest.raises(RuntimeError):
        agg.set_parents(["P3"])


def test_unknown_collection_raises():
    agg = _agg(FakeSource())
    with pytest.raises(KeyError):
        agg.flattened("nope")


def test_listener_sees_each_update_and_can_be_removed():
    src = FakeSource()
    agg = _agg(src)
    counts = []
    remove = agg.add_listener(lambda a: counts.append(len(a.flattened("maintenance_logs"))))
    agg.set_parents(["P1"])
    src.push("maintenance_logs", "P1", [{"id": "a"}])
    remove()
    src.push("maintenance_logs", "P1", [{"id": "a"}, {"id": "b"}])
    assert counts == [1]


def test_attached_subscription_ends_with_close():
    src = FakeSource()
    ended = []
    agg = _agg(src)
    agg.attach(lambda: ended.append("parents"))
    agg.set_parents(["P1"])
    agg.set_parents(["P2"])
    assert ended == []

    agg.close()
    assert ended == ["parents"]

    # attaching to a closed aggregator ends the subscription straight away
    agg.attach(lambda: ended.append("late"))
    assert ended == ["parents", "late"]


def test_parent_query_failure_keeps_current_parents(caplog):
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents([{"id": "P1", "street": "High Street"}])
    src.push("maintenance_logs", "P1", [{"id": "a"}])
    seen = []
    agg.add_listener(lambda a: seen.append(a.parents))

    with caplog.at_level(logging.WARNING, logger="rentsafe.aggregator"):
        agg.parents_failed(RuntimeError("db gone"))

    assert seen == [("P1",)]
    assert _ids(agg.flattened("maintenance_logs")) == ["a"]
    assert agg.parent_records == [{"id": "P1", "street": "High Street"}]
    assert {"collection": "properties", "property_id": None, "error": "db gone"} in agg.failed_parents()
    assert any("parent subscription failed" in r.getMessage() for r in caplog.records)


def test_parent_records_refresh_without_resubscribing():
    src = FakeSource()
    agg = _agg(src)
    agg.set_parents([{"id": "P1", "street": "Old Road"}])
    agg.set_parents([{"id": "P1", "street": "New Road"}])
    assert src.opened == [("maintenance_logs", "P1")]
    assert agg.parent_records == [{"id": "P1", "street": "New Road"}]
