from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ..db import SessionLocal
from ..domain.vocab import (
    COLLECTION_CHECKLISTS,
    COLLECTION_DOCUMENTS,
    COLLECTION_EXPENSES,
    COLLECTION_INSPECTIONS,
    COLLECTION_MAINTENANCE,
    COLLECTION_RENT_PAYMENTS,
    COLLECTION_TENANTS,
)
from ..models import (
    Document,
    Expense,
    Inspection,
    MaintenanceLog,
    Property,
    RentPayment,
    Tenant,
    TenancyChecklist,
)
from .change_feed import FEED, ChangeFeed, OnError, Unsubscribe

COLLECTION_MODELS = {
    COLLECTION_TENANTS: Tenant,
    COLLECTION_MAINTENANCE: MaintenanceLog,
    COLLECTION_INSPECTIONS: Inspection,
    COLLECTION_DOCUMENTS: Document,
    COLLECTION_EXPENSES: Expense,
    COLLECTION_RENT_PAYMENTS: RentPayment,
    COLLECTION_CHECKLISTS: TenancyChecklist,
}


def owner_path(owner_id: Any) -> str:
    return f"owners/{owner_id}"


def properties_path(owner_id: Any) -> str:
    return f"{owner_path(owner_id)}/properties"


def child_path(owner_id: Any, property_id: Any, collection: str) -> str:
    return f"{properties_path(owner_id)}/{property_id}/{collection}"


def record_from_row(row: Any) -> dict[str, Any]:
    """ORM row -> plain snapshot record. *_json columns are decoded."""
    rec = row.to_dict()
    for k in list(rec.keys()):
        if k.endswith("_json"):
            raw = rec.pop(k)
            try:
                rec[k[: -len("_json")]] = json.loads(raw) if raw else {}
            except (TypeError, ValueError):
                rec[k[: -len("_json")]] = {}
    return rec


def _model_for(collection: str):
    try:
        return COLLECTION_MODELS[collection]
    except KeyError:
        raise ValueError(f"unknown child collection: {collection!r}") from None


class DocumentStore:
    """
    Hierarchical view over the relational tables:

        owners/{owner_id}/properties/{property_id}/{collection}/{child_id}

    Every query is scoped by owner_id. Reads run in their own short session
    so subscriptions can re-fetch from any thread after a commit.
    """

    def __init__(
        self,
        session_factory: sessionmaker | Callable[[], Session] = SessionLocal,
        feed: ChangeFeed = FEED,
    ) -> None:
        self._session_factory = session_factory
        self.feed = feed

    # ---- properties ----
    def list_properties(
        self,
        owner_id: int,
        *,
        statuses: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        q = select(Property).where(Property.owner_id == owner_id)
        if statuses is not None:
            q = q.where(Property.status.in_(list(statuses)))
        q = q.order_by(Property.id)
        if limit is not None:
            q = q.limit(limit)
        with self._session_factory() as s:
            return [record_from_row(r) for r in s.scalars(q).all()]

    def watch_properties(
        self,
        owner_id: int,
        on_snapshot: Callable[[list[dict[str, Any]]], None],
        on_error: Optional[OnError] = None,
        *,
        statuses: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
    ) -> Unsubscribe:
        st = list(statuses) if statuses is not None else None
        return self.feed.subscribe(
            properties_path(owner_id),
            lambda: self.list_properties(owner_id, statuses=st, limit=limit),
            on_snapshot,
            on_error,
        )

    # ---- child collections ----
    def list_children(
        self,
        owner_id: int,
        property_id: int,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        model = _model_for(collection)
        q = select(model).where(model.owner_id == owner_id, model.property_id == property_id)
        for field, value in (filters or {}).items():
            col = getattr(model, field, None)
            if col is None:
                raise ValueError(f"{collection} has no field {field!r}")
            if isinstance(value, (list, tuple, set, frozenset)):
                q = q.where(col.in_(list(value)))
            else:
                q = q.where(col == value)
        q = q.order_by(model.id)
        if limit is not None:
            q = q.limit(limit)
        with self._session_factory() as s:
            return [record_from_row(r) for r in s.scalars(q).all()]

    def watch_children(
        self,
        owner_id: int,
        property_id: int,
        collection: str,
        on_snapshot: Callable[[list[dict[str, Any]]], None],
        on_error: Optional[OnError] = None,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Unsubscribe:
        _model_for(collection)
        return self.feed.subscribe(
            child_path(owner_id, property_id, collection),
            lambda: self.list_children(owner_id, property_id, collection, filters=filters, limit=limit),
            on_snapshot,
            on_error,
        )

    # ---- writes ----
    def notify(self, owner_id: int, property_id: Optional[int] = None, collection: Optional[str] = None) -> int:
        """Re-deliver snapshots after a committed write."""
        if property_id is None or collection is None:
            return self.feed.publish(properties_path(owner_id))
        return self.feed.publish(child_path(owner_id, property_id, collection))


def get_store() -> DocumentStore:
    return DocumentStore()
