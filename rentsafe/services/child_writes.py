from __future__ import annotations

from typing import Any, Type, TypeVar

from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.audit import audit_write
from .document_store import DocumentStore
from .ownership import must_get_child, must_get_property

T = TypeVar("T")


def create_child(
    db: Session,
    store: DocumentStore,
    p: Principal,
    model: Type[T],
    *,
    property_id: int,
    collection: str,
    values: dict[str, Any],
) -> T:
    """Insert under owners/{owner}/properties/{property}/{collection}, audit, commit, notify."""
    _ = must_get_property(db, owner_id=p.owner_id, property_id=property_id)

    row = model(**values, owner_id=p.owner_id, property_id=property_id)
    db.add(row)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action=f"{model.__name__.lower()}.create",
        entity_type=model.__name__,
        entity_id=row.id,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, property_id, collection)
    return row


def update_child(
    db: Session,
    store: DocumentStore,
    p: Principal,
    model: Type[T],
    *,
    property_id: int,
    child_id: int,
    collection: str,
    values: dict[str, Any],
) -> T:
    row = must_get_child(db, model, owner_id=p.owner_id, property_id=property_id, child_id=child_id)
    before = row.to_dict()

    for k, v in values.items():
        setattr(row, k, v)
    db.flush()

    audit_write(
        db,
        owner_id=p.owner_id,
        action=f"{model.__name__.lower()}.update",
        entity_type=model.__name__,
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    db.commit()
    db.refresh(row)

    store.notify(p.owner_id, property_id, collection)
    return row


def delete_child(
    db: Session,
    store: DocumentStore,
    p: Principal,
    model: Type[Any],
    *,
    property_id: int,
    child_id: int,
    collection: str,
) -> dict[str, bool]:
    row = must_get_child(db, model, owner_id=p.owner_id, property_id=property_id, child_id=child_id)

    audit_write(
        db,
        owner_id=p.owner_id,
        action=f"{model.__name__.lower()}.delete",
        entity_type=model.__name__,
        entity_id=row.id,
        before=row.to_dict(),
    )
    db.delete(row)
    db.commit()

    store.notify(p.owner_id, property_id, collection)
    return {"ok": True}
