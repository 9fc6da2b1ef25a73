from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..config import settings
from ..domain.cashflow import FinancialSummary, financial_summary
from ..domain.derived_status import (
    document_status_counts,
    format_address,
    sort_by_date_asc,
    sort_by_date_desc,
    to_date,
    utcnow,
    with_document_status,
)
from ..domain.rent_ledger import rent_status_breakdown
from ..domain.vocab import (
    ACTIVE_PROPERTY_STATUSES,
    COLLECTION_DOCUMENTS,
    COLLECTION_EXPENSES,
    COLLECTION_INSPECTIONS,
    COLLECTION_MAINTENANCE,
    COLLECTION_RENT_PAYMENTS,
    DOC_VALID,
    INSPECTION_SCHEDULED,
    MAINTENANCE_OPEN_STATUSES,
    MONTHS,
)
from .document_store import DocumentStore
from .portfolio_aggregator import PortfolioAggregator

PORTFOLIO_WIDE = "Portfolio Wide"


def watch_portfolio(
    store: DocumentStore,
    *,
    owner_id: int,
    collections: Iterable[str],
    filters: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> PortfolioAggregator:
    """
    Aggregator fed by the live active-property query: every property snapshot
    calls set_parents(), so a soft delete or restore tears down and reopens the
    child subscriptions. Closing the aggregator also ends the property query.
    """
    agg = PortfolioAggregator(
        store,
        owner_id=owner_id,
        collections=list(collections),
        filters=filters,
        limits={COLLECTION_RENT_PAYMENTS: settings.rent_payment_query_limit},
    )
    unsub = store.watch_properties(
        owner_id,
        agg.set_parents,
        agg.parents_failed,
        statuses=ACTIVE_PROPERTY_STATUSES,
        limit=settings.property_query_limit,
    )
    agg.attach(unsub)
    return agg


def open_portfolio(
    store: DocumentStore,
    *,
    owner_id: int,
    collections: Iterable[str],
    filters: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> tuple[PortfolioAggregator, list[dict[str, Any]]]:
    """Live aggregator plus the active properties it opened with. Caller closes it."""
    agg = watch_portfolio(store, owner_id=owner_id, collections=collections, filters=filters)
    return agg, agg.parent_records


def _address_map(properties: Iterable[Mapping[str, Any]]) -> dict[Any, str]:
    return {p["id"]: format_address(p) for p in properties}


# -----------------------------
# Pure builders (flattened data in, view model out)
# -----------------------------
def open_maintenance(logs: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return [m for m in logs if m.get("status") in MAINTENANCE_OPEN_STATUSES]


def upcoming_inspections(
    inspections: Iterable[Mapping[str, Any]],
    *,
    now: Any = None,
    limit: Optional[int] = None,
) -> list[Mapping[str, Any]]:
    ref = to_date(now) if now is not None else utcnow()
    out = []
    for i in inspections:
        d = to_date(i.get("scheduled_date"))
        if d is None:
            continue
        if i.get("status") == INSPECTION_SCHEDULED and d > ref:
            out.append(i)
    out = sort_by_date_asc(out, "scheduled_date")
    return out[:limit] if limit else out


def recent_activity(
    logs: Iterable[Mapping[str, Any]],
    addresses: Mapping[Any, str],
    *,
    limit: int = 5,
) -> list[dict[str, Any]]:
    out = []
    for m in sort_by_date_desc(logs, "reported_date")[:limit]:
        out.append(
            {
                "id": m.get("id"),
                "property_id": m.get("property_id"),
                "property": addresses.get(m.get("property_id"), PORTFOLIO_WIDE),
                "activity": m.get("title"),
                "status": m.get("status"),
                "priority": m.get("priority"),
                "date": to_date(m.get("reported_date")),
            }
        )
    return out


def critical_compliance(
    documents: Iterable[Mapping[str, Any]],
    addresses: Mapping[Any, str],
    *,
    now: Any = None,
    limit: int = 5,
    warning_days: int = 90,
) -> list[dict[str, Any]]:
    flagged = [d for d in with_document_status(documents, now, warning_days=warning_days) if d["status"] != DOC_VALID]
    out = []
    for d in sort_by_date_asc(flagged, "expiry_date")[:limit]:
        out.append(
            {
                "id": d.get("id"),
                "property_id": d.get("property_id"),
                "task": d.get("title"),
                "property": addresses.get(d.get("property_id"), PORTFOLIO_WIDE),
                "status": d["status"],
                "due_date": to_date(d.get("expiry_date")),
                "type": "Document",
            }
        )
    return out


def build_reminders(
    documents: Iterable[Mapping[str, Any]],
    inspections: Iterable[Mapping[str, Any]],
    addresses: Mapping[Any, str],
    *,
    now: Any = None,
    warning_days: int = 90,
) -> list[dict[str, Any]]:
    """Non-valid documents + future scheduled inspections, soonest first."""
    out: list[dict[str, Any]] = []
    for d in with_document_status(documents, now, warning_days=warning_days):
        if d["status"] == DOC_VALID:
            continue
        out.append(
            {
                "kind": "document",
                "id": d.get("id"),
                "property_id": d.get("property_id"),
                "property": addresses.get(d.get("property_id"), "Unknown"),
                "title": d.get("title"),
                "status": d["status"],
                "due_date": to_date(d.get("expiry_date")),
            }
        )
    for i in upcoming_inspections(inspections, now=now):
        out.append(
            {
                "kind": "inspection",
                "id": i.get("id"),
                "property_id": i.get("property_id"),
                "property": addresses.get(i.get("property_id"), "Unknown"),
                "title": f"{i.get('inspection_type') or 'Inspection'} inspection",
                "status": i.get("status"),
                "due_date": to_date(i.get("scheduled_date")),
            }
        )
    out.sort(key=lambda r: r["due_date"])
    return out


def build_dashboard(
    *,
    properties: list[Mapping[str, Any]],
    maintenance: list[Mapping[str, Any]],
    inspections: list[Mapping[str, Any]],
    documents: list[Mapping[str, Any]],
    rent_payments: list[Mapping[str, Any]],
    now: Any = None,
    top_n: int = 5,
    warning_days: int = 90,
) -> dict[str, Any]:
    ref = to_date(now) if now is not None else utcnow()
    addresses = _address_map(properties)
    year, month = ref.year, MONTHS[ref.month - 1]

    return {
        "as_of": ref,
        "active_properties": len(properties),
        "open_maintenance": len(open_maintenance(maintenance)),
        "upcoming_inspections": upcoming_inspections(inspections, now=ref, limit=top_n),
        "recent_activity": recent_activity(maintenance, addresses, limit=top_n),
        "critical_compliance": critical_compliance(
            documents, addresses, now=ref, limit=top_n, warning_days=warning_days
        ),
        "rent_status": {
            "year": year,
            "month": month,
            "breakdown": rent_status_breakdown(properties, rent_payments, year=year, month=month),
        },
    }


def build_document_view(
    documents: list[Mapping[str, Any]],
    *,
    now: Any = None,
    property_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    warning_days: int = 90,
) -> dict[str, Any]:
    rows = with_document_status(documents, now, warning_days=warning_days)
    if property_id is not None:
        rows = [d for d in rows if str(d.get("property_id")) == str(property_id)]
    counts = document_status_counts(rows)

    term = (search or "").strip().lower()
    filtered = [
        d
        for d in rows
        if (not term or term in str(d.get("title") or "").lower()) and (not status or status == "All" or d["status"] == status)
    ]
    return {"counts": counts, "documents": sort_by_date_asc(filtered, "expiry_date")}


# -----------------------------
# Aggregator-backed views
# -----------------------------
def compute_dashboard(store: DocumentStore, *, owner_id: int, now: Any = None) -> dict[str, Any]:
    collections = (COLLECTION_MAINTENANCE, COLLECTION_INSPECTIONS, COLLECTION_DOCUMENTS, COLLECTION_RENT_PAYMENTS)
    ref = to_date(now) if now is not None else utcnow()
    agg, props = open_portfolio(
        store,
        owner_id=owner_id,
        collections=collections,
        filters={COLLECTION_RENT_PAYMENTS: {"year": ref.year}},
    )
    with agg:
        data = agg.snapshot()
        out = build_dashboard(
            properties=props,
            maintenance=data[COLLECTION_MAINTENANCE],
            inspections=data[COLLECTION_INSPECTIONS],
            documents=data[COLLECTION_DOCUMENTS],
            rent_payments=data[COLLECTION_RENT_PAYMENTS],
            now=now,
            top_n=settings.upcoming_limit,
            warning_days=settings.compliance_warning_days,
        )
        out["loading"] = agg.loading
        out["failed_subscriptions"] = agg.failed_parents()
    return out


def compute_portfolio_documents(
    store: DocumentStore,
    *,
    owner_id: int,
    now: Any = None,
    property_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> dict[str, Any]:
    agg, props = open_portfolio(store, owner_id=owner_id, collections=(COLLECTION_DOCUMENTS,))
    with agg:
        out = build_document_view(
            agg.flattened(COLLECTION_DOCUMENTS),
            now=now,
            property_id=property_id,
            status=status,
            search=search,
            warning_days=settings.compliance_warning_days,
        )
        addresses = _address_map(props)
        for d in out["documents"]:
            d["property_address"] = addresses.get(d.get("property_id"), "Unknown")
        out["failed_subscriptions"] = agg.failed_parents()
    return out


def compute_portfolio_list(
    store: DocumentStore,
    *,
    owner_id: int,
    collection: str,
    date_field: str,
    statuses: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    """Flattened child records across the portfolio, newest first."""
    agg, props = open_portfolio(store, owner_id=owner_id, collections=(collection,))
    with agg:
        rows = agg.flattened(collection)
        if statuses:
            wanted = set(statuses)
            rows = [r for r in rows if r.get("status") in wanted]
        addresses = _address_map(props)
        items = []
        for r in sort_by_date_desc(rows, date_field):
            item = dict(r)
            item["property_address"] = addresses.get(r.get("property_id"), "Unknown")
            items.append(item)
        return {"items": items, "failed_subscriptions": agg.failed_parents()}


def compute_reminders(store: DocumentStore, *, owner_id: int, now: Any = None) -> list[dict[str, Any]]:
    agg, props = open_portfolio(store, owner_id=owner_id, collections=(COLLECTION_DOCUMENTS, COLLECTION_INSPECTIONS))
    with agg:
        return build_reminders(
            agg.flattened(COLLECTION_DOCUMENTS),
            agg.flattened(COLLECTION_INSPECTIONS),
            _address_map(props),
            now=now,
            warning_days=settings.compliance_warning_days,
        )


def compute_financials(
    store: DocumentStore,
    *,
    owner_id: int,
    year: int,
    property_id: Optional[int] = None,
) -> FinancialSummary:
    agg, props = open_portfolio(
        store,
        owner_id=owner_id,
        collections=(COLLECTION_EXPENSES, COLLECTION_RENT_PAYMENTS),
        filters={COLLECTION_RENT_PAYMENTS: {"year": int(year)}},
    )
    with agg:
        return financial_summary(
            properties=props,
            expenses=agg.flattened(COLLECTION_EXPENSES),
            rent_payments=agg.flattened(COLLECTION_RENT_PAYMENTS),
            year=year,
            property_id=property_id,
        )


def open_maintenance_by_property(logs: Iterable[Mapping[str, Any]]) -> dict[Any, int]:
    counts: dict[Any, int] = {}
    for m in open_maintenance(logs):
        pid = m.get("property_id")
        counts[pid] = counts.get(pid, 0) + 1
    return counts


def compute_property_export(store: DocumentStore, *, owner_id: int) -> tuple[list[dict[str, Any]], dict[Any, int]]:
    """Active properties plus their open maintenance counts, for the CSV export."""
    agg, props = open_portfolio(store, owner_id=owner_id, collections=(COLLECTION_MAINTENANCE,))
    with agg:
        return props, open_maintenance_by_property(agg.flattened(COLLECTION_MAINTENANCE))
