from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .vocab import (
    MONTHS,
    PROPERTY_OCCUPIED,
    RENT_PAID,
    RENT_PARTIALLY_PAID,
    RENT_PENDING,
    RENT_UNPAID,
)


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def normalize_month(month: str | int) -> str:
    """Accepts 1..12, "jan", "January"; returns the canonical month name."""
    if isinstance(month, int):
        if 1 <= month <= 12:
            return MONTHS[month - 1]
        raise ValueError(f"month out of range: {month}")

    s = (month or "").strip().lower()
    if s.isdigit():
        return normalize_month(int(s))
    for m in MONTHS:
        if m.lower() == s or m.lower()[:3] == s:
            return m
    raise ValueError(f"unknown month: {month!r}")


def rent_ledger_bucket(
    payments: Iterable[Any],
    *,
    property_id: Any,
    year: int,
    month: str,
) -> str:
    """Stored status for that property/year/month, else Pending."""
    for p in payments:
        if (
            str(_get(p, "property_id")) == str(property_id)
            and int(_get(p, "year") or 0) == int(year)
            and _get(p, "month") == month
        ):
            return _get(p, "status") or RENT_PENDING
    return RENT_PENDING


def annual_rent_statement(
    payments: Iterable[Any],
    *,
    property_id: Any,
    year: int,
    default_rent: Optional[float],
) -> list[dict[str, Any]]:
    """
    Twelve rows, January..December, for one property. Status comes from
    rent_ledger_bucket; a stored payment's expected_amount wins over the
    property's monthly rent.
    """
    payments = list(payments)
    by_month: dict[str, Any] = {}
    for p in payments:
        if str(_get(p, "property_id")) == str(property_id) and int(_get(p, "year") or 0) == int(year):
            by_month[_get(p, "month")] = p

    rows: list[dict[str, Any]] = []
    for m in MONTHS:
        p = by_month.get(m)
        expected = _get(p, "expected_amount") if p is not None else None
        rows.append(
            {
                "month": m,
                "rent": float(expected if expected is not None else (default_rent or 0.0)),
                "status": rent_ledger_bucket(payments, property_id=property_id, year=year, month=m),
                "amount_paid": float(_get(p, "amount_paid") or 0.0) if p is not None else 0.0,
            }
        )
    return rows


def amount_paid_for_status(status: str, expected_amount: float, explicit: Optional[float] = None) -> float:
    if explicit is not None:
        return float(explicit)
    return float(expected_amount) if status == RENT_PAID else 0.0


def rent_status_breakdown(
    properties: Iterable[Any],
    payments: Iterable[Any],
    *,
    year: int,
    month: str,
) -> list[dict[str, Any]]:
    """
    Portfolio rent collection for one month.

    Pending = occupied properties that have no Paid/Partially Paid/Unpaid
    record this month. Zero buckets are omitted.
    """
    occupied = sum(1 for p in properties if _get(p, "status") == PROPERTY_OCCUPIED)

    counts = {RENT_PAID: 0, RENT_PARTIALLY_PAID: 0, RENT_UNPAID: 0}
    for pay in payments:
        if int(_get(pay, "year") or 0) != int(year) or _get(pay, "month") != month:
            continue
        s = _get(pay, "status")
        if s in counts:
            counts[s] += 1

    non_pending = sum(counts.values())
    pending = max(0, occupied - non_pending)

    out = [
        {"status": RENT_PAID, "count": counts[RENT_PAID]},
        {"status": RENT_PARTIALLY_PAID, "count": counts[RENT_PARTIALLY_PAID]},
        {"status": RENT_UNPAID, "count": counts[RENT_UNPAID]},
        {"status": RENT_PENDING, "count": pending},
    ]
    return [row for row in out if row["count"] > 0]
