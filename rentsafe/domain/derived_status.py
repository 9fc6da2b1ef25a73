from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional

from .vocab import (
    DOC_EXPIRED,
    DOC_EXPIRING_SOON,
    DOC_VALID,
)

DEFAULT_WARNING_DAYS = 90
DEFAULT_RISK_PCT = 40.0


def to_date(value: Any) -> Optional[datetime]:
    """
    Tolerant coercion to a naive UTC datetime.

    Accepts:
      - datetime (aware values are converted to UTC)
      - date (midnight)
      - {"seconds": n, "nanoseconds": m} timestamp dicts
      - epoch seconds (int/float)
      - ISO-8601 strings (a trailing "Z" is accepted)

    Returns None instead of raising for anything it cannot read.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                return value.astimezone(timezone.utc).replace(tzinfo=None)
            return value

        if isinstance(value, date):
            return datetime.combine(value, time.min)

        if isinstance(value, Mapping):
            if "seconds" not in value:
                return None
            secs = float(value["seconds"]) + float(value.get("nanoseconds") or 0) / 1e9
            return datetime.fromtimestamp(secs, tz=timezone.utc).replace(tzinfo=None)

        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(float(value), tz=timezone.utc).replace(tzinfo=None)

        if isinstance(value, str):
            s = value.strip()
            if s.endswith("Z"):
                s = s[:-1] + "+00:00"
            return to_date(datetime.fromisoformat(s))
    except (TypeError, ValueError, OverflowError, OSError):
        return None

    return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def document_status(expiry: Any, now: Any = None, *, warning_days: int = DEFAULT_WARNING_DAYS) -> str:
    """
    Expired        if expiry <  now
    Expiring Soon  if expiry <  now + warning_days
    Valid          otherwise

    Always computed from the wall clock at read time; never store the result.
    """
    exp = to_date(expiry)
    if exp is None:
        raise ValueError(f"unreadable expiry date: {expiry!r}")

    ref = to_date(now) if now is not None else utcnow()
    if ref is None:
        raise ValueError(f"unreadable reference date: {now!r}")

    if exp < ref:
        return DOC_EXPIRED
    if exp < ref + timedelta(days=warning_days):
        return DOC_EXPIRING_SOON
    return DOC_VALID


def with_document_status(
    docs: Iterable[Mapping[str, Any]],
    now: Any = None,
    *,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> list[dict[str, Any]]:
    """Attach derived status; records with an unreadable expiry_date are skipped."""
    ref = to_date(now) if now is not None else utcnow()
    out: list[dict[str, Any]] = []
    for d in docs:
        exp = to_date(d.get("expiry_date"))
        if exp is None:
            continue
        row = dict(d)
        row["status"] = document_status(exp, ref, warning_days=warning_days)
        out.append(row)
    return out


def document_status_counts(docs: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    counts = {DOC_EXPIRED: 0, DOC_EXPIRING_SOON: 0, DOC_VALID: 0}
    for d in docs:
        s = d.get("status")
        if s in counts:
            counts[s] += 1
    return counts


# -------------------------
# Affordability
# -------------------------
@dataclass(frozen=True)
class Affordability:
    ratio: float
    is_risky: bool
    threshold_pct: float

    @property
    def display(self) -> str:
        return f"{self.ratio:.1f}"

    @property
    def message(self) -> str:
        if self.is_risky:
            return f"Rent is over {self.threshold_pct:g}% of income. Guarantor recommended."
        return f"Rent is within affordable bounds (under {self.threshold_pct:g}%)."


def affordability_ratio(rent: Optional[float], income: Optional[float]) -> Optional[float]:
    """rent / income * 100, or None when either side is missing or zero."""
    if not rent or not income:
        return None
    return float(rent) * 100.0 / float(income)


def assess_affordability(
    rent: Optional[float],
    income: Optional[float],
    *,
    threshold_pct: float = DEFAULT_RISK_PCT,
) -> Optional[Affordability]:
    ratio = affordability_ratio(rent, income)
    if ratio is None:
        return None
    return Affordability(ratio=ratio, is_risky=ratio > threshold_pct, threshold_pct=threshold_pct)


# -------------------------
# Post-flattening sort helpers
# -------------------------
def sort_by_date_desc(records: Iterable[Mapping[str, Any]], field: str) -> list[Mapping[str, Any]]:
    """Newest first; unreadable dates sort last."""
    dated = []
    undated = []
    for r in records:
        d = to_date(r.get(field))
        (undated if d is None else dated).append((d, r))
    dated.sort(key=lambda x: x[0], reverse=True)
    return [r for _, r in dated] + [r for _, r in undated]


def sort_by_date_asc(records: Iterable[Mapping[str, Any]], field: str) -> list[Mapping[str, Any]]:
    """Oldest first; unreadable dates sort last."""
    dated = []
    undated = []
    for r in records:
        d = to_date(r.get(field))
        (undated if d is None else dated).append((d, r))
    dated.sort(key=lambda x: x[0])
    return [r for _, r in dated] + [r for _, r in undated]


def format_address(prop: Mapping[str, Any] | Any, *, short: bool = False) -> str:
    def _get(k: str) -> Any:
        if isinstance(prop, Mapping):
            return prop.get(k)
        return getattr(prop, k, None)

    if prop is None:
        return "Unknown Property"
    keys = ("name_or_number", "street") if short else ("name_or_number", "street", "city", "county", "postcode")
    return ", ".join(str(_get(k)) for k in keys if _get(k))
