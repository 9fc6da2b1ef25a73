from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from .derived_status import to_date


# HMRC self-assessment grouping of expense types.
HMRC_GROUPS: dict[str, tuple[str, ...]] = {
    "rates_insurance": ("Insurance", "Utilities"),
    "repairs_maintenance": ("Repairs and Maintenance", "Cleaning", "Gardening"),
    "professional_fees": ("Letting Agent Fees",),
    "other": ("Other",),
    "finance_costs": ("Mortgage Interest",),
}

HMRC_LABELS: dict[str, str] = {
    "rent_received": "Rent received (total for period)",
    "rates_insurance": "Rates, council tax, insurance, ground rents etc.",
    "repairs_maintenance": "Property repairs and maintenance",
    "professional_fees": "Management fees and other professional fees",
    "other": "Other allowable property expenses",
    "finance_costs": "Residential finance costs (for reference)",
}


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


@dataclass(frozen=True)
class FinancialSummary:
    year: int
    property_id: Optional[int]
    annual_rent_roll: float
    rent_received: float
    total_expenses: float
    net_income: float
    expenses_by_type: dict[str, float] = field(default_factory=dict)
    hmrc: dict[str, float] = field(default_factory=dict)


def expenses_in_year(expenses: Iterable[Any], year: int) -> list[Any]:
    out = []
    for e in expenses:
        d = to_date(_get(e, "expense_date"))
        if d is not None and d.year == int(year):
            out.append(e)
    return out


def hmrc_grouping(expenses: Iterable[Any], rent_received: float) -> dict[str, float]:
    totals = {k: 0.0 for k in HMRC_GROUPS}
    for e in expenses:
        et = _get(e, "expense_type") or ""
        for group, types in HMRC_GROUPS.items():
            if et in types:
                totals[group] += float(_get(e, "amount") or 0.0)
                break
    return {"rent_received": round(float(rent_received), 2), **{k: round(v, 2) for k, v in totals.items()}}


def financial_summary(
    *,
    properties: Iterable[Any],
    expenses: Iterable[Any],
    rent_payments: Iterable[Any],
    year: int,
    property_id: Optional[int] = None,
) -> FinancialSummary:
    """
    Annual figures for one property (property_id) or the whole active portfolio.

    - annual rent roll = monthly_rent * 12
    - rent received    = sum(amount_paid) for that year
    - net income       = rent received - expenses in that year
    """
    props = list(properties)
    if property_id is not None:
        props = [p for p in props if str(_get(p, "id")) == str(property_id)]

        def _mine(x: Any) -> bool:
            return str(_get(x, "property_id")) == str(property_id)

        expenses = [e for e in expenses if _mine(e)]
        rent_payments = [r for r in rent_payments if _mine(r)]

    roll = sum(float(_get(p, "monthly_rent") or 0.0) * 12 for p in props)

    received = sum(
        float(_get(r, "amount_paid") or 0.0) for r in rent_payments if int(_get(r, "year") or 0) == int(year)
    )

    year_expenses = expenses_in_year(expenses, year)
    by_type: dict[str, float] = {}
    for e in year_expenses:
        et = _get(e, "expense_type") or "Other"
        by_type[et] = round(by_type.get(et, 0.0) + float(_get(e, "amount") or 0.0), 2)
    total_exp = sum(float(_get(e, "amount") or 0.0) for e in year_expenses)

    return FinancialSummary(
        year=int(year),
        property_id=property_id,
        annual_rent_roll=round(roll, 2),
        rent_received=round(received, 2),
        total_expenses=round(total_exp, 2),
        net_income=round(received - total_exp, 2),
        expenses_by_type=by_type,
        hmrc=hmrc_grouping(year_expenses, received),
    )
