from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ActivePropertyStatus = Literal["Vacant", "Occupied", "Under Maintenance"]
PropertyStatus = Literal["Vacant", "Occupied", "Under Maintenance", "Deleted"]
TenantStatus = Literal["Active", "Archived"]
ContractorStatus = Literal["Active", "Archived"]
MaintenanceStatus = Literal["Open", "In Progress", "Completed", "Cancelled"]
MaintenancePriority = Literal["Low", "Medium", "High", "Emergency"]
InspectionStatus = Literal["Scheduled", "Completed", "Cancelled"]
InspectionType = Literal["Single-Let", "HMO"]
DocumentStatus = Literal["Expired", "Expiring Soon", "Valid"]
RentStatus = Literal["Paid", "Partially Paid", "Unpaid", "Pending"]
ExpenseType = Literal[
    "Repairs and Maintenance",
    "Insurance",
    "Utilities",
    "Letting Agent Fees",
    "Mortgage Interest",
    "Cleaning",
    "Gardening",
    "Other",
]


def _decode_json_columns(data: Any) -> Any:
    """ORM rows keep nested checklists in *_json text columns."""
    if isinstance(data, dict) or data is None:
        return data
    raw = getattr(data, "checklist_json", None)
    if raw is None and not hasattr(data, "checklist_json"):
        return data
    out = data.to_dict() if hasattr(data, "to_dict") else dict(vars(data))
    out.pop("checklist_json", None)
    try:
        out["checklist"] = json.loads(raw) if raw else {}
    except (TypeError, ValueError):
        out["checklist"] = {}
    return out


# -------------------- Auth --------------------

class TokenRequest(BaseModel):
    email: str = Field(min_length=3)
    display_name: Optional[str] = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    owner_id: int


class PrincipalOut(BaseModel):
    owner_id: int
    email: str


# -------------------- Properties --------------------

class PropertyCreate(BaseModel):
    name_or_number: Optional[str] = None
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    county: Optional[str] = None
    postcode: str = Field(min_length=2, max_length=10)
    property_type: str = "House"
    status: ActivePropertyStatus = "Vacant"
    bedrooms: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)
    monthly_rent: Optional[float] = Field(default=None, ge=0)
    deposit_amount: Optional[float] = Field(default=None, ge=0)
    purchase_price: Optional[float] = Field(default=None, ge=0)
    current_valuation: Optional[float] = Field(default=None, ge=0)


class PropertyUpdate(BaseModel):
    name_or_number: Optional[str] = None
    street: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    county: Optional[str] = None
    postcode: Optional[str] = Field(default=None, min_length=2, max_length=10)
    property_type: Optional[str] = None
    status: Optional[ActivePropertyStatus] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    monthly_rent: Optional[float] = Field(default=None, ge=0)
    deposit_amount: Optional[float] = Field(default=None, ge=0)
    purchase_price: Optional[float] = Field(default=None, ge=0)
    current_valuation: Optional[float] = Field(default=None, ge=0)

    @field_validator(
        "street", "city", "postcode", "property_type", "status", "bedrooms", "bathrooms", mode="before"
    )
    @classmethod
    def _no_explicit_null(cls, v: Any) -> Any:
        # Omit the field to leave it unchanged; these columns cannot be cleared.
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class PropertyOut(PropertyCreate):
    id: int
    status: PropertyStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Tenants / Screening --------------------

class TenantCreate(BaseModel):
    property_id: int
    full_name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    tenancy_start_date: Optional[date] = None
    tenancy_end_date: Optional[date] = None
    monthly_rent: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _dates_in_order(self) -> "TenantCreate":
        if self.tenancy_start_date and self.tenancy_end_date and self.tenancy_end_date < self.tenancy_start_date:
            raise ValueError("tenancy_end_date must not be before tenancy_start_date")
        return self


class TenantOut(TenantCreate):
    id: int
    status: TenantStatus
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AffordabilityOut(BaseModel):
    ratio: float
    display: str
    is_risky: bool
    message: str


class ChecklistSummaryOut(BaseModel):
    total: int
    checked: int
    pct_complete: float
    flagged: list[str] = Field(default_factory=list)
    outstanding: list[str] = Field(default_factory=list)


class ScreeningCreate(BaseModel):
    screening_date: date
    monthly_income: Optional[float] = Field(default=None, ge=0)
    monthly_rent: Optional[float] = Field(default=None, ge=0)
    checklist: dict[str, Any] = Field(default_factory=dict)
    overall_notes: Optional[str] = None


class ScreeningOut(BaseModel):
    id: int
    tenant_id: int
    property_id: int
    screening_date: date
    monthly_income: Optional[float] = None
    monthly_rent: Optional[float] = None
    checklist: dict[str, Any] = Field(default_factory=dict)
    overall_notes: Optional[str] = None
    created_at: datetime

    affordability: Optional[AffordabilityOut] = None
    checklist_summary: Optional[ChecklistSummaryOut] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _decode(cls, data: Any) -> Any:
        return _decode_json_columns(data)


# -------------------- Tenancy checklists --------------------

class TenancyChecklistCreate(BaseModel):
    tenant_id: int
    completed_date: date
    checklist: dict[str, Any] = Field(default_factory=dict)


class TenancyChecklistOut(BaseModel):
    id: int
    property_id: int
    tenant_id: int
    completed_date: date
    checklist: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    checklist_summary: Optional[ChecklistSummaryOut] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _decode(cls, data: Any) -> Any:
        return _decode_json_columns(data)


# -------------------- Contractors --------------------

class ContractorCreate(BaseModel):
    name: str = Field(min_length=2)
    trade: str = Field(min_length=2)
    phone: str = Field(min_length=10, max_length=40)
    email: Optional[str] = None
    notes: Optional[str] = None


class ContractorOut(ContractorCreate):
    id: int
    status: ContractorStatus
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Maintenance --------------------

class MaintenanceCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = "General"
    priority: MaintenancePriority = "Medium"
    status: MaintenanceStatus = "Open"
    reported_date: Optional[datetime] = None
    contractor_id: Optional[int] = None
    contractor_name: Optional[str] = None
    contractor_phone: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class MaintenanceOut(MaintenanceCreate):
    id: int
    property_id: int
    reported_date: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Inspections --------------------

class InspectionCreate(BaseModel):
    inspection_type: InspectionType = "Single-Let"
    status: InspectionStatus = "Scheduled"
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    inspector_name: Optional[str] = None
    occupant_count: Optional[int] = Field(default=None, ge=1)
    licence_expiry_date: Optional[date] = None
    checklist: dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _hmo_needs_occupants(self) -> "InspectionCreate":
        if self.inspection_type == "HMO" and not self.occupant_count:
            raise ValueError("occupant_count is required for HMO inspections")
        return self


class InspectionOut(BaseModel):
    id: int
    property_id: int
    inspection_type: InspectionType
    status: InspectionStatus
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    inspector_name: Optional[str] = None
    occupant_count: Optional[int] = None
    licence_expiry_date: Optional[date] = None
    checklist: dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    checklist_summary: Optional[ChecklistSummaryOut] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _decode(cls, data: Any) -> Any:
        return _decode_json_columns(data)


# -------------------- Documents --------------------

class DocumentCreate(BaseModel):
    title: str = Field(min_length=1)
    document_type: str = Field(min_length=1)
    issue_date: date
    expiry_date: date
    notes: Optional[str] = None


class DocumentOut(DocumentCreate):
    id: int
    property_id: int
    # derived at read time from expiry_date vs now; never stored
    status: Optional[DocumentStatus] = None
    model_config = ConfigDict(from_attributes=True)


# -------------------- Expenses / Rent --------------------

class ExpenseCreate(BaseModel):
    expense_date: date
    expense_type: ExpenseType
    amount: float = Field(ge=0.01)
    paid_by: str = Field(min_length=1)
    notes: Optional[str] = None


class ExpenseOut(ExpenseCreate):
    id: int
    property_id: int
    model_config = ConfigDict(from_attributes=True)


class RentStatusUpdate(BaseModel):
    status: RentStatus
    expected_amount: Optional[float] = Field(default=None, ge=0)
    amount_paid: Optional[float] = Field(default=None, ge=0)


class RentPaymentOut(BaseModel):
    id: int
    property_id: int
    year: int
    month: str
    status: RentStatus
    expected_amount: float
    amount_paid: float
    model_config = ConfigDict(from_attributes=True)


class RentStatementRow(BaseModel):
    month: str
    rent: float
    status: RentStatus
    amount_paid: float = 0.0


class RentStatementOut(BaseModel):
    property_id: int
    year: int
    rows: list[RentStatementRow]


class FinancialSummaryOut(BaseModel):
    year: int
    property_id: Optional[int] = None
    annual_rent_roll: float
    rent_received: float
    total_expenses: float
    net_income: float
    expenses_by_type: dict[str, float] = Field(default_factory=dict)
    hmrc: dict[str, float] = Field(default_factory=dict)
    model_config = ConfigDict(from_attributes=True)
