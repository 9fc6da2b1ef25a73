from __future__ import annotations

# Property lifecycle. "Deleted" is a soft delete; rows are never removed.
PROPERTY_VACANT = "Vacant"
PROPERTY_OCCUPIED = "Occupied"
PROPERTY_UNDER_MAINTENANCE = "Under Maintenance"
PROPERTY_DELETED = "Deleted"

PROPERTY_STATUSES = (PROPERTY_VACANT, PROPERTY_OCCUPIED, PROPERTY_UNDER_MAINTENANCE, PROPERTY_DELETED)
ACTIVE_PROPERTY_STATUSES = (PROPERTY_VACANT, PROPERTY_OCCUPIED, PROPERTY_UNDER_MAINTENANCE)

TENANT_ACTIVE = "Active"
TENANT_ARCHIVED = "Archived"
TENANT_STATUSES = (TENANT_ACTIVE, TENANT_ARCHIVED)

CONTRACTOR_ACTIVE = "Active"
CONTRACTOR_ARCHIVED = "Archived"
CONTRACTOR_STATUSES = (CONTRACTOR_ACTIVE, CONTRACTOR_ARCHIVED)

MAINTENANCE_STATUSES = ("Open", "In Progress", "Completed", "Cancelled")
MAINTENANCE_OPEN_STATUSES = ("Open", "In Progress")
MAINTENANCE_PRIORITIES = ("Low", "Medium", "High", "Emergency")

INSPECTION_SCHEDULED = "Scheduled"
INSPECTION_STATUSES = (INSPECTION_SCHEDULED, "Completed", "Cancelled")
INSPECTION_SINGLE_LET = "Single-Let"
INSPECTION_HMO = "HMO"
INSPECTION_TYPES = (INSPECTION_SINGLE_LET, INSPECTION_HMO)

# Derived only; never persisted.
DOC_EXPIRED = "Expired"
DOC_EXPIRING_SOON = "Expiring Soon"
DOC_VALID = "Valid"
DOCUMENT_STATUSES = (DOC_EXPIRED, DOC_EXPIRING_SOON, DOC_VALID)

RENT_PAID = "Paid"
RENT_PARTIALLY_PAID = "Partially Paid"
RENT_UNPAID = "Unpaid"
RENT_PENDING = "Pending"
RENT_STATUSES = (RENT_PAID, RENT_PARTIALLY_PAID, RENT_UNPAID, RENT_PENDING)

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

EXPENSE_TYPES = (
    "Repairs and Maintenance",
    "Insurance",
    "Utilities",
    "Letting Agent Fees",
    "Mortgage Interest",
    "Cleaning",
    "Gardening",
    "Other",
)

# Child collections under owners/{owner}/properties/{property}/...
COLLECTION_TENANTS = "tenants"
COLLECTION_MAINTENANCE = "maintenance_logs"
COLLECTION_INSPECTIONS = "inspections"
COLLECTION_DOCUMENTS = "documents"
COLLECTION_EXPENSES = "expenses"
COLLECTION_RENT_PAYMENTS = "rent_payments"
COLLECTION_CHECKLISTS = "checklists"

CHILD_COLLECTIONS = (
    COLLECTION_TENANTS,
    COLLECTION_MAINTENANCE,
    COLLECTION_INSPECTIONS,
    COLLECTION_DOCUMENTS,
    COLLECTION_EXPENSES,
    COLLECTION_RENT_PAYMENTS,
    COLLECTION_CHECKLISTS,
)


def is_active_status(status: str | None) -> bool:
    return (status or "") in ACTIVE_PROPERTY_STATUSES
