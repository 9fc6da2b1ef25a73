from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .vocab import INSPECTION_HMO, INSPECTION_SINGLE_LET

# Nested boolean checklists: area -> item keys. Every item defaults to False
# and every area may also carry free-text "notes".

SINGLE_LET_TEMPLATE: dict[str, tuple[str, ...]] = {
    "exterior": ("roofCondition", "walls", "windowsAndDoors", "garden", "pathways", "bins"),
    "safety": ("smokeAlarms", "coAlarm", "electricalSockets", "gasCert", "eicr", "patCert", "noTampering"),
    "interior": ("wallsCeilingsFloors", "noDamp", "windows", "doors", "ventilation", "cleanliness"),
    "kitchen": ("worktops", "sink", "oven", "fridge", "washingMachine", "ventilation"),
    "bathrooms": ("toilet", "shower", "noLeaks", "extractor", "sealant", "noMould"),
    "heating": ("boiler", "radiators", "thermostat", "hotWater"),
    "bedrooms": ("windows", "heating", "noDamp", "flooring", "furniture"),
    "tenantResponsibilities": ("clean", "noOccupants", "noPets", "noSmoking", "noAlterations"),
    "followUpActions": ("repairsRequired", "urgentSafetyIssues", "maintenanceScheduled"),
}

HMO_TEMPLATE: dict[str, tuple[str, ...]] = {
    "fireSafety": (
        "interlinkedAlarms",
        "heatDetector",
        "fireDoors",
        "doorSeals",
        "extinguishers",
        "fireBlanket",
        "emergencyLighting",
        "clearRoutes",
        "signage",
    ),
    "communal": ("clean", "lighting", "flooring", "noDamp", "windows", "wasteDisposal"),
    "bedrooms": ("doorLock", "ventilation", "heating", "noDamp", "furniture", "sockets", "occupancy"),
    "kitchen": ("appliances", "extractor", "sink", "cupboards", "fridge", "storage", "fireBlanket", "pat"),
    "bathrooms": ("toilet", "shower", "extractor", "noLeaks", "sealant", "hotWater"),
    "utilities": ("boiler", "radiators", "thermostats", "consumerUnit", "gasCert", "eicr"),
}

SCREENING_TEMPLATE: dict[str, tuple[str, ...]] = {
    "rightToRent": ("ukPassport", "shareCode", "visaPermit"),
    "idVerification": ("photoMatch", "nameMatch", "dobConsistent"),
    "creditCheck": ("reportReceived", "passed"),
    "employmentIncome": (
        "bankStatements",
        "payslips",
        "employmentContract",
        "employerReference",
        "sa302",
        "accountantReference",
    ),
    "landlordReference": ("rentOnTime", "anyArrears", "propertyConditionGood", "wouldRentAgain"),
    "addressHistory": ("verified",),
    "affordability": ("passed", "guarantorConsidered"),
    "guarantor": ("required", "idCheck", "creditCheck", "incomeVerified"),
}

# Start-of-tenancy paperwork. "optional" items are nice-to-haves and are
# left out of the completion count.
TENANCY_TEMPLATE: dict[str, tuple[str, ...]] = {
    "beforeTenancy": ("howToRentGuide", "epc", "gasSafety", "eicr", "tenancyAgreement", "rightToRent"),
    "deposit": ("prescribedInfo", "schemeLeaflet", "protectionCertificate"),
    "atMoveIn": ("inventory", "keysRecord", "emergencyContacts", "privacyNotice"),
    "optional": ("welcomeLetter", "applianceManuals", "binInfo", "parkingInfo"),
}

# Items that are flags, not things you want ticked.
_NEGATIVE_ITEMS = {
    ("followUpActions", "repairsRequired"),
    ("followUpActions", "urgentSafetyIssues"),
    ("landlordReference", "anyArrears"),
    ("guarantor", "required"),
}

# Areas whose items never count towards completion.
_OPTIONAL_AREAS = {"optional"}

INSPECTION_TEMPLATES = {
    INSPECTION_SINGLE_LET: SINGLE_LET_TEMPLATE,
    INSPECTION_HMO: HMO_TEMPLATE,
}


def inspection_template(inspection_type: str) -> dict[str, tuple[str, ...]]:
    try:
        return INSPECTION_TEMPLATES[inspection_type]
    except KeyError:
        raise ValueError(f"unknown inspection type: {inspection_type!r}") from None


def blank_checklist(template: Mapping[str, tuple[str, ...]]) -> dict[str, dict[str, Any]]:
    return {area: {**{k: False for k in keys}, "notes": ""} for area, keys in template.items()}


def normalize_checklist(template: Mapping[str, tuple[str, ...]], raw: Mapping[str, Any] | None) -> dict[str, dict[str, Any]]:
    """
    Fill a partial checklist against the template. Unknown areas/keys are
    dropped; values are coerced to bool. Extra string fields in an area
    (notes, agencyUsed, reference names) are kept.
    """
    raw = raw or {}
    out = blank_checklist(template)
    for area, keys in template.items():
        got = raw.get(area) or {}
        if not isinstance(got, Mapping):
            continue
        for k in keys:
            if k in got:
                out[area][k] = bool(got[k])
        for k, v in got.items():
            if k not in keys and isinstance(v, str):
                out[area][k] = v
    return out


@dataclass(frozen=True)
class ChecklistSummary:
    total: int
    checked: int
    pct_complete: float
    flagged: list[str] = field(default_factory=list)
    outstanding: list[str] = field(default_factory=list)


def summarize_checklist(template: Mapping[str, tuple[str, ...]], checklist: Mapping[str, Any] | None) -> ChecklistSummary:
    """
    Counts ticked items. Negative items (e.g. urgentSafetyIssues) are not
    part of the completion count; when ticked they are reported in flagged.
    Areas in _OPTIONAL_AREAS are skipped entirely.
    """
    data = normalize_checklist(template, checklist)
    total = 0
    checked = 0
    flagged: list[str] = []
    outstanding: list[str] = []

    for area, keys in template.items():
        if area in _OPTIONAL_AREAS:
            continue
        for k in keys:
            code = f"{area}.{k}"
            val = bool(data[area].get(k))
            if (area, k) in _NEGATIVE_ITEMS:
                if val:
                    flagged.append(code)
                continue
            total += 1
            if val:
                checked += 1
            else:
                outstanding.append(code)

    pct = round(checked / total * 100.0, 1) if total else 0.0
    return ChecklistSummary(total=total, checked=checked, pct_complete=pct, flagged=flagged, outstanding=outstanding)
