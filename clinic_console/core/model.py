"""Data models for the clinical records managed by the console."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any


class StaffRole(str, Enum):
    """Roles a staff member may hold."""

    DOCTOR = "DOCTOR"
    NURSE = "NURSE"


@dataclass
class Patient:
    """Patient record."""

    id: str | None = None
    name: str = ""
    age: int = 0
    medical_history: str = ""


@dataclass
class Staff:
    """Staff member record."""

    id: str | None = None
    name: str = ""
    role: StaffRole = StaffRole.DOCTOR
    specialization: str = ""


@dataclass
class Medicine:
    """Medicine stock record."""

    id: str | None = None
    name: str = ""
    quantity: int = 0


@dataclass
class Treatment:
    """Treatment linking a patient, a staff member and optionally a medicine."""

    id: str | None = None
    patient_id: str = ""
    staff_id: str = ""
    medicine_id: str = ""
    description: str = ""
    date: str = ""
    start_date: str = ""
    end_date: str = ""
    notes: str = ""


Record = Patient | Staff | Medicine | Treatment

# Python attribute -> server JSON key, only where they differ.
_WIRE_NAMES: dict[str, str] = {
    "medical_history": "medicalHistory",
    "patient_id": "patientId",
    "staff_id": "staffId",
    "medicine_id": "medicineId",
    "start_date": "startDate",
    "end_date": "endDate",
}


def wire_name(attribute: str) -> str:
    """Return the JSON key used by the server for ``attribute``."""
    return _WIRE_NAMES.get(attribute, attribute)


def _coerce_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_int(value: Any, default: int = 0, *, strict: bool = False) -> Any:
    if strict:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return value
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _coerce_role(value: Any, *, strict: bool = False) -> Any:
    if isinstance(value, StaffRole):
        return value
    try:
        return StaffRole(str(value).strip().upper())
    except ValueError:
        return value if strict else StaffRole.DOCTOR


def record_from_dict(
    cls: type[Record], data: Mapping[str, Any], *, strict: bool = False
) -> Record:
    """Build a ``cls`` instance from server JSON ``data``.

    Conversion is lenient: missing keys take the dataclass defaults, unknown
    keys are ignored and numeric identifiers are turned into strings. Both the
    wire (camelCase) and attribute (snake_case) spellings are accepted.

    With ``strict`` a number or role that cannot be parsed is kept as given
    instead of falling back to a default, so the per-kind check rejects it.
    """
    values: dict[str, Any] = {}
    for f in fields(cls):
        key = wire_name(f.name)
        if key in data:
            raw = data[key]
        elif f.name in data:
            raw = data[f.name]
        else:
            continue
        if f.name == "id":
            values[f.name] = _coerce_id(raw)
        elif f.name in {"age", "quantity"}:
            values[f.name] = _coerce_int(raw, strict=strict)
        elif f.name == "role":
            values[f.name] = _coerce_role(raw, strict=strict)
        else:
            values[f.name] = _coerce_text(raw)
    return cls(**values)


def record_to_dict(record: Record, *, include_id: bool = True) -> dict[str, Any]:
    """Return ``record`` as a JSON-ready mapping using server key names."""
    data: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.name == "id":
            if not include_id or value is None:
                continue
        if isinstance(value, Enum):
            value = value.value
        data[wire_name(f.name)] = value
    return data


__all__ = [
    "Medicine",
    "Patient",
    "Record",
    "Staff",
    "StaffRole",
    "Treatment",
    "record_from_dict",
    "record_to_dict",
    "wire_name",
]
