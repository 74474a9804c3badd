"""Per-kind configuration records for the four managed resources."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..i18n import _
from .model import (
    Medicine,
    Patient,
    Record,
    Staff,
    StaffRole,
    Treatment,
    record_from_dict,
    record_to_dict,
)


@dataclass(frozen=True)
class ResourceKind:
    """Describe how one resource kind is fetched, searched and presented.

    ``name`` doubles as the URL segment under the API prefix and as the
    plural envelope key some servers wrap lists in.
    """

    name: str
    record_type: type
    label: str
    label_plural: str
    search_fields: tuple[str, ...]
    summarize: Callable[[Any], str]
    check: Callable[[Any], str | None]

    @property
    def alias(self) -> str:
        """Return the kind-specific envelope key checked by the normalizer."""
        return self.name

    def from_wire(self, data: dict[str, Any], *, strict: bool = False) -> Record:
        """Convert JSON ``data`` into a record of this kind.

        Pass ``strict`` for values typed by a user so malformed numbers and
        roles reach :attr:`check` instead of being replaced by defaults.
        """
        return record_from_dict(self.record_type, data, strict=strict)

    def to_wire(self, record: Record, *, include_id: bool = True) -> dict[str, Any]:
        """Convert ``record`` into the JSON body the server expects."""
        return record_to_dict(record, include_id=include_id)

    def display_label(self) -> str:
        """Return the translated singular label."""
        return _(self.label)

    def display_label_plural(self) -> str:
        """Return the translated plural label."""
        return _(self.label_plural)


# summaries -----------------------------------------------------------------
def _summarize_patient(p: Patient) -> str:
    return f"• {p.name} ({p.age}) - {p.medical_history}"


def _summarize_staff(s: Staff) -> str:
    role = s.role.value if isinstance(s.role, StaffRole) else str(s.role)
    suffix = f" - {s.specialization}" if s.specialization else ""
    return f"• {s.name} [{role}]{suffix}"


def _summarize_medicine(m: Medicine) -> str:
    return f"• {m.name} ({m.quantity})"


def _summarize_treatment(t: Treatment) -> str:
    date = f" ({t.date})" if t.date else ""
    return f"• {t.description}{date}"


# sanity checks -------------------------------------------------------------
def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _check_patient(p: Patient) -> str | None:
    if not p.name.strip():
        return _("Name is required.")
    if not _is_count(p.age):
        return _("Age is not valid.")
    return None


def _check_staff(s: Staff) -> str | None:
    if not s.name.strip():
        return _("Name is required.")
    if not isinstance(s.role, StaffRole):
        return _("Role must be DOCTOR or NURSE.")
    return None


def _check_medicine(m: Medicine) -> str | None:
    if not m.name.strip():
        return _("Name is required.")
    if not _is_count(m.quantity):
        return _("Quantity is not valid.")
    return None


def _check_treatment(t: Treatment) -> str | None:
    if not t.patient_id.strip():
        return _("A patient must be chosen.")
    if not t.staff_id.strip():
        return _("A staff member must be chosen.")
    return None


PATIENTS = ResourceKind(
    name="patients",
    record_type=Patient,
    label="patient",
    label_plural="patients",
    search_fields=("name", "age", "medical_history"),
    summarize=_summarize_patient,
    check=_check_patient,
)

STAFF = ResourceKind(
    name="staff",
    record_type=Staff,
    label="staff member",
    label_plural="staff",
    search_fields=("name", "role", "specialization"),
    summarize=_summarize_staff,
    check=_check_staff,
)

MEDICINES = ResourceKind(
    name="medicines",
    record_type=Medicine,
    label="medicine",
    label_plural="medicines",
    search_fields=("name", "quantity"),
    summarize=_summarize_medicine,
    check=_check_medicine,
)

TREATMENTS = ResourceKind(
    name="treatments",
    record_type=Treatment,
    label="treatment",
    label_plural="treatments",
    search_fields=("description", "notes", "date"),
    summarize=_summarize_treatment,
    check=_check_treatment,
)

KINDS: dict[str, ResourceKind] = {
    kind.name: kind for kind in (PATIENTS, STAFF, MEDICINES, TREATMENTS)
}


def get_kind(name: str) -> ResourceKind:
    """Return the :class:`ResourceKind` registered under ``name``.

    Raises ``KeyError`` for unknown kinds.
    """
    try:
        return KINDS[name.strip().lower()]
    except KeyError:
        raise KeyError(f"unknown resource kind: {name}") from None
