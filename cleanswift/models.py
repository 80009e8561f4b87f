"""Domain records persisted by the CleanSwift data layer.

Top-level records (clients, appointments, invoices, inventory items and the
company profile) are flattened into spreadsheet rows by
:mod:`cleanswift.row_codec`.  Nested values such as contacts or invoice lines
are stored as JSON inside a single cell, which is why every nested dataclass
offers ``to_dict``/``from_dict`` helpers using the camelCase keys found in
existing spreadsheets.

``from_dict`` never raises: missing keys fall back to defaults and values of
the wrong type are coerced, so a hand-edited cell cannot break a whole read.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class Status(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"
    COMPLETED = "Completed"
    PAID = "Paid"
    UNPAID = "Unpaid"
    OVERDUE = "Overdue"
    LOW_STOCK = "Low Stock"
    IN_STOCK = "In Stock"


class Frequency(str, Enum):
    EVERY_TIME = "Every Time"
    EVERY_OTHER_TIME = "Every Other Time"
    MONTHLY = "Monthly"


class Recurrence(str, Enum):
    WEEKLY = "Weekly"
    BIWEEKLY = "Biweekly"
    MONTHLY = "Monthly"


def generate_id() -> str:
    """Return a short random alphanumeric identifier."""

    return uuid.uuid4().hex[:9]


def parse_enum(enum_cls: Type[E], value: Any, default: Optional[E] = None) -> Optional[E]:
    """Return the ``enum_cls`` member matching ``value`` or ``default``."""

    if isinstance(value, enum_cls):
        return value
    text = "" if value is None else str(value).strip()
    if not text:
        return default
    try:
        return enum_cls(text)
    except ValueError:
        return default


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value in (None, ""):
        return None
    return str(value)


def _flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _number(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _mappings(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


# ---------------------------------------------------------------------------
# Client composition
# ---------------------------------------------------------------------------
@dataclass
class Contact:
    id: str = ""
    name: str = ""
    relation: str = ""
    phone: str = ""
    email: str = ""
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "relation": self.relation,
            "phone": self.phone,
            "email": self.email,
            "isPrimary": self.is_primary,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contact":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            relation=_text(data, "relation"),
            phone=_text(data, "phone"),
            email=_text(data, "email"),
            is_primary=_flag(data, "isPrimary"),
        )


@dataclass
class Location:
    id: str = ""
    address: str = ""
    type: str = ""
    notes: str = ""
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "type": self.type,
            "notes": self.notes,
            "isPrimary": self.is_primary,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Location":
        return cls(
            id=_text(data, "id"),
            address=_text(data, "address"),
            type=_text(data, "type"),
            notes=_text(data, "notes"),
            is_primary=_flag(data, "isPrimary"),
        )


@dataclass
class Child:
    id: str = ""
    name: str = ""
    age: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "age": self.age, "notes": self.notes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Child":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            age=_text(data, "age"),
            notes=_text(data, "notes"),
        )


@dataclass
class Pet:
    id: str = ""
    name: str = ""
    type: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.type, "notes": self.notes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pet":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            type=_text(data, "type"),
            notes=_text(data, "notes"),
        )


@dataclass
class ChecklistItem:
    id: str = ""
    task: str = ""
    frequency: Frequency = Frequency.EVERY_TIME
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task": self.task,
            "frequency": self.frequency.value,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChecklistItem":
        return cls(
            id=_text(data, "id"),
            task=_text(data, "task"),
            frequency=parse_enum(Frequency, data.get("frequency"), Frequency.EVERY_TIME),
            completed=_flag(data, "completed"),
        )


@dataclass
class Client:
    id: str = ""
    name: str = ""
    contacts: List[Contact] = field(default_factory=list)
    locations: List[Location] = field(default_factory=list)
    children: List[Child] = field(default_factory=list)
    pets: List[Pet] = field(default_factory=list)
    house_notes: str = ""
    general_notes: str = ""
    checklist: Optional[List[ChecklistItem]] = None

    def primary_contact(self) -> Optional[Contact]:
        for contact in self.contacts:
            if contact.is_primary:
                return contact
        return self.contacts[0] if self.contacts else None

    def primary_location(self) -> Optional[Location]:
        for location in self.locations:
            if location.is_primary:
                return location
        return self.locations[0] if self.locations else None


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------
@dataclass
class BreakRecord:
    start_time: str
    end_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"startTime": self.start_time}
        if self.end_time is not None:
            payload["endTime"] = self.end_time
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BreakRecord":
        return cls(start_time=_text(data, "startTime"), end_time=_optional_text(data, "endTime"))


@dataclass
class JobLog:
    start_time: str
    end_time: Optional[str] = None
    total_hours: float = 0.0
    breaks: List[BreakRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "startTime": self.start_time,
            "totalHours": self.total_hours,
            "breaks": [entry.to_dict() for entry in self.breaks],
        }
        if self.end_time is not None:
            payload["endTime"] = self.end_time
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobLog":
        return cls(
            start_time=_text(data, "startTime"),
            end_time=_optional_text(data, "endTime"),
            total_hours=_number(data, "totalHours"),
            breaks=[BreakRecord.from_dict(entry) for entry in _mappings(data.get("breaks"))],
        )


@dataclass
class Appointment:
    id: str = ""
    client_id: str = ""
    client_name: str = ""
    date: str = ""
    time: str = ""
    service_type: str = ""
    status: Status = Status.PENDING
    address: str = ""
    rate: float = 0.0
    estimated_hours: float = 0.0
    notes: str = ""
    recurrence: Optional[Recurrence] = None
    series_id: Optional[str] = None
    checklist: Optional[List[ChecklistItem]] = None
    job_log: Optional[JobLog] = None

    @property
    def estimated_total(self) -> float:
        return self.rate * self.estimated_hours


# ---------------------------------------------------------------------------
# Invoices and inventory
# ---------------------------------------------------------------------------
@dataclass
class InvoiceItem:
    id: str = ""
    description: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0

    @property
    def total(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InvoiceItem":
        return cls(
            id=_text(data, "id"),
            description=_text(data, "description"),
            quantity=_number(data, "quantity"),
            unit_price=_number(data, "unitPrice"),
        )


@dataclass
class Invoice:
    id: str = ""
    client_id: str = ""
    appointment_id: Optional[str] = None
    client_name: str = ""
    date: str = ""
    due_date: str = ""
    status: Status = Status.UNPAID
    items: List[InvoiceItem] = field(default_factory=list)
    notes: str = ""
    amount: float = 0.0
    payment_method: Optional[str] = None
    payment_notes: Optional[str] = None


@dataclass
class InventoryItem:
    id: str = ""
    item_name: str = ""
    quantity: float = 0.0
    unit: str = ""
    min_threshold: float = 0.0
    status: Status = Status.IN_STOCK
    supplier: str = ""
    cost: float = 0.0
    notes: str = ""


# ---------------------------------------------------------------------------
# Company profile
# ---------------------------------------------------------------------------
@dataclass
class JobType:
    id: str = ""
    name: str = ""
    default_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "defaultRate": self.default_rate}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobType":
        return cls(id=_text(data, "id"), name=_text(data, "name"), default_rate=_number(data, "defaultRate"))


@dataclass
class TemplateItem:
    """Checklist template entry. Templates carry no completion state."""

    id: str = ""
    task: str = ""
    frequency: Frequency = Frequency.EVERY_TIME

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "task": self.task, "frequency": self.frequency.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateItem":
        return cls(
            id=_text(data, "id"),
            task=_text(data, "task"),
            frequency=parse_enum(Frequency, data.get("frequency"), Frequency.EVERY_TIME),
        )


@dataclass
class ChecklistTemplate:
    id: str = ""
    name: str = ""
    items: List[TemplateItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChecklistTemplate":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            items=[TemplateItem.from_dict(entry) for entry in _mappings(data.get("items"))],
        )


@dataclass
class UserProfile:
    company_name: str = ""
    company_address: str = ""
    avatar: Optional[str] = None
    show_logo_on_invoice: bool = False
    job_types: List[JobType] = field(default_factory=list)
    checklist_templates: List[ChecklistTemplate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyName": self.company_name,
            "companyAddress": self.company_address,
            "avatar": self.avatar,
            "showLogoOnInvoice": self.show_logo_on_invoice,
            "jobTypes": [job_type.to_dict() for job_type in self.job_types],
            "checklistTemplates": [template.to_dict() for template in self.checklist_templates],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        return cls(
            company_name=_text(data, "companyName"),
            company_address=_text(data, "companyAddress"),
            avatar=_optional_text(data, "avatar"),
            show_logo_on_invoice=_flag(data, "showLogoOnInvoice"),
            job_types=[JobType.from_dict(entry) for entry in _mappings(data.get("jobTypes"))],
            checklist_templates=[
                ChecklistTemplate.from_dict(entry) for entry in _mappings(data.get("checklistTemplates"))
            ],
        )


__all__ = [
    "Appointment",
    "BreakRecord",
    "Child",
    "ChecklistItem",
    "ChecklistTemplate",
    "Client",
    "Contact",
    "Frequency",
    "InventoryItem",
    "Invoice",
    "InvoiceItem",
    "JobLog",
    "JobType",
    "Location",
    "Pet",
    "Recurrence",
    "Status",
    "TemplateItem",
    "UserProfile",
    "generate_id",
    "parse_enum",
]
