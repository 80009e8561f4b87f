"""Conversion between domain records and flat spreadsheet rows.

Every worksheet has a fixed column order described by its header row.  The
rules implemented here are shared by both storage backends so that a record
survives a trip through the spreadsheet unchanged:

* scalar fields occupy one cell each and numbers are coerced back with
  ``float`` because cell values come back untyped;
* booleans are written as the literal text ``TRUE``/``FALSE``;
* nested lists (contacts, invoice lines, checklists...) are written as one
  JSON cell.  A blank or malformed cell decodes to an empty collection and the
  failure is reported through :mod:`cleanswift.decode_errors` instead of
  aborting the read;
* the company avatar may exceed the per-cell size limit of Google Sheets, so
  it is split into fixed-size chunks stored in trailing cells.

The Settings row went through two historical layouts before the current one.
Current writes embed an explicit ``schemaVersion`` tag in the JobTypes cell;
rows written before the tag existed are told apart by sniffing that cell.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from cleanswift import decode_errors
from cleanswift.models import (
    Appointment,
    Child,
    ChecklistItem,
    ChecklistTemplate,
    Client,
    Contact,
    InventoryItem,
    Invoice,
    InvoiceItem,
    JobLog,
    JobType,
    Location,
    Pet,
    Recurrence,
    Status,
    UserProfile,
    parse_enum,
)

T = TypeVar("T")

CLIENTS_SHEET = "Clients"
APPOINTMENTS_SHEET = "Appointments"
INVOICES_SHEET = "Invoices"
INVENTORY_SHEET = "Inventory"
SETTINGS_SHEET = "Settings"
SHEET_TITLES: Tuple[str, ...] = (
    CLIENTS_SHEET,
    APPOINTMENTS_SHEET,
    INVOICES_SHEET,
    INVENTORY_SHEET,
    SETTINGS_SHEET,
)

TRUE_TEXT = "TRUE"
FALSE_TEXT = "FALSE"

# Google Sheets rejects cells above 50,000 characters.
AVATAR_CHUNK_SIZE = 40_000
SETTINGS_SCHEMA_VERSION = 3
SETTINGS_FIXED_COLUMNS = 4

CLIENT_HEADERS: Tuple[str, ...] = (
    "ID",
    "Name",
    "House Notes",
    "General Notes",
    "Contacts (JSON)",
    "Locations (JSON)",
    "Children (JSON)",
    "Pets (JSON)",
    "Checklist (JSON)",
)
APPOINTMENT_HEADERS: Tuple[str, ...] = (
    "ID",
    "ClientID",
    "Client Name",
    "Date",
    "Time",
    "Service",
    "Status",
    "Address",
    "Rate",
    "Hours",
    "Notes",
    "Recurrence",
    "SeriesID",
    "Checklist (JSON)",
    "JobLog (JSON)",
)
INVOICE_HEADERS: Tuple[str, ...] = (
    "ID",
    "ClientID",
    "ApptID",
    "Client Name",
    "Issue Date",
    "Due Date",
    "Status",
    "Amount",
    "Notes",
    "Items (JSON)",
    "Payment Method",
    "Payment Notes",
)
INVENTORY_HEADERS: Tuple[str, ...] = (
    "ID",
    "Item Name",
    "Quantity",
    "Unit",
    "Min Threshold",
    "Status",
    "Supplier",
    "Cost",
    "Notes",
)
SETTINGS_HEADERS: Tuple[str, ...] = (
    "CompanyName",
    "CompanyAddress",
    "ShowLogo",
    "JobTypes (JSON)",
    "Avatar (Base64...Chunks)",
)


@dataclass(frozen=True)
class RowCodec(Generic[T]):
    """Column layout and conversion functions for one worksheet."""

    title: str
    headers: Tuple[str, ...]
    encode: Callable[[T], List[Any]]
    decode: Callable[[Sequence[Any]], T]
    keyed: bool = True


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------
def _cell(row: Sequence[Any], index: int) -> Any:
    if index < len(row):
        return row[index]
    return ""


def _text_cell(row: Sequence[Any], index: int) -> str:
    value = _cell(row, index)
    return "" if value is None else str(value)


def _optional_text_cell(row: Sequence[Any], index: int) -> Optional[str]:
    text = _text_cell(row, index)
    return text if text.strip() else None


def _number_cell(row: Sequence[Any], index: int, *, sheet: str, field: str) -> float:
    value = _cell(row, index)
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = "" if value is None else str(value).strip()
    if not text:
        return 0.0
    try:
        return float(text.replace(",", ""))
    except ValueError:
        decode_errors.record(sheet, _text_cell(row, 0), field, f"not a number: {text!r}")
        return 0.0


def bool_to_cell(value: bool) -> str:
    return TRUE_TEXT if value else FALSE_TEXT


def cell_to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().upper() == TRUE_TEXT


def _json_text(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _parse_json(text: str, *, sheet: str, record_id: str, field: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        decode_errors.record(sheet, record_id, field, f"malformed JSON ({exc})")
        return None


def _decode_list(
    row: Sequence[Any],
    index: int,
    factory: Callable[[Mapping[str, Any]], T],
    *,
    sheet: str,
    field: str,
) -> List[T]:
    """Decode a JSON list cell, returning ``[]`` for blank or malformed content."""

    text = _text_cell(row, index).strip()
    if not text:
        return []
    record_id = _text_cell(row, 0)
    payload = _parse_json(text, sheet=sheet, record_id=record_id, field=field)
    if payload is None:
        return []
    if not isinstance(payload, list):
        decode_errors.record(sheet, record_id, field, f"expected a list, got {type(payload).__name__}")
        return []
    return [factory(entry) for entry in payload if isinstance(entry, Mapping)]


def _decode_optional_list(
    row: Sequence[Any],
    index: int,
    factory: Callable[[Mapping[str, Any]], T],
    *,
    sheet: str,
    field: str,
) -> Optional[List[T]]:
    if not _text_cell(row, index).strip():
        return None
    return _decode_list(row, index, factory, sheet=sheet, field=field)


def _optional_list_cell(items: Optional[Sequence[Any]]) -> str:
    if items is None:
        return ""
    return _json_text([item.to_dict() for item in items])


def split_chunks(text: str, size: int = AVATAR_CHUNK_SIZE) -> List[str]:
    """Split ``text`` into cells of at most ``size`` characters."""

    if size <= 0:
        raise ValueError("size must be positive")
    return [text[start : start + size] for start in range(0, len(text), size)]


def join_chunks(cells: Sequence[Any]) -> str:
    return "".join("" if cell is None else str(cell) for cell in cells)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------
def encode_client(client: Client) -> List[Any]:
    return [
        client.id,
        client.name,
        client.house_notes,
        client.general_notes,
        _json_text([contact.to_dict() for contact in client.contacts]),
        _json_text([location.to_dict() for location in client.locations]),
        _json_text([child.to_dict() for child in client.children]),
        _json_text([pet.to_dict() for pet in client.pets]),
        _optional_list_cell(client.checklist),
    ]


def decode_client(row: Sequence[Any]) -> Client:
    sheet = CLIENTS_SHEET
    return Client(
        id=_text_cell(row, 0),
        name=_text_cell(row, 1),
        house_notes=_text_cell(row, 2),
        general_notes=_text_cell(row, 3),
        contacts=_decode_list(row, 4, Contact.from_dict, sheet=sheet, field="contacts"),
        locations=_decode_list(row, 5, Location.from_dict, sheet=sheet, field="locations"),
        children=_decode_list(row, 6, Child.from_dict, sheet=sheet, field="children"),
        pets=_decode_list(row, 7, Pet.from_dict, sheet=sheet, field="pets"),
        checklist=_decode_optional_list(row, 8, ChecklistItem.from_dict, sheet=sheet, field="checklist"),
    )


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------
def _decode_job_log(row: Sequence[Any], index: int) -> Optional[JobLog]:
    text = _text_cell(row, index).strip()
    if not text:
        return None
    record_id = _text_cell(row, 0)
    payload = _parse_json(text, sheet=APPOINTMENTS_SHEET, record_id=record_id, field="jobLog")
    if payload is None:
        return None
    if not isinstance(payload, Mapping):
        decode_errors.record(APPOINTMENTS_SHEET, record_id, "jobLog", "expected an object")
        return None
    return JobLog.from_dict(payload)


def encode_appointment(appointment: Appointment) -> List[Any]:
    return [
        appointment.id,
        appointment.client_id,
        appointment.client_name,
        appointment.date,
        appointment.time,
        appointment.service_type,
        appointment.status.value,
        appointment.address,
        appointment.rate,
        appointment.estimated_hours,
        appointment.notes,
        appointment.recurrence.value if appointment.recurrence else "",
        appointment.series_id or "",
        _optional_list_cell(appointment.checklist),
        _json_text(appointment.job_log.to_dict()) if appointment.job_log else "",
    ]


def decode_appointment(row: Sequence[Any]) -> Appointment:
    sheet = APPOINTMENTS_SHEET
    return Appointment(
        id=_text_cell(row, 0),
        client_id=_text_cell(row, 1),
        client_name=_text_cell(row, 2),
        date=_text_cell(row, 3),
        time=_text_cell(row, 4),
        service_type=_text_cell(row, 5),
        status=parse_enum(Status, _cell(row, 6), Status.PENDING),
        address=_text_cell(row, 7),
        rate=_number_cell(row, 8, sheet=sheet, field="rate"),
        estimated_hours=_number_cell(row, 9, sheet=sheet, field="estimatedHours"),
        notes=_text_cell(row, 10),
        recurrence=parse_enum(Recurrence, _cell(row, 11)),
        series_id=_optional_text_cell(row, 12),
        checklist=_decode_optional_list(row, 13, ChecklistItem.from_dict, sheet=sheet, field="checklist"),
        job_log=_decode_job_log(row, 14),
    )


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------
def encode_invoice(invoice: Invoice) -> List[Any]:
    return [
        invoice.id,
        invoice.client_id,
        invoice.appointment_id or "",
        invoice.client_name,
        invoice.date,
        invoice.due_date,
        invoice.status.value,
        invoice.amount,
        invoice.notes,
        _json_text([item.to_dict() for item in invoice.items]),
        invoice.payment_method or "",
        invoice.payment_notes or "",
    ]


def decode_invoice(row: Sequence[Any]) -> Invoice:
    sheet = INVOICES_SHEET
    return Invoice(
        id=_text_cell(row, 0),
        client_id=_text_cell(row, 1),
        appointment_id=_optional_text_cell(row, 2),
        client_name=_text_cell(row, 3),
        date=_text_cell(row, 4),
        due_date=_text_cell(row, 5),
        status=parse_enum(Status, _cell(row, 6), Status.UNPAID),
        amount=_number_cell(row, 7, sheet=sheet, field="amount"),
        notes=_text_cell(row, 8),
        items=_decode_list(row, 9, InvoiceItem.from_dict, sheet=sheet, field="items"),
        payment_method=_optional_text_cell(row, 10),
        payment_notes=_optional_text_cell(row, 11),
    )


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
def encode_inventory_item(item: InventoryItem) -> List[Any]:
    return [
        item.id,
        item.item_name,
        item.quantity,
        item.unit,
        item.min_threshold,
        item.status.value,
        item.supplier,
        item.cost,
        item.notes,
    ]


def decode_inventory_item(row: Sequence[Any]) -> InventoryItem:
    sheet = INVENTORY_SHEET
    return InventoryItem(
        id=_text_cell(row, 0),
        item_name=_text_cell(row, 1),
        quantity=_number_cell(row, 2, sheet=sheet, field="quantity"),
        unit=_text_cell(row, 3),
        min_threshold=_number_cell(row, 4, sheet=sheet, field="minThreshold"),
        status=parse_enum(Status, _cell(row, 5), Status.IN_STOCK),
        supplier=_text_cell(row, 6),
        cost=_number_cell(row, 7, sheet=sheet, field="cost"),
        notes=_text_cell(row, 8),
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
def settings_layout_version(row: Sequence[Any]) -> int:
    """Return the layout version a Settings row was written with.

    Version 3 rows carry an explicit tag.  Untagged rows are either version 2
    (JobTypes list in column 4, avatar chunks after it) or version 1 (avatar
    in column 4, JobTypes in column 5).
    """

    column = _text_cell(row, 3).strip()
    if column.startswith("{"):
        try:
            payload = json.loads(column)
        except ValueError:
            return SETTINGS_SCHEMA_VERSION
        if isinstance(payload, Mapping):
            try:
                return int(payload.get("schemaVersion", SETTINGS_SCHEMA_VERSION))
            except (TypeError, ValueError):
                return SETTINGS_SCHEMA_VERSION
        return SETTINGS_SCHEMA_VERSION
    if column.startswith("["):
        return 2
    return 1


def encode_settings(profile: UserProfile) -> List[Any]:
    meta = {
        "schemaVersion": SETTINGS_SCHEMA_VERSION,
        "jobTypes": [job_type.to_dict() for job_type in profile.job_types],
        "checklistTemplates": [template.to_dict() for template in profile.checklist_templates],
    }
    return [
        profile.company_name,
        profile.company_address,
        bool_to_cell(profile.show_logo_on_invoice),
        _json_text(meta),
        *split_chunks(profile.avatar or ""),
    ]


def _job_types(payload: Any, *, field: str) -> List[JobType]:
    if not isinstance(payload, list):
        if payload is not None:
            decode_errors.record(SETTINGS_SHEET, "", field, "expected a list")
        return []
    return [JobType.from_dict(entry) for entry in payload if isinstance(entry, Mapping)]


def decode_settings(row: Sequence[Any]) -> UserProfile:
    version = settings_layout_version(row)
    job_types: List[JobType] = []
    templates: List[ChecklistTemplate] = []

    if version >= SETTINGS_SCHEMA_VERSION:
        payload = _parse_json(_text_cell(row, 3).strip(), sheet=SETTINGS_SHEET, record_id="", field="jobTypes")
        if isinstance(payload, Mapping):
            job_types = _job_types(payload.get("jobTypes", []), field="jobTypes")
            raw_templates = payload.get("checklistTemplates", [])
            if isinstance(raw_templates, list):
                templates = [
                    ChecklistTemplate.from_dict(entry) for entry in raw_templates if isinstance(entry, Mapping)
                ]
        avatar = join_chunks(row[SETTINGS_FIXED_COLUMNS:])
    elif version == 2:
        payload = _parse_json(_text_cell(row, 3).strip(), sheet=SETTINGS_SHEET, record_id="", field="jobTypes")
        job_types = _job_types(payload, field="jobTypes")
        avatar = join_chunks(row[SETTINGS_FIXED_COLUMNS:])
    else:
        avatar = _text_cell(row, 3)
        legacy = _text_cell(row, 4).strip()
        if legacy:
            payload = _parse_json(legacy, sheet=SETTINGS_SHEET, record_id="", field="jobTypes")
            job_types = _job_types(payload, field="jobTypes")

    return UserProfile(
        company_name=_text_cell(row, 0),
        company_address=_text_cell(row, 1),
        show_logo_on_invoice=cell_to_bool(_cell(row, 2)),
        avatar=avatar or None,
        job_types=job_types,
        checklist_templates=templates,
    )


CLIENT_CODEC: RowCodec[Client] = RowCodec(CLIENTS_SHEET, CLIENT_HEADERS, encode_client, decode_client)
APPOINTMENT_CODEC: RowCodec[Appointment] = RowCodec(
    APPOINTMENTS_SHEET, APPOINTMENT_HEADERS, encode_appointment, decode_appointment
)
INVOICE_CODEC: RowCodec[Invoice] = RowCodec(INVOICES_SHEET, INVOICE_HEADERS, encode_invoice, decode_invoice)
INVENTORY_CODEC: RowCodec[InventoryItem] = RowCodec(
    INVENTORY_SHEET, INVENTORY_HEADERS, encode_inventory_item, decode_inventory_item
)
SETTINGS_CODEC: RowCodec[UserProfile] = RowCodec(
    SETTINGS_SHEET, SETTINGS_HEADERS, encode_settings, decode_settings, keyed=False
)

HEADERS_BY_SHEET: Dict[str, Tuple[str, ...]] = {
    codec.title: codec.headers
    for codec in (CLIENT_CODEC, APPOINTMENT_CODEC, INVOICE_CODEC, INVENTORY_CODEC, SETTINGS_CODEC)
}


__all__ = [
    "APPOINTMENT_CODEC",
    "AVATAR_CHUNK_SIZE",
    "CLIENT_CODEC",
    "HEADERS_BY_SHEET",
    "INVENTORY_CODEC",
    "INVOICE_CODEC",
    "RowCodec",
    "SETTINGS_CODEC",
    "SETTINGS_SCHEMA_VERSION",
    "SHEET_TITLES",
    "bool_to_cell",
    "cell_to_bool",
    "decode_appointment",
    "decode_client",
    "decode_inventory_item",
    "decode_invoice",
    "decode_settings",
    "encode_appointment",
    "encode_client",
    "encode_inventory_item",
    "encode_invoice",
    "encode_settings",
    "join_chunks",
    "settings_layout_version",
    "split_chunks",
]
