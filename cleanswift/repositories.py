"""Entity repositories sharing one CRUD contract over interchangeable tables.

A repository is handed a *table*: either a :class:`~cleanswift.sheet_table.SheetTable`
(remote worksheet) or a :class:`~cleanswift.memory_store.MemoryTable`.  Both
expose ``all``, ``append``, ``rewrite`` and ``replace``; the repository holds
the entity policy (id assignment, derived fields, missing-id handling) so both
backends behave identically from the caller's point of view.

Updates of an id that is not stored raise :class:`RecordNotFoundError` before
any write is issued.  Deletes are idempotent and skip the rewrite entirely
when nothing matches.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Generic, Iterable, List, Mapping, Optional, Protocol, Sequence, TypeVar

from cleanswift import rules
from cleanswift.models import (
    Appointment,
    Client,
    InventoryItem,
    Invoice,
    Status,
    UserProfile,
    generate_id,
)
from cleanswift.sheet_table import Modifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryError(RuntimeError):
    """Base error for repository operations."""


class RecordNotFoundError(RepositoryError):
    """Raised when an update targets an id that is not stored."""

    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity} {record_id!r} does not exist")
        self.entity = entity
        self.record_id = record_id


class RecordTable(Protocol[T]):
    def all(self) -> List[T]: ...

    def append(self, records: Sequence[T]) -> None: ...

    def rewrite(self, modifier: Modifier[T], *, quick: bool = False) -> List[T]: ...


class Repository(Generic[T]):
    """CRUD operations for records carrying an ``id`` attribute."""

    entity = "Record"

    def __init__(self, table: RecordTable[T]) -> None:
        self._table = table

    def _prepare(self, record: T) -> T:
        """Return a copy of ``record`` with an id and its derived fields filled in."""

        if getattr(record, "id", ""):
            return dataclasses.replace(record)  # type: ignore[type-var]
        return dataclasses.replace(record, id=generate_id())  # type: ignore[type-var]

    def list(self) -> List[T]:
        return self._table.all()

    def get(self, record_id: str) -> Optional[T]:
        for record in self._table.all():
            if record.id == record_id:  # type: ignore[attr-defined]
                return record
        return None

    def create(self, record: T) -> T:
        record = self._prepare(record)
        self._table.append([record])
        return record

    def create_many(self, records: Iterable[T]) -> List[T]:
        """Persist ``records`` with a single append."""

        prepared = [self._prepare(record) for record in records]
        self._table.append(prepared)
        return prepared

    def _replace_one(self, record_id: str, change, *, quick: bool = False) -> T:
        result: List[T] = []

        def modify(records: List[T]) -> List[T]:
            for index, existing in enumerate(records):
                if existing.id == record_id:  # type: ignore[attr-defined]
                    updated = self._prepare(change(existing))
                    records[index] = updated
                    result.append(updated)
                    return records
            raise RecordNotFoundError(self.entity, record_id)

        self._table.rewrite(modify, quick=quick)
        return result[0]

    def update(self, record: T) -> T:
        record_id = getattr(record, "id", "")
        return self._replace_one(record_id, lambda _existing: record)

    def patch(self, record_id: str, change: Mapping[str, Any]) -> T:
        """Replace the named fields of one record, leaving the others untouched."""

        return self._replace_one(record_id, lambda existing: dataclasses.replace(existing, **dict(change)))

    def delete(self, record_id: str) -> bool:
        return self.delete_many([record_id]) > 0

    def delete_many(self, record_ids: Iterable[str]) -> int:
        """Delete every record in ``record_ids`` with at most one rewrite."""

        targets = set(record_ids)
        removed: List[int] = []

        def modify(records: List[T]) -> Optional[List[T]]:
            kept = [record for record in records if record.id not in targets]  # type: ignore[attr-defined]
            if len(kept) == len(records):
                return None
            removed.append(len(records) - len(kept))
            return kept

        if targets:
            self._table.rewrite(modify)
        count = removed[0] if removed else 0
        if count:
            logger.info("Deleted %d %s record(s)", count, self.entity.lower())
        return count


class ClientRepository(Repository[Client]):
    entity = "Client"


class AppointmentRepository(Repository[Appointment]):
    entity = "Appointment"

    def update_status(self, record_id: str, status: Status) -> Appointment:
        return self.patch(record_id, {"status": status})

    def list_series(self, series_id: str) -> List[Appointment]:
        """Return the members of ``series_id`` ordered by date and time."""

        members = [record for record in self.list() if record.series_id == series_id]
        return sorted(members, key=lambda record: (record.date, record.time))


class InvoiceRepository(Repository[Invoice]):
    entity = "Invoice"

    def _prepare(self, record: Invoice) -> Invoice:
        record = super()._prepare(record)
        # An empty item list may come from an unreadable Items cell; keep the stored total.
        if record.items:
            record.amount = rules.invoice_total(record.items)
        return record

    def find_by_appointment(self, appointment_id: str) -> Optional[Invoice]:
        for invoice in self.list():
            if invoice.appointment_id == appointment_id:
                return invoice
        return None


class InventoryRepository(Repository[InventoryItem]):
    entity = "Inventory item"

    def _prepare(self, record: InventoryItem) -> InventoryItem:
        record = super()._prepare(record)
        return rules.apply_stock_status(record)

    def update_quantity(self, record_id: str, quantity: float) -> InventoryItem:
        return self._replace_one(
            record_id, lambda existing: dataclasses.replace(existing, quantity=float(quantity)), quick=True
        )


class SettingsRepository:
    """Singleton company profile stored as the only data row of its table."""

    def __init__(self, table) -> None:
        self._table = table

    def get(self) -> Optional[UserProfile]:
        records = self._table.all()
        return records[0] if records else None

    def save(self, profile: UserProfile) -> UserProfile:
        self._table.replace([profile])
        return profile


__all__ = [
    "AppointmentRepository",
    "ClientRepository",
    "InventoryRepository",
    "InvoiceRepository",
    "RecordNotFoundError",
    "RecordTable",
    "Repository",
    "RepositoryError",
    "SettingsRepository",
]
