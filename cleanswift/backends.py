"""Storage backends bundling one repository per entity."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from cleanswift import demo_data
from cleanswift.memory_store import DEFAULT_LATENCY, QUICK_LATENCY, CachedProfileTable, MemoryTable
from cleanswift.profile_cache import ProfileCache
from cleanswift.repositories import (
    AppointmentRepository,
    ClientRepository,
    InventoryRepository,
    InvoiceRepository,
    SettingsRepository,
)
from cleanswift.row_codec import (
    APPOINTMENT_CODEC,
    CLIENT_CODEC,
    INVENTORY_CODEC,
    INVOICE_CODEC,
    SETTINGS_CODEC,
)
from cleanswift.sheet_table import SheetTable
from cleanswift.sheets_client import SheetStoreClient

logger = logging.getLogger(__name__)

MEMORY_BACKEND = "memory"
SHEETS_BACKEND = "sheets"


@dataclass
class Backend:
    name: str
    clients: ClientRepository
    appointments: AppointmentRepository
    invoices: InvoiceRepository
    inventory: InventoryRepository
    settings: SettingsRepository


def memory_backend(
    *,
    seed: bool = True,
    latency: float = DEFAULT_LATENCY,
    quick_latency: float = QUICK_LATENCY,
    profile_cache: Optional[ProfileCache] = None,
) -> Backend:
    """Return a process-local backend, optionally seeded with sample records."""

    def table(records):
        return MemoryTable(records if seed else None, latency=latency, quick_latency=quick_latency)

    return Backend(
        name=MEMORY_BACKEND,
        clients=ClientRepository(table(demo_data.demo_clients())),
        appointments=AppointmentRepository(table(demo_data.demo_appointments())),
        invoices=InvoiceRepository(table(demo_data.demo_invoices())),
        inventory=InventoryRepository(table(demo_data.demo_inventory())),
        settings=SettingsRepository(CachedProfileTable(cache=profile_cache, latency=latency)),
    )


def sheets_backend(client: SheetStoreClient) -> Backend:
    """Return a backend storing every entity in the client's spreadsheet."""

    logger.info("Using spreadsheet %s", client.spreadsheet_id)
    return Backend(
        name=SHEETS_BACKEND,
        clients=ClientRepository(SheetTable(client, CLIENT_CODEC)),
        appointments=AppointmentRepository(SheetTable(client, APPOINTMENT_CODEC)),
        invoices=InvoiceRepository(SheetTable(client, INVOICE_CODEC)),
        inventory=InventoryRepository(SheetTable(client, INVENTORY_CODEC)),
        settings=SettingsRepository(SheetTable(client, SETTINGS_CODEC)),
    )


__all__ = ["Backend", "MEMORY_BACKEND", "SHEETS_BACKEND", "memory_backend", "sheets_backend"]
