from __future__ import annotations

import pytest

from cleanswift.models import Client, UserProfile
from cleanswift.profile_cache import ProfileCache
from cleanswift.sheets_client import SheetStoreAuthError, SheetStoreClient
from db import DataStore

from conftest import FakeDriveService, FakeSheetsService, headers_only


def _factory(service: FakeSheetsService, drive: FakeDriveService = None):
    calls = []

    def build(credentials, spreadsheet_id):
        calls.append((credentials, spreadsheet_id))
        return SheetStoreClient(service, spreadsheet_id, drive_service=drive)

    return build, calls


def test_store_starts_on_seeded_memory_backend() -> None:
    store = DataStore(latency=0, quick_latency=0)

    assert store.backend_name == "memory"
    assert store.spreadsheet_id is None
    assert len(store.clients.list()) == 2
    assert len(store.inventory.list()) == 2
    assert store.get_settings() is None


def test_switching_to_remote_provisions_first() -> None:
    service = FakeSheetsService()
    drive = FakeDriveService(service)
    factory, calls = _factory(service, drive)
    store = DataStore(seed=False, latency=0, client_factory=factory)

    spreadsheet_id = store.use_remote_backend("token-123", spreadsheet_name="My Data")

    assert spreadsheet_id == "created-spreadsheet"
    assert store.backend_name == "sheets"
    assert store.spreadsheet_id == "created-spreadsheet"
    assert calls[0][0].token == "token-123"
    assert calls[0][1] is None
    assert "name = 'My Data'" in drive.queries[0]

    store.clients.create(Client(name="Alice"))
    assert service.rows("Clients")[1][1] == "Alice"


def test_failed_switch_keeps_previous_backend() -> None:
    service = FakeSheetsService(headers_only())
    service.fail_next(403, "The caller does not have permission")
    factory, _calls = _factory(service)
    store = DataStore(latency=0, quick_latency=0, client_factory=factory)

    with pytest.raises(SheetStoreAuthError):
        store.use_remote_backend("token-123", spreadsheet_id="sheet-1")

    assert store.backend_name == "memory"
    assert len(store.clients.list()) == 2


def test_switching_back_to_local_keeps_local_records() -> None:
    service = FakeSheetsService(headers_only())
    factory, _calls = _factory(service)
    store = DataStore(seed=False, latency=0, client_factory=factory)
    store.clients.create(Client(name="Offline"))

    store.use_remote_backend("token-123", spreadsheet_id="sheet-1")
    assert store.clients.list() == []

    store.use_local_backend()
    assert store.backend_name == "memory"
    assert [client.name for client in store.clients.list()] == ["Offline"]


def test_settings_follow_active_backend(tmp_path) -> None:
    cache = ProfileCache(tmp_path / "profile.json")
    service = FakeSheetsService(headers_only())
    factory, _calls = _factory(service)
    store = DataStore(seed=False, latency=0, profile_cache=cache, client_factory=factory)

    store.save_settings(UserProfile(company_name="Local Co"))
    assert cache.get().company_name == "Local Co"

    store.use_remote_backend("token-123", spreadsheet_id="sheet-1")
    assert store.get_settings() is None
    store.save_settings(UserProfile(company_name="Remote Co"))

    assert store.get_settings().company_name == "Remote Co"
    assert cache.get().company_name == "Local Co"


def test_decode_error_count_reflects_bad_cells() -> None:
    service = FakeSheetsService(headers_only())
    service.sheets["Clients"].append(["c-1", "Alice", "", "", "{broken"])
    factory, _calls = _factory(service)
    store = DataStore(seed=False, latency=0, client_factory=factory)
    store.use_remote_backend("token-123", spreadsheet_id="sheet-1")

    clients = store.clients.list()

    assert clients[0].contacts == []
    assert store.decode_error_count() == 1
