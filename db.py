"""Backend selector giving every caller one stable data-access handle.

A :class:`DataStore` starts on the in-memory backend.  Switching to the
spreadsheet backend resolves the credential, provisions the spreadsheet and
only then swaps the active backend, so a failed switch leaves the previous
backend in place and the typed error reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from cleanswift import decode_errors
from cleanswift.backends import Backend, memory_backend, sheets_backend
from cleanswift.google_credentials import resolve_credentials
from cleanswift.memory_store import DEFAULT_LATENCY, QUICK_LATENCY
from cleanswift.models import UserProfile
from cleanswift.profile_cache import ProfileCache
from cleanswift.repositories import (
    AppointmentRepository,
    ClientRepository,
    InventoryRepository,
    InvoiceRepository,
)
from cleanswift.sheets_client import SPREADSHEET_NAME, SheetStoreClient, build_client
from settings import BackendSettings

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Any, Optional[str]], SheetStoreClient]


class DataStore:
    """Runtime-switchable facade over the memory and spreadsheet backends."""

    def __init__(
        self,
        *,
        seed: bool = True,
        latency: float = DEFAULT_LATENCY,
        quick_latency: float = QUICK_LATENCY,
        profile_cache: Optional[ProfileCache] = None,
        client_factory: ClientFactory = build_client,
    ) -> None:
        self._local = memory_backend(
            seed=seed,
            latency=latency,
            quick_latency=quick_latency,
            profile_cache=profile_cache,
        )
        self._backend: Backend = self._local
        self._client_factory = client_factory
        self._spreadsheet_id: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: BackendSettings, **kwargs) -> "DataStore":
        kwargs.setdefault("latency", settings.latency_seconds)
        kwargs.setdefault("quick_latency", settings.quick_latency_seconds)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Backend selection
    # ------------------------------------------------------------------
    @property
    def backend_name(self) -> str:
        return self._backend.name

    @property
    def spreadsheet_id(self) -> Optional[str]:
        return self._spreadsheet_id

    def use_local_backend(self) -> None:
        if self._backend is not self._local:
            logger.info("Switching to the in-memory backend")
        self._backend = self._local
        self._spreadsheet_id = None

    def use_remote_backend(
        self,
        credential: Any,
        *,
        spreadsheet_name: str = SPREADSHEET_NAME,
        spreadsheet_id: Optional[str] = None,
    ) -> str:
        """Provision the spreadsheet and make it the active backend.

        Returns the id of the spreadsheet in use.
        """

        credentials = resolve_credentials(credential)
        client = self._client_factory(credentials, spreadsheet_id or None)
        resolved_id = client.provision(spreadsheet_name)
        self._backend = sheets_backend(client)
        self._spreadsheet_id = resolved_id
        logger.info("Switched to spreadsheet backend (%s)", resolved_id)
        return resolved_id

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------
    @property
    def clients(self) -> ClientRepository:
        return self._backend.clients

    @property
    def appointments(self) -> AppointmentRepository:
        return self._backend.appointments

    @property
    def invoices(self) -> InvoiceRepository:
        return self._backend.invoices

    @property
    def inventory(self) -> InventoryRepository:
        return self._backend.inventory

    def get_settings(self) -> Optional[UserProfile]:
        return self._backend.settings.get()

    def save_settings(self, profile: UserProfile) -> UserProfile:
        return self._backend.settings.save(profile)

    def decode_error_count(self) -> int:
        return decode_errors.count()


__all__ = ["ClientFactory", "DataStore"]
