"""Command line entry point for the CleanSwift data layer."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import Callable, Dict, List, Optional

from cleanswift import reports
from cleanswift.google_credentials import CredentialsError
from cleanswift.logging_config import configure_logging
from cleanswift.profile_cache import ProfileCache
from cleanswift.repositories import RepositoryError
from cleanswift.sheets_client import SheetStoreError
from cleanswift.version import __version__
from db import DataStore
from settings import BackendSettings, SettingsError, load_backend_settings

logger = logging.getLogger(__name__)

HANDLED_ERRORS = (CredentialsError, RepositoryError, SettingsError, SheetStoreError)


def open_store(settings: BackendSettings, remote: bool = False) -> DataStore:
    """Return a store configured from ``settings``, switched to the spreadsheet if asked."""

    store = DataStore.from_settings(settings, profile_cache=ProfileCache())
    if remote or settings.use_remote:
        credential = settings.credential()
        if credential is None:
            raise CredentialsError(
                "No credentials configured. Set CLEANSWIFT_ACCESS_TOKEN or CLEANSWIFT_CREDENTIALS_PATH."
            )
        store.use_remote_backend(
            credential,
            spreadsheet_name=settings.spreadsheet_name,
            spreadsheet_id=settings.spreadsheet_id or None,
        )
    return store


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
def _client_lines(store: DataStore) -> List[str]:
    lines = []
    for client in store.clients.list():
        contact = client.primary_contact()
        lines.append(f"{client.id}\t{client.name}\t{contact.phone if contact else ''}")
    return lines


def _appointment_lines(store: DataStore) -> List[str]:
    appointments = sorted(store.appointments.list(), key=lambda appt: (appt.date, appt.time))
    return [
        f"{appt.id}\t{appt.date} {appt.time}\t{appt.client_name}\t{appt.service_type}\t{appt.status.value}"
        for appt in appointments
    ]


def _invoice_lines(store: DataStore) -> List[str]:
    return [
        f"{invoice.id}\t{invoice.client_name}\t{invoice.due_date}\t{invoice.status.value}\t{invoice.amount:.2f}"
        for invoice in store.invoices.list()
    ]


def _inventory_lines(store: DataStore) -> List[str]:
    return [
        f"{item.id}\t{item.item_name}\t{item.quantity:g} {item.unit}\t{item.status.value}"
        for item in store.inventory.list()
    ]


LISTERS: Dict[str, Callable[[DataStore], List[str]]] = {
    "clients": _client_lines,
    "appointments": _appointment_lines,
    "invoices": _invoice_lines,
    "inventory": _inventory_lines,
}


def command_list(args: argparse.Namespace, store: DataStore) -> int:
    lines = LISTERS[args.entity](store)
    if not lines:
        print(f"No {args.entity} found.")
    for line in lines:
        print(line)
    return 0


def command_summary(args: argparse.Namespace, store: DataStore) -> int:
    summary = reports.summarise(store.appointments.list(), store.inventory.list(), date.today())
    print(f"Backend          : {store.backend_name}")
    print(f"Today            : {summary.today.isoformat()}")
    print(f"Jobs today       : {len(summary.todays_appointments)}")
    for appt in summary.todays_appointments:
        print(f"  {appt.time}  {appt.client_name} - {appt.service_type} ({appt.estimated_hours:g} hrs)")
    print(f"Today potential  : {summary.today_potential:.2f}")
    print(f"Week potential   : {summary.week_potential:.2f}")
    print(f"Week earnings    : {summary.week_earnings:.2f}")
    print(f"Low stock items  : {len(summary.low_stock)}")
    for item in summary.low_stock:
        print(f"  {item.item_name} ({item.quantity:g} {item.unit})")
    if store.decode_error_count():
        print(f"Unreadable cells : {store.decode_error_count()}")
    return 0


def command_provision(args: argparse.Namespace, store: DataStore) -> int:
    print(f"Spreadsheet ready: {store.spreadsheet_id}")
    return 0


def command_set_stock(args: argparse.Namespace, store: DataStore) -> int:
    item = store.inventory.update_quantity(args.item_id, args.quantity)
    print(f"{item.item_name}: {item.quantity:g} {item.unit} ({item.status.value})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CleanSwift data management tool")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--remote", action="store_true", help="Use the Google Sheets backend")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List stored records")
    list_parser.add_argument("entity", choices=sorted(LISTERS))
    list_parser.set_defaults(func=command_list)

    summary_parser = subparsers.add_parser("summary", help="Show today's jobs, earnings and low stock")
    summary_parser.set_defaults(func=command_summary)

    provision_parser = subparsers.add_parser(
        "provision",
        help="Locate or create the backing spreadsheet",
    )
    provision_parser.set_defaults(func=command_provision)

    stock_parser = subparsers.add_parser("set-stock", help="Set the quantity of an inventory item")
    stock_parser.add_argument("item_id")
    stock_parser.add_argument("quantity", type=float)
    stock_parser.set_defaults(func=command_set_stock)

    return parser


def main(argv: Optional[List[str]] = None, *, store: Optional[DataStore] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if store is None:
            settings = load_backend_settings()
            level = logging.DEBUG if args.verbose else settings.log_level
            configure_logging(level, console=args.verbose)
            store = open_store(settings, remote=args.remote or args.command == "provision")
        return args.func(args, store)
    except HANDLED_ERRORS as exc:
        logger.error("Command %s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
