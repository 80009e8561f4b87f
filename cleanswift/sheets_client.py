"""Google Sheets client used as CleanSwift's storage transport.

This module is the only place that performs network I/O against the
spreadsheet.  It exposes a deliberately small surface:

* ``read``/``read_header`` fetch values from an A1 range;
* ``write_all`` overwrites a range starting at its anchor cell;
* ``append`` adds rows after the existing content without touching it;
* ``clear`` wipes a range so that a following ``write_all`` cannot leave
  stale rows behind.

Every request is sent with no-cache headers so that a read issued right
after a write never sees a cached response.  The bearer credential is added
by the authorised HTTP transport that ``googleapiclient`` builds from the
``google-auth`` credentials.  All failures surface as subclasses of
:class:`SheetStoreError` carrying the message returned by Google.

The client also owns first-use provisioning: locating the CleanSwift
spreadsheet by name through the Drive API, creating it with the five data
sheets when it does not exist, and adding sheets missing from spreadsheets
created by older releases.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, MutableSequence, Optional, Sequence

from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from cleanswift.row_codec import HEADERS_BY_SHEET

logger = logging.getLogger(__name__)

SPREADSHEET_NAME = "CleanSwift Manager Data"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"

# Wide enough to hold every avatar chunk column of the Settings sheet.
LAST_COLUMN = "ZZ"
VALUE_INPUT_OPTION = "RAW"
VALUE_RENDER_OPTION = "UNFORMATTED_VALUE"
NO_CACHE_HEADERS: Mapping[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}
AUTH_STATUSES = {401, 403}


class SheetStoreError(RuntimeError):
    """Base error raised for spreadsheet storage failures."""


class SheetStoreApiError(SheetStoreError):
    """Raised when the Google API returns an error response."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class SheetStoreAuthError(SheetStoreApiError):
    """Raised when the credential is rejected, expired or lacks permission."""


class ProvisioningError(SheetStoreError):
    """Raised when the backing spreadsheet cannot be located or created."""


# ---------------------------------------------------------------------------
# A1 helpers
# ---------------------------------------------------------------------------
def quote_title(title: str) -> str:
    """Return a worksheet title quoted according to A1 notation rules."""

    safe = (title or "").strip()
    if not safe:
        raise SheetStoreError("Worksheet title must not be empty.")
    safe = safe.replace("'", "''")
    return f"'{safe}'"


def column_letter(index: int) -> str:
    if index < 1:
        raise ValueError("Column index must be >= 1")
    letters: MutableSequence[str] = []
    while index:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(65 + remainder))
    return "".join(reversed(letters))


def data_range(title: str) -> str:
    """Return the range holding every data row (everything below the header)."""

    return f"{quote_title(title)}!A2:{LAST_COLUMN}"


def header_range(title: str) -> str:
    return f"{quote_title(title)}!A1:{LAST_COLUMN}1"


def sheet_range(title: str) -> str:
    """Return a range spanning every row and column used by ``title``."""

    return f"{quote_title(title)}!A:{LAST_COLUMN}"


def anchor_range(title: str) -> str:
    return f"{quote_title(title)}!A1"


def _http_status(exc: HttpError) -> int:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status)
    except (TypeError, ValueError):
        return 0


def _error_message(exc: HttpError) -> str:
    reason = getattr(exc, "reason", None)
    if isinstance(reason, str) and reason.strip():
        return reason.strip()
    return "Google API Error"


class SheetStoreClient:
    """Thin wrapper over the Sheets (and Drive) REST services."""

    def __init__(
        self,
        sheets_service,
        spreadsheet_id: Optional[str] = None,
        *,
        drive_service=None,
    ) -> None:
        self._sheets = sheets_service
        self._drive = drive_service
        self._spreadsheet_id = spreadsheet_id or ""

    @property
    def spreadsheet_id(self) -> str:
        if not self._spreadsheet_id:
            raise SheetStoreError("No spreadsheet selected. Call provision() first.")
        return self._spreadsheet_id

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _execute(self, request, description: str) -> Dict[str, Any]:
        headers = getattr(request, "headers", None)
        if isinstance(headers, dict):
            headers.update(NO_CACHE_HEADERS)
        try:
            result = request.execute()
        except HttpError as exc:
            status = _http_status(exc)
            message = _error_message(exc)
            logger.error("Sheets API %s failed (%s): %s", description, status, message)
            error_cls = SheetStoreAuthError if status in AUTH_STATUSES else SheetStoreApiError
            raise error_cls(message, status=status) from exc
        except RefreshError as exc:
            logger.error("Credential refresh failed during %s: %s", description, exc)
            raise SheetStoreAuthError(str(exc) or "Credential refresh failed") from exc
        except TransportError as exc:
            logger.error("Transport failure during %s: %s", description, exc)
            raise SheetStoreApiError(str(exc) or "Transport failure") from exc
        return result if isinstance(result, dict) else {}

    # ------------------------------------------------------------------
    # Values API
    # ------------------------------------------------------------------
    def read(self, range_spec: str) -> List[List[Any]]:
        """Return the rows of ``range_spec``. Empty ranges return ``[]``."""

        request = (
            self._sheets.spreadsheets()
            .values()
            .get(
                spreadsheetId=self.spreadsheet_id,
                range=range_spec,
                majorDimension="ROWS",
                valueRenderOption=VALUE_RENDER_OPTION,
            )
        )
        result = self._execute(request, "values.get")
        return [list(row) for row in result.get("values", [])]

    def read_header(self, title: str) -> List[Any]:
        rows = self.read(header_range(title))
        return rows[0] if rows else []

    def write_all(self, range_spec: str, rows: Sequence[Sequence[Any]]) -> None:
        """Overwrite ``range_spec`` with ``rows`` starting at its first cell."""

        body = {"values": [list(row) for row in rows], "majorDimension": "ROWS"}
        request = (
            self._sheets.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=range_spec,
                valueInputOption=VALUE_INPUT_OPTION,
                body=body,
            )
        )
        self._execute(request, "values.update")

    def append(self, range_spec: str, rows: Sequence[Sequence[Any]]) -> None:
        """Add ``rows`` after the last non-empty row of the table at ``range_spec``."""

        if not rows:
            return
        request = (
            self._sheets.spreadsheets()
            .values()
            .append(
                spreadsheetId=self.spreadsheet_id,
                range=range_spec,
                valueInputOption=VALUE_INPUT_OPTION,
                insertDataOption="INSERT_ROWS",
                body={"values": [list(row) for row in rows], "majorDimension": "ROWS"},
            )
        )
        self._execute(request, "values.append")

    def clear(self, range_spec: str) -> None:
        request = (
            self._sheets.spreadsheets()
            .values()
            .clear(spreadsheetId=self.spreadsheet_id, range=range_spec, body={})
        )
        self._execute(request, "values.clear")

    def write_headers(self, headers: Mapping[str, Sequence[str]]) -> None:
        """Write the header row of every sheet in ``headers`` with one request."""

        if not headers:
            return
        data = [
            {"range": anchor_range(title), "values": [list(row)], "majorDimension": "ROWS"}
            for title, row in headers.items()
        ]
        request = (
            self._sheets.spreadsheets()
            .values()
            .batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"valueInputOption": VALUE_INPUT_OPTION, "data": data},
            )
        )
        self._execute(request, "values.batchUpdate")

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------
    def find_spreadsheet(self, name: str) -> Optional[str]:
        """Return the id of the spreadsheet called exactly ``name``, if any."""

        if self._drive is None:
            raise ProvisioningError("A Drive service is required to locate the spreadsheet by name.")
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        query = " and ".join(
            [
                f"name = '{escaped}'",
                f"mimeType = '{SPREADSHEET_MIME_TYPE}'",
                "trashed = false",
            ]
        )
        request = self._drive.files().list(q=query, spaces="drive", fields="files(id, name)")
        response = self._execute(request, "drive.files.list")
        for entry in response.get("files", []):
            if entry.get("name", name) == name and entry.get("id"):
                return str(entry["id"])
        return None

    def sheet_ids(self) -> Dict[str, int]:
        """Return a mapping of worksheet title to numeric sheet id."""

        request = self._sheets.spreadsheets().get(
            spreadsheetId=self.spreadsheet_id,
            includeGridData=False,
            fields="sheets.properties",
        )
        metadata = self._execute(request, "spreadsheets.get")
        result: Dict[str, int] = {}
        for sheet in metadata.get("sheets", []):
            properties = sheet.get("properties", {}) if isinstance(sheet, Mapping) else {}
            title = properties.get("title")
            if isinstance(title, str):
                result[title] = int(properties.get("sheetId", 0))
        return result

    def provision(
        self,
        name: str = SPREADSHEET_NAME,
        *,
        headers: Mapping[str, Sequence[str]] = HEADERS_BY_SHEET,
    ) -> str:
        """Select, migrate or create the backing spreadsheet and return its id."""

        if not self._spreadsheet_id:
            existing = self.find_spreadsheet(name)
            if existing is None:
                return self._create_spreadsheet(name, headers)
            logger.info("Using existing spreadsheet %r (%s)", name, existing)
            self._spreadsheet_id = existing
        self._add_missing_sheets(headers)
        return self._spreadsheet_id

    def _create_spreadsheet(self, name: str, headers: Mapping[str, Sequence[str]]) -> str:
        body = {
            "properties": {"title": name},
            "sheets": [
                {"properties": {"title": title, "gridProperties": {"frozenRowCount": 1}}}
                for title in headers
            ],
        }
        request = self._sheets.spreadsheets().create(body=body, fields="spreadsheetId,sheets.properties")
        created = self._execute(request, "spreadsheets.create")
        spreadsheet_id = created.get("spreadsheetId")
        if not spreadsheet_id:
            raise ProvisioningError(f"Google did not return an id for spreadsheet {name!r}.")
        self._spreadsheet_id = str(spreadsheet_id)
        logger.info("Created spreadsheet %r (%s)", name, spreadsheet_id)

        sheet_ids = [
            sheet["properties"]["sheetId"]
            for sheet in created.get("sheets", [])
            if isinstance(sheet, Mapping) and "sheetId" in sheet.get("properties", {})
        ]
        self._bold_header_rows(sheet_ids)
        self.write_headers(headers)
        return self._spreadsheet_id

    def _add_missing_sheets(self, headers: Mapping[str, Sequence[str]]) -> None:
        existing = self.sheet_ids()
        missing = [title for title in headers if title not in existing]
        if not missing:
            return

        logger.info("Adding missing sheets: %s", ", ".join(missing))
        requests = [
            {"addSheet": {"properties": {"title": title, "gridProperties": {"frozenRowCount": 1}}}}
            for title in missing
        ]
        request = self._sheets.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id, body={"requests": requests}
        )
        response = self._execute(request, "spreadsheets.batchUpdate")
        new_ids = [
            reply["addSheet"]["properties"]["sheetId"]
            for reply in response.get("replies", [])
            if isinstance(reply, Mapping) and "addSheet" in reply
        ]
        self._bold_header_rows(new_ids)
        self.write_headers({title: headers[title] for title in missing})

    def _bold_header_rows(self, sheet_ids: Sequence[int]) -> None:
        if not sheet_ids:
            return
        requests = [
            {
                "repeatCell": {
                    "range": {"sheetId": sheet_id, "startRowIndex": 0, "endRowIndex": 1},
                    "cell": {"userEnteredFormat": {"textFormat": {"bold": True}}},
                    "fields": "userEnteredFormat.textFormat.bold",
                }
            }
            for sheet_id in sheet_ids
        ]
        request = self._sheets.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id, body={"requests": requests}
        )
        self._execute(request, "spreadsheets.batchUpdate")


def build_client(credentials, spreadsheet_id: Optional[str] = None) -> SheetStoreClient:
    """Construct a client with authorised Sheets and Drive services."""

    sheets_service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    drive_service = build("drive", "v3", credentials=credentials, cache_discovery=False)
    return SheetStoreClient(sheets_service, spreadsheet_id, drive_service=drive_service)


__all__ = [
    "LAST_COLUMN",
    "NO_CACHE_HEADERS",
    "ProvisioningError",
    "SPREADSHEET_NAME",
    "SheetStoreApiError",
    "SheetStoreAuthError",
    "SheetStoreClient",
    "SheetStoreError",
    "anchor_range",
    "build_client",
    "column_letter",
    "data_range",
    "header_range",
    "quote_title",
    "sheet_range",
]
