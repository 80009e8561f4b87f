from __future__ import annotations

import json
import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

os.environ.setdefault("CLEANSWIFT_DATA_DIR", tempfile.mkdtemp(prefix="cleanswift-tests-"))
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from googleapiclient.errors import HttpError  # noqa: E402

from cleanswift import decode_errors  # noqa: E402
from cleanswift.row_codec import HEADERS_BY_SHEET  # noqa: E402
from cleanswift.sheets_client import SheetStoreClient  # noqa: E402

_RANGE_PATTERN = re.compile(r"^([A-Z]+)(\d*)(?::([A-Z]+)(\d*))?$")


class _FakeResponse(dict):
    """Mimics the ``httplib2.Response`` attached to an ``HttpError``."""

    def __init__(self, status: int, reason: str) -> None:
        super().__init__({"status": str(status), "content-type": "application/json"})
        self.status = status
        self.reason = reason


def http_error(status: int, message: str, reason: str = "error") -> HttpError:
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(_FakeResponse(status, reason), content)


def _column_index(letters: str) -> int:
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - 64)
    return index - 1


def _is_empty(cell: Any) -> bool:
    return cell is None or cell == ""


def _trim(rows: List[List[Any]]) -> List[List[Any]]:
    trimmed = []
    for row in rows:
        row = list(row)
        while row and _is_empty(row[-1]):
            row.pop()
        trimmed.append(row)
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


class FakeRequest:
    def __init__(self, service: "FakeSheetsService", method: str, kwargs: Dict[str, Any], callback: Callable[[], Any]):
        self._service = service
        self.method = method
        self.kwargs = kwargs
        self._callback = callback
        self.headers: Dict[str, str] = {}

    def execute(self):
        self._service.executed.append(self)
        if self._service.pending_errors:
            status, message = self._service.pending_errors.pop(0)
            raise http_error(status, message)
        return self._callback()


class _FakeValues:
    def __init__(self, service: "FakeSheetsService") -> None:
        self._service = service

    def get(self, spreadsheetId: str, range: str, **kwargs):  # noqa: N803 - API compatibility
        return self._service.request("values.get", dict(kwargs, range=range), lambda: self._service.handle_get(range))

    def update(self, spreadsheetId: str, range: str, valueInputOption: str, body: Dict[str, Any]):  # noqa: N803
        return self._service.request(
            "values.update",
            {"range": range, "valueInputOption": valueInputOption, "body": body},
            lambda: self._service.handle_update(range, body["values"]),
        )

    def append(self, spreadsheetId: str, range: str, valueInputOption: str, insertDataOption: str, body):  # noqa: N803
        return self._service.request(
            "values.append",
            {"range": range, "valueInputOption": valueInputOption, "insertDataOption": insertDataOption, "body": body},
            lambda: self._service.handle_append(range, body["values"]),
        )

    def clear(self, spreadsheetId: str, range: str, body: Dict[str, Any]):  # noqa: N803
        return self._service.request("values.clear", {"range": range}, lambda: self._service.handle_clear(range))

    def batchUpdate(self, spreadsheetId: str, body: Dict[str, Any]):  # noqa: N802, N803
        def apply():
            for entry in body.get("data", []):
                self._service.handle_update(entry["range"], entry["values"])
            return {}

        return self._service.request("values.batchUpdate", {"body": body}, apply)


class _FakeSpreadsheets:
    def __init__(self, service: "FakeSheetsService") -> None:
        self._service = service

    def values(self) -> _FakeValues:
        return _FakeValues(self._service)

    def get(self, spreadsheetId: str, **kwargs):  # noqa: N803
        return self._service.request("spreadsheets.get", kwargs, self._service.handle_metadata)

    def create(self, body: Dict[str, Any], **kwargs):
        return self._service.request("spreadsheets.create", {"body": body}, lambda: self._service.handle_create(body))

    def batchUpdate(self, spreadsheetId: str, body: Dict[str, Any]):  # noqa: N802, N803
        return self._service.request(
            "spreadsheets.batchUpdate", {"body": body}, lambda: self._service.handle_structure(body)
        )


class FakeSheetsService:
    """In-memory stand-in for the ``sheets`` v4 discovery service."""

    def __init__(self, sheets: Optional[Dict[str, List[List[Any]]]] = None) -> None:
        self.sheets: Dict[str, List[List[Any]]] = {
            title: [list(row) for row in rows] for title, rows in (sheets or {}).items()
        }
        self.sheet_ids: Dict[str, int] = {title: index for index, title in enumerate(self.sheets)}
        self.requests: List[FakeRequest] = []
        self.executed: List[FakeRequest] = []
        self.pending_errors: List[Tuple[int, str]] = []
        self.created_spreadsheet_id = "created-spreadsheet"

    def spreadsheets(self) -> _FakeSpreadsheets:
        return _FakeSpreadsheets(self)

    # Helpers ----------------------------------------------------------
    def request(self, method: str, kwargs: Dict[str, Any], callback: Callable[[], Any]) -> FakeRequest:
        request = FakeRequest(self, method, kwargs, callback)
        self.requests.append(request)
        return request

    def fail_next(self, status: int, message: str) -> None:
        self.pending_errors.append((status, message))

    def calls(self, method: str) -> List[FakeRequest]:
        return [request for request in self.executed if request.method == method]

    def rows(self, title: str) -> List[List[Any]]:
        return _trim(self.sheets.get(title, []))

    @staticmethod
    def parse_range(range_spec: str) -> Tuple[str, int, int, Optional[int]]:
        title, _, cells = range_spec.rpartition("!")
        if title.startswith("'") and title.endswith("'"):
            title = title[1:-1].replace("''", "'")
        match = _RANGE_PATTERN.match(cells)
        assert match, f"unsupported range {range_spec!r}"
        start_row = int(match.group(2)) - 1 if match.group(2) else 0
        end_row = int(match.group(4)) if match.group(4) else None
        return title, start_row, _column_index(match.group(1)), end_row

    def _sheet(self, title: str) -> List[List[Any]]:
        if title not in self.sheets:
            raise http_error(400, f"Unable to parse range: {title}", "Bad Request")
        return self.sheets[title]

    def handle_get(self, range_spec: str) -> Dict[str, Any]:
        title, start, column, end = self.parse_range(range_spec)
        rows = self._sheet(title)[start:end]
        values = _trim([row[column:] for row in rows])
        return {"values": values} if values else {"range": range_spec}

    def handle_update(self, range_spec: str, values: List[List[Any]]) -> Dict[str, Any]:
        title, start, column, _ = self.parse_range(range_spec)
        sheet = self._sheet(title)
        for offset, row in enumerate(values):
            index = start + offset
            while len(sheet) <= index:
                sheet.append([])
            target = sheet[index]
            while len(target) < column + len(row):
                target.append("")
            target[column : column + len(row)] = list(row)
        return {"updatedRows": len(values)}

    def handle_append(self, range_spec: str, values: List[List[Any]]) -> Dict[str, Any]:
        title, _, column, _ = self.parse_range(range_spec)
        next_row = len(_trim(self._sheet(title)))
        anchor = f"'{title}'!A{next_row + 1}"
        return self.handle_update(anchor, values)

    def handle_clear(self, range_spec: str) -> Dict[str, Any]:
        title, start, _, end = self.parse_range(range_spec)
        sheet = self._sheet(title)
        stop = len(sheet) if end is None else min(end, len(sheet))
        for index in range(start, stop):
            sheet[index] = []
        self.sheets[title] = _trim(sheet)
        return {"clearedRange": range_spec}

    def handle_metadata(self) -> Dict[str, Any]:
        return {
            "sheets": [
                {"properties": {"title": title, "sheetId": sheet_id}} for title, sheet_id in self.sheet_ids.items()
            ]
        }

    def _add_sheet(self, title: str) -> int:
        sheet_id = max(self.sheet_ids.values(), default=-1) + 1
        self.sheets[title] = []
        self.sheet_ids[title] = sheet_id
        return sheet_id

    def handle_create(self, body: Dict[str, Any]) -> Dict[str, Any]:
        sheets = []
        for entry in body.get("sheets", []):
            title = entry["properties"]["title"]
            sheet_id = self._add_sheet(title)
            sheets.append({"properties": {"title": title, "sheetId": sheet_id}})
        return {"spreadsheetId": self.created_spreadsheet_id, "sheets": sheets}

    def handle_structure(self, body: Dict[str, Any]) -> Dict[str, Any]:
        replies: List[Dict[str, Any]] = []
        for entry in body.get("requests", []):
            if "addSheet" in entry:
                title = entry["addSheet"]["properties"]["title"]
                sheet_id = self._add_sheet(title)
                replies.append({"addSheet": {"properties": {"title": title, "sheetId": sheet_id}}})
            else:
                replies.append({})
        return {"replies": replies}


class _FakeFiles:
    def __init__(self, drive: "FakeDriveService") -> None:
        self._drive = drive

    def list(self, q: str, spaces: str, fields: str):
        self._drive.queries.append(q)
        match = re.search(r"name = '((?:[^'\\]|\\.)*)'", q)
        name = match.group(1).replace("\\'", "'").replace("\\\\", "\\") if match else ""
        files = [entry for entry in self._drive.files_by_name if entry["name"] == name]
        return self._drive.sheets.request("drive.files.list", {"q": q}, lambda: {"files": files})


class FakeDriveService:
    def __init__(self, sheets: FakeSheetsService, files: Optional[List[Dict[str, str]]] = None) -> None:
        self.sheets = sheets
        self.files_by_name = list(files or [])
        self.queries: List[str] = []

    def files(self) -> _FakeFiles:
        return _FakeFiles(self)


def headers_only() -> Dict[str, List[List[Any]]]:
    return {title: [list(headers)] for title, headers in HEADERS_BY_SHEET.items()}


@pytest.fixture(autouse=True)
def _reset_decode_errors():
    decode_errors.clear()
    yield
    decode_errors.clear()


@pytest.fixture
def sheets_service() -> FakeSheetsService:
    return FakeSheetsService(headers_only())


@pytest.fixture
def sheet_client(sheets_service: FakeSheetsService) -> SheetStoreClient:
    return SheetStoreClient(sheets_service, "spreadsheet-1")
