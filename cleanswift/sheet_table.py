"""Worksheet-backed record table.

The Sheets values API has no notion of a row keyed by id, so every mutation
other than an append is a full read-modify-rewrite of the worksheet: all data
rows are read and decoded, the caller's modifier edits the list in memory,
the header row is fetched separately, the sheet is cleared and the header is
written back followed by the re-encoded rows.  Two overlapping rewrites of
the same sheet race under last-write-wins.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from cleanswift.row_codec import RowCodec
from cleanswift.sheets_client import SheetStoreClient, anchor_range, data_range, sheet_range

logger = logging.getLogger(__name__)

T = TypeVar("T")

Modifier = Callable[[List[T]], Optional[List[T]]]


def _is_blank(row: Sequence[Any]) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in row)


class SheetTable(Generic[T]):
    """Records of one worksheet, read and written through a :class:`SheetStoreClient`."""

    def __init__(self, client: SheetStoreClient, codec: RowCodec[T]) -> None:
        self._client = client
        self._codec = codec

    @property
    def title(self) -> str:
        return self._codec.title

    def all(self) -> List[T]:
        rows = self._client.read(data_range(self.title))
        records: List[T] = []
        for row in rows:
            if _is_blank(row):
                continue
            if self._codec.keyed and not str(row[0]).strip():
                continue
            records.append(self._codec.decode(row))
        return records

    def append(self, records: Sequence[T]) -> None:
        if not records:
            return
        self._client.append(anchor_range(self.title), [self._codec.encode(record) for record in records])

    def rewrite(self, modifier: Modifier[T], *, quick: bool = False) -> List[T]:
        """Apply ``modifier`` to every record and persist the result.

        ``modifier`` returns ``None`` to signal that nothing changed, in which
        case no write is issued.  ``quick`` only affects the in-memory table.
        """

        records = self.all()
        updated = modifier(records)
        if updated is None:
            return records
        self._write(updated)
        return updated

    def replace(self, records: Sequence[T]) -> None:
        """Overwrite the sheet with ``records`` under the current header layout.

        Unlike :meth:`rewrite`, the stored header is not kept: the rows are
        encoded in the current column order, so an older header would mislabel
        them.
        """

        self._write(records, header=list(self._codec.headers))

    def _write(self, records: Sequence[T], *, header: Optional[List[Any]] = None) -> None:
        if header is None:
            header = self._client.read_header(self.title) or list(self._codec.headers)
        rows = [header] + [self._codec.encode(record) for record in records]
        self._client.clear(sheet_range(self.title))
        self._client.write_all(anchor_range(self.title), rows)
        logger.info("Rewrote %s with %d rows", self.title, len(records))


__all__ = ["Modifier", "SheetTable"]
