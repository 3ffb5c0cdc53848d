"""URL source reading A1 windows out of a local CSV file."""

from __future__ import annotations

import asyncio
import csv
import logging
from pathlib import Path

from ...domain.models import FetchCursor
from ...errors import PageFetchError
from ...utils.urls import clean_cell

LOGGER = logging.getLogger(__name__)


def column_index(column: str) -> int:
    """Return the zero-based index of an A1 column label (``A`` -> 0, ``AA`` -> 26)."""

    index = 0
    for char in column.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


class CsvUrlSource:
    """Serve the same range contract as a spreadsheet from a CSV export.

    The sheet name in the range is ignored; rows are 1-based like in the
    spreadsheet, so ``Sheet1!A1:A100`` reads the first column of the first 100
    lines.
    """

    def __init__(self, path: Path, *, encoding: str = "utf-8") -> None:
        self._path = Path(path)
        self._encoding = encoding

    @property
    def path(self) -> Path:
        return self._path

    async def fetch_page(self, range_spec: str) -> list[str]:
        try:
            cursor = FetchCursor.parse(range_spec)
        except ValueError as exc:
            raise PageFetchError(range_spec, str(exc)) from exc
        return await asyncio.to_thread(self._read_window, cursor, range_spec)

    def _read_window(self, cursor: FetchCursor, range_spec: str) -> list[str]:
        col = column_index(cursor.column)
        values: list[str] = []
        try:
            with self._path.open("r", encoding=self._encoding, newline="") as handle:
                for row_number, row in enumerate(csv.reader(handle), start=1):
                    if row_number < cursor.start_row:
                        continue
                    if row_number > cursor.end_row:
                        break
                    if len(row) <= col:
                        continue
                    value = clean_cell(row[col])
                    if value:
                        values.append(value)
        except OSError as exc:
            raise PageFetchError(range_spec, str(exc)) from exc
        LOGGER.debug("Read %d cells from %s (%s)", len(values), self._path, range_spec)
        return values
