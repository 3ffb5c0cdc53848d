"""Tests for CsvUrlSource."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from memefeed.errors import PageFetchError
from memefeed.infrastructure.sources.csv_source import CsvUrlSource, column_index


@pytest.fixture()
def csv_file(tmp_path: Path) -> Path:
    lines = [f"https://memes.example/{index}.png,caption {index}" for index in range(1, 8)]
    lines.insert(3, "")
    lines.insert(6, ",caption without url")
    path = tmp_path / "memes.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_column_index():
    assert column_index("A") == 0
    assert column_index("b") == 1
    assert column_index("Z") == 25
    assert column_index("AA") == 26


def test_reads_rows_of_the_requested_window(csv_file: Path):
    source = CsvUrlSource(csv_file)

    rows = asyncio.run(source.fetch_page("Sheet1!A1:A3"))

    assert rows == [f"https://memes.example/{index}.png" for index in (1, 2, 3)]


def test_short_rows_are_skipped_and_later_windows_work(csv_file: Path):
    source = CsvUrlSource(csv_file)

    rows = asyncio.run(source.fetch_page("Sheet1!A4:A6"))

    # Row 4 is blank.
    assert rows == ["https://memes.example/4.png", "https://memes.example/5.png"]


def test_other_columns_can_be_read(csv_file: Path):
    rows = asyncio.run(CsvUrlSource(csv_file).fetch_page("Sheet1!B1:B2"))

    assert rows == ["caption 1", "caption 2"]


def test_blank_cells_are_skipped(csv_file: Path):
    rows = asyncio.run(CsvUrlSource(csv_file).fetch_page("Sheet1!A6:A8"))

    # Row 7 has a caption but no URL.
    assert rows == ["https://memes.example/5.png", "https://memes.example/6.png"]


def test_window_past_the_end_is_empty(csv_file: Path):
    assert asyncio.run(CsvUrlSource(csv_file).fetch_page("Sheet1!A100:A199")) == []


def test_missing_file_raises_page_fetch_error(tmp_path: Path):
    source = CsvUrlSource(tmp_path / "missing.csv")

    with pytest.raises(PageFetchError) as excinfo:
        asyncio.run(source.fetch_page("Sheet1!A1:A100"))

    assert excinfo.value.range_spec == "Sheet1!A1:A100"


def test_malformed_range_raises_page_fetch_error(csv_file: Path):
    with pytest.raises(PageFetchError):
        asyncio.run(CsvUrlSource(csv_file).fetch_page("A1:B2"))
