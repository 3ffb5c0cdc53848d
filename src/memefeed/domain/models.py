"""Value types shared by the prefetch controller and its collaborators."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Sequence

from ..config import PAGE_ROWS
from ..errors import InvalidUrlError
from ..utils.urls import clean_cell, is_valid_url

_A1_RANGE = re.compile(
    r"^(?P<sheet>[^!]+)!(?P<col>[A-Za-z]+)(?P<start>\d+):(?P<end_col>[A-Za-z]+)(?P<end>\d+)$"
)


class ScrollAxis(str, Enum):
    """Direction the feed scrolls in.

    Horizontal positions grow from 0.0 (left) to 1.0 (right).  Vertical
    positions are top-anchored: 1.0 is the top of the content and 0.0 the
    bottom, so scrolling forward moves the position towards zero.
    """

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class FetchCursor:
    """A1-notation window over a single spreadsheet column."""

    sheet: str = "Sheet1"
    column: str = "A"
    start_row: int = 1
    page_rows: int = PAGE_ROWS

    @property
    def end_row(self) -> int:
        return self.start_row + self.page_rows - 1

    @property
    def range_spec(self) -> str:
        return f"{self.sheet}!{self.column}{self.start_row}:{self.column}{self.end_row}"

    def advanced_to(self, buffer_length: int) -> FetchCursor:
        """Return the window starting right after *buffer_length* rows."""

        return replace(self, start_row=buffer_length + 1)

    @classmethod
    def parse(cls, range_spec: str) -> FetchCursor:
        """Parse ``Sheet!A1:A100`` style ranges restricted to one column."""

        match = _A1_RANGE.match(range_spec.strip())
        if match is None:
            raise ValueError(f"Unsupported range {range_spec!r}; expected e.g. 'Sheet1!A1:A100'")
        column = match.group("col").upper()
        if match.group("end_col").upper() != column:
            raise ValueError(f"Range {range_spec!r} must cover a single column")
        start = int(match.group("start"))
        end = int(match.group("end"))
        if start < 1 or end < start:
            raise ValueError(f"Range {range_spec!r} has an empty or inverted row window")
        return cls(
            sheet=match.group("sheet"),
            column=column,
            start_row=start,
            page_rows=end - start + 1,
        )


@dataclass(frozen=True)
class LoadRequest:
    index: int
    url: str


@dataclass(frozen=True)
class LoadOutcome:
    """Result of one :class:`LoadRequest`: either an image or an error."""

    request: LoadRequest
    image: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.image is not None


class UrlBuffer:
    """Append-only list of validated image URLs."""

    def __init__(self) -> None:
        self._urls: list[str] = []

    def __len__(self) -> int:
        return len(self._urls)

    def __getitem__(self, index: int) -> str:
        return self._urls[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    @property
    def urls(self) -> tuple[str, ...]:
        return tuple(self._urls)

    def extend(self, rows: Iterable[str]) -> tuple[int, list[InvalidUrlError]]:
        """Append every valid URL in *rows*.

        Returns the number of URLs added and the rejected values, which never
        occupy a slot.
        """

        added = 0
        rejected: list[InvalidUrlError] = []
        for row in rows:
            value = clean_cell(row)
            if is_valid_url(value):
                self._urls.append(value)
                added += 1
            else:
                rejected.append(InvalidUrlError(value))
        return added, rejected


@dataclass
class ControllerState:
    """Mutable bookkeeping of the prefetch controller.

    The two flags are only toggled through the ``try_begin_*`` / ``end_*``
    pairs so at most one image batch and one URL page fetch can be in flight.
    """

    consumed_count: int = 0
    next_url_fetch_threshold: int = 0
    _loading_images: bool = False
    _fetching_urls: bool = False

    @property
    def is_loading_images(self) -> bool:
        return self._loading_images

    @property
    def is_fetching_urls(self) -> bool:
        return self._fetching_urls

    def try_begin_image_batch(self) -> bool:
        if self._loading_images:
            return False
        self._loading_images = True
        return True

    def end_image_batch(self) -> None:
        self._loading_images = False

    def try_begin_url_fetch(self) -> bool:
        if self._fetching_urls:
            return False
        self._fetching_urls = True
        return True

    def end_url_fetch(self) -> None:
        self._fetching_urls = False

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            consumed_count=self.consumed_count,
            is_loading_images=self._loading_images,
            is_fetching_urls=self._fetching_urls,
            next_url_fetch_threshold=self.next_url_fetch_threshold,
        )


@dataclass(frozen=True)
class ControllerSnapshot:
    consumed_count: int
    is_loading_images: bool
    is_fetching_urls: bool
    next_url_fetch_threshold: int


def claim_requests(buffer: Sequence[str], start: int, count: int) -> list[LoadRequest]:
    """Build *count* requests for the URLs following position *start*."""

    return [LoadRequest(index=index, url=buffer[index]) for index in range(start, start + count)]
