"""Custom exception hierarchy for MemeFeed."""

from __future__ import annotations

from enum import Enum


class MemeFeedError(Exception):
    """Base class for all custom errors raised by MemeFeed."""


# --- URL source errors ---

class SourceError(MemeFeedError):
    """Base class for failures of the URL source."""


class SourceUnavailableError(SourceError):
    """Raised when the URL source cannot be initialised or yields nothing at startup."""


class PageFetchError(SourceError):
    """Raised when a single URL page cannot be fetched."""

    def __init__(self, range_spec: str, detail: str = "") -> None:
        self.range_spec = range_spec
        self.detail = detail
        message = f"Failed to fetch URL page {range_spec}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# --- Resource errors ---

class FetchErrorKind(str, Enum):
    """Reason a single resource download failed."""

    CONNECTION = "connection"
    PROTOCOL = "protocol"
    EMPTY_PAYLOAD = "empty_payload"


class ResourceFetchError(MemeFeedError):
    """Raised when a single image cannot be downloaded or decoded."""

    def __init__(self, url: str, kind: FetchErrorKind, detail: str = "") -> None:
        self.url = url
        self.kind = kind
        self.detail = detail
        message = f"Error downloading image from {url} ({kind.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidUrlError(MemeFeedError):
    """Raised when a spreadsheet cell is not an absolute http(s) URL."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid URL skipped: {value!r}")


# --- Settings errors ---

class SettingsError(MemeFeedError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "FetchErrorKind",
    "InvalidUrlError",
    "MemeFeedError",
    "PageFetchError",
    "ResourceFetchError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "SourceError",
    "SourceUnavailableError",
]
