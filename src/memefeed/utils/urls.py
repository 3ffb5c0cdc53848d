"""Helpers for cleaning spreadsheet cells and validating image URLs."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

_ALLOWED_SCHEMES = frozenset({"http", "https"})


def clean_cell(value: Any) -> str:
    """Return the trimmed string form of a spreadsheet cell."""

    if value is None:
        return ""
    return str(value).strip()


def is_valid_url(value: str) -> bool:
    """Return ``True`` when *value* is an absolute http(s) URL with a host."""

    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        parts = urlsplit(value)
        # Accessing ``port`` validates the netloc and raises on garbage.
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in _ALLOWED_SCHEMES and bool(parts.hostname)
