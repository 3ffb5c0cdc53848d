"""Schema helpers for the application settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    BUFFER_SIZE,
    DEFAULT_IMAGE_SPACING,
    DEFAULT_RANGE,
    DEFAULT_WINDOW_SIZE,
    INITIAL_LOAD_COUNT,
    SHEETS_APPLICATION_NAME,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "memefeed/settings.schema.json",
    "type": "object",
    "required": ["schema", "sheets", "feed", "ui"],
    "properties": {
        "schema": {"const": "memefeed/settings@1"},
        "sheets": {
            "type": "object",
            "properties": {
                "spreadsheet_id": {"type": ["string", "null"]},
                "credentials_file": {"type": ["string", "null"]},
                "range": {
                    "type": "string",
                    "pattern": r"^[^!]+![A-Za-z]+\d+:[A-Za-z]+\d+$",
                },
                "application_name": {"type": "string", "minLength": 1},
            },
            "additionalProperties": True,
        },
        "feed": {
            "type": "object",
            "properties": {
                "initial_load_count": {"type": "integer", "minimum": 1},
                "buffer_size": {"type": "integer", "minimum": 1},
                "orientation": {"type": "string", "enum": ["vertical", "horizontal"]},
            },
            "additionalProperties": True,
        },
        "ui": {
            "type": "object",
            "properties": {
                "window_width": {"type": "integer", "minimum": 120},
                "window_height": {"type": "integer", "minimum": 120},
                "image_spacing": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "memefeed/settings@1",
    "sheets": {
        "spreadsheet_id": None,
        "credentials_file": None,
        "range": DEFAULT_RANGE,
        "application_name": SHEETS_APPLICATION_NAME,
    },
    "feed": {
        "initial_load_count": INITIAL_LOAD_COUNT,
        "buffer_size": BUFFER_SIZE,
        "orientation": "vertical",
    },
    "ui": {
        "window_width": DEFAULT_WINDOW_SIZE[0],
        "window_height": DEFAULT_WINDOW_SIZE[1],
        "image_spacing": DEFAULT_IMAGE_SPACING,
    },
}

_SECTIONS = ("sheets", "feed", "ui")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
