from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for the settings manager", exc_type=ImportError)

from memefeed.appctx import FeedContext
from memefeed.errors import SettingsValidationError, SourceUnavailableError
from memefeed.infrastructure.sources.csv_source import CsvUrlSource
from memefeed.settings.manager import SettingsManager


@pytest.fixture()
def settings(tmp_path: Path) -> SettingsManager:
    manager = SettingsManager(tmp_path / "settings.json")
    manager.load()
    return manager


def test_csv_path_takes_precedence_over_sheet(settings: SettingsManager, tmp_path: Path) -> None:
    context = FeedContext(settings=settings, csv_path=tmp_path / "memes.csv")

    source = context.build_source()

    assert isinstance(source, CsvUrlSource)
    assert source.path == tmp_path / "memes.csv"


def test_missing_sheet_configuration_is_unavailable(settings: SettingsManager) -> None:
    context = FeedContext(settings=settings)

    with pytest.raises(SourceUnavailableError) as excinfo:
        context.build_source()

    assert "SpreadsheetId is not set." in str(excinfo.value)
    assert "CredentialsFilePath is not set." in str(excinfo.value)


def test_controller_uses_configured_feed_settings(settings: SettingsManager) -> None:
    settings.set("feed.buffer_size", 7)
    settings.set("sheets.range", "Memes!B2:B51")
    context = FeedContext(settings=settings)

    controller = context.build_controller(Mock(), Mock(), Mock())

    assert controller.buffer_size == 7
    assert controller.range_spec == "Memes!B2:B51"


def test_range_override_wins(settings: SettingsManager) -> None:
    context = FeedContext(settings=settings, range_spec="Sheet2!A1:A10")

    assert context.initial_range == "Sheet2!A1:A10"
    assert context.build_controller(Mock(), Mock(), Mock()).range_spec == "Sheet2!A1:A10"


def test_unusable_range_is_a_settings_error(settings: SettingsManager) -> None:
    context = FeedContext(settings=settings, range_spec="Sheet1!A1:B100")

    with pytest.raises(SettingsValidationError, match="single column"):
        context.initial_range
    with pytest.raises(SettingsValidationError):
        context.build_controller(Mock(), Mock(), Mock())
