"""Tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for the settings manager", exc_type=ImportError)

from PIL import Image
from typer.testing import CliRunner

from memefeed import cli
from memefeed.appctx import FeedContext
from memefeed.errors import FetchErrorKind, ResourceFetchError

runner = CliRunner()


class _FakeFetcher:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def __aenter__(self) -> "_FakeFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def fetch(self, url: str) -> Image.Image:
        self.calls.append(url)
        if "broken" in url:
            raise ResourceFetchError(url, FetchErrorKind.CONNECTION, "refused")
        return Image.new("RGB", (3, 2))


@pytest.fixture(autouse=True)
def _quiet_console_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "ensure_console_logger", lambda *args, **kwargs: None)


@pytest.fixture()
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


def test_probe_reads_csv_and_reports_results(
    tmp_path: Path, settings_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    csv_path = tmp_path / "memes.csv"
    csv_path.write_text(
        "\n".join(
            [
                "https://memes.example/1.png",
                "https://memes.example/broken.png",
                "https://memes.example/3.png",
                "https://memes.example/4.png",
                "not a url",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    fetcher = _FakeFetcher()
    monkeypatch.setattr(FeedContext, "build_fetcher", lambda self: fetcher)

    result = runner.invoke(
        cli.app, ["probe", "--csv", str(csv_path), "--settings", str(settings_path), "--count", "10"]
    )

    assert result.exit_code == 0, result.output
    assert "Loaded 3 of 4 images" in result.output
    assert fetcher.calls == [
        "https://memes.example/1.png",
        "https://memes.example/broken.png",
        "https://memes.example/3.png",
        "https://memes.example/4.png",
    ]


def test_probe_without_sheet_configuration_fails(settings_path: Path) -> None:
    result = runner.invoke(cli.app, ["probe", "--settings", str(settings_path)])

    assert result.exit_code == 1
    assert "SpreadsheetId is not set." in result.output


def test_probe_with_empty_csv_reports_not_ready(
    tmp_path: Path, settings_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")
    monkeypatch.setattr(FeedContext, "build_fetcher", lambda self: _FakeFetcher())

    result = runner.invoke(cli.app, ["probe", "--csv", str(csv_path), "--settings", str(settings_path)])

    assert result.exit_code == 1
    assert "did not become ready" in result.output


# ---------------------------------------------------------------------------
# settings sub-commands
# ---------------------------------------------------------------------------


def test_settings_show_prints_effective_json(settings_path: Path) -> None:
    result = runner.invoke(cli.app, ["settings", "show", "--settings", str(settings_path)])

    assert result.exit_code == 0, result.output
    assert '"buffer_size": 5' in result.output
    assert settings_path.exists()


def test_settings_set_persists_coerced_value(settings_path: Path) -> None:
    result = runner.invoke(
        cli.app, ["settings", "set", "feed.buffer_size", "8", "--settings", str(settings_path)]
    )

    assert result.exit_code == 0, result.output
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["feed"]["buffer_size"] == 8


def test_settings_set_rejects_invalid_value(settings_path: Path) -> None:
    result = runner.invoke(
        cli.app, ["settings", "set", "feed.orientation", "diagonal", "--settings", str(settings_path)]
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_settings_check_lists_missing_values(settings_path: Path) -> None:
    result = runner.invoke(cli.app, ["settings", "check", "--settings", str(settings_path)])

    assert result.exit_code == 1
    assert "SpreadsheetId is not set." in result.output
    assert "CredentialsFilePath is not set." in result.output


def test_settings_check_passes_when_complete(tmp_path: Path, settings_path: Path) -> None:
    (tmp_path / "service-account.json").write_text("{}", encoding="utf-8")
    settings_path.write_text(
        json.dumps({"sheets": {"spreadsheet_id": "abc", "credentials_file": "service-account.json"}}),
        encoding="utf-8",
    )

    result = runner.invoke(cli.app, ["settings", "check", "--settings", str(settings_path)])

    assert result.exit_code == 0, result.output
    assert "Settings are complete" in result.output


def test_probe_with_multi_column_range_fails_cleanly(
    tmp_path: Path, settings_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    csv_path = tmp_path / "memes.csv"
    csv_path.write_text("https://memes.example/1.png\n", encoding="utf-8")
    monkeypatch.setattr(FeedContext, "build_fetcher", lambda self: _FakeFetcher())

    result = runner.invoke(
        cli.app,
        ["probe", "--csv", str(csv_path), "--settings", str(settings_path), "--range", "Sheet1!A1:B100"],
    )

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "must cover a single column" in result.output
