"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from .appctx import FeedContext
from .application.interfaces import UrlSource
from .domain.models import ScrollAxis
from .errors import MemeFeedError, SettingsError, SourceError
from .settings.manager import SettingsManager
from .utils.console_logger import ensure_console_logger


app = typer.Typer(help="Endless image feed backed by a spreadsheet of URLs")
settings_app = typer.Typer(help="Inspect and edit settings")
app.add_typer(settings_app, name="settings")

SettingsOption = typer.Option(None, "--settings", help="Path to settings.json")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (SourceError, SettingsError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except MemeFeedError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _load_settings(path: Optional[Path]) -> SettingsManager:
    manager = SettingsManager(path)
    manager.load()
    return manager


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    ensure_console_logger(logging.getLogger("memefeed"), "memefeed-cli", level=level)


class ProbeSink:
    """Presentation sink that records what a headless run would have shown."""

    def __init__(self) -> None:
        self.ready = False
        self.results: dict[int, str] = {}

    def on_ready(self) -> None:
        self.ready = True

    def on_resource_loaded(self, index: int, image: Any) -> None:
        size = getattr(image, "size", None)
        self.results[index] = f"{size[0]}x{size[1]}" if size else "loaded"

    def on_resource_failed(self, index: int) -> None:
        self.results[index] = "failed"


async def _probe(context: FeedContext, source: UrlSource, count: int) -> tuple[Any, ProbeSink]:
    sink = ProbeSink()
    async with context.build_fetcher() as fetcher:
        controller = context.build_controller(sink, source, fetcher)
        if not await controller.initialize():
            return controller, sink
        axis = ScrollAxis(context.settings.get("feed.orientation"))
        # Keep the feed pinned to its end until enough images were attempted.
        end_position = 1.0 if axis is ScrollAxis.HORIZONTAL else 0.0
        await controller.wait_idle()
        while len(sink.results) < count:
            consumed = controller.state.consumed_count
            known = len(controller.urls)
            controller.on_scroll_position_changed(end_position, axis)
            await controller.wait_idle()
            if controller.state.consumed_count == consumed and len(controller.urls) == known:
                break
    return controller, sink


@app.command()
def run(
    settings: Optional[Path] = SettingsOption,
    csv: Optional[Path] = typer.Option(None, "--csv", exists=True, dir_okay=False, help="Read URLs from a CSV file"),
    range_spec: Optional[str] = typer.Option(None, "--range", help="First A1 range to read"),
) -> None:
    """Launch the desktop feed."""

    from .gui.main import main as gui_main

    raise typer.Exit(gui_main([], settings_path=settings, csv_path=csv, range_spec=range_spec))


@app.command()
@_handle_errors
def probe(
    settings: Optional[Path] = SettingsOption,
    csv: Optional[Path] = typer.Option(None, "--csv", exists=True, dir_okay=False, help="Read URLs from a CSV file"),
    count: int = typer.Option(10, "--count", min=1, help="Number of images to attempt"),
    range_spec: Optional[str] = typer.Option(None, "--range", help="First A1 range to read"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Run the feed headlessly and report which images loaded."""

    _configure_logging(verbose)
    context = FeedContext(settings=_load_settings(settings), csv_path=csv, range_spec=range_spec)
    source = context.build_source()
    controller, sink = asyncio.run(_probe(context, source, count))
    if not sink.ready:
        print("[red]The feed did not become ready; see the log for details.")
        raise typer.Exit(1)

    table = Table(title=f"Feed probe ({len(controller.urls)} URLs known)")
    table.add_column("#", justify="right")
    table.add_column("URL", overflow="fold")
    table.add_column("Result")
    for index in sorted(sink.results):
        result = sink.results[index]
        style = "red" if result == "failed" else "green"
        table.add_row(str(index + 1), controller.urls[index], f"[{style}]{result}")
    Console().print(table)
    loaded = sum(1 for result in sink.results.values() if result != "failed")
    print(f"[green]Loaded {loaded} of {len(sink.results)} images")


@app.command()
@_handle_errors
def sheets(settings: Optional[Path] = SettingsOption) -> None:
    """List the sheet titles of the configured spreadsheet."""

    from .infrastructure.sources.google_sheets import GoogleSheetsUrlSource

    context = FeedContext(settings=_load_settings(settings))
    source = context.build_source()
    if not isinstance(source, GoogleSheetsUrlSource):  # pragma: no cover - build_source contract
        raise SourceError("No spreadsheet configured")
    for title in asyncio.run(source.list_sheet_titles()):
        print(title)


@settings_app.command("show")
@_handle_errors
def settings_show(settings: Optional[Path] = SettingsOption) -> None:
    """Print the effective settings as JSON."""

    manager = _load_settings(settings)
    print(f"[bold]{manager.path}")
    typer.echo(json.dumps(manager.as_dict(), indent=2, sort_keys=True))


@settings_app.command("set")
@_handle_errors
def settings_set(
    key: str,
    value: str,
    settings: Optional[Path] = SettingsOption,
) -> None:
    """Set a dotted KEY to VALUE, e.g. ``feed.buffer_size 8``."""

    manager = _load_settings(settings)
    manager.set_from_text(key, value)
    print(f"[green]Set {key} = {manager.get(key)!r}")


@settings_app.command("check")
@_handle_errors
def settings_check(settings: Optional[Path] = SettingsOption) -> None:
    """Report required settings that are still missing."""

    manager = _load_settings(settings)
    missing = manager.missing_required()
    credentials = manager.credentials_path()
    if credentials is not None and not credentials.is_file():
        missing.append(f"Credentials file not found at path: {credentials}")
    if missing:
        for message in missing:
            print(f"[red]{message}")
        raise typer.Exit(1)
    print("[green]Settings are complete")


if __name__ == "__main__":  # pragma: no cover - manual launch
    app()
