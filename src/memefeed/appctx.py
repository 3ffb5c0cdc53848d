"""Application-wide context: settings, error routing and feed wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .domain.models import FetchCursor
from .errors import SettingsValidationError
from .errors.handler import ErrorHandler
from .events.bus import EventBus

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .application.interfaces import PresentationSink, ResourceFetcher, UrlSource
    from .application.runtime import FeedRuntime
    from .application.services.prefetch_controller import PrefetchController
    from .infrastructure.services.http_fetcher import HttpResourceFetcher
    from .settings.manager import SettingsManager

LOGGER = logging.getLogger("memefeed")


def _create_settings_manager() -> "SettingsManager":
    from .settings.manager import SettingsManager

    manager = SettingsManager()
    manager.load()
    return manager


@dataclass
class FeedContext:
    """Container object shared by the GUI and the CLI.

    ``csv_path`` replaces the spreadsheet with a local CSV export; ``range_spec``
    overrides the configured first window.
    """

    settings: "SettingsManager" = field(default_factory=_create_settings_manager)
    event_bus: EventBus = field(default_factory=lambda: EventBus(LOGGER))
    csv_path: Optional[Path] = None
    range_spec: Optional[str] = None
    error_handler: ErrorHandler = field(init=False)

    def __post_init__(self) -> None:
        self.error_handler = ErrorHandler(LOGGER, self.event_bus)

    @property
    def initial_range(self) -> str:
        """First A1 window to read; raises SettingsValidationError when unusable."""

        range_spec = self.range_spec or self.settings.get("sheets.range")
        try:
            FetchCursor.parse(range_spec)
        except ValueError as exc:
            raise SettingsValidationError(str(exc)) from exc
        return range_spec

    def build_source(self) -> "UrlSource":
        """Return the configured URL source.

        Raises :class:`~memefeed.errors.SourceUnavailableError` when the
        spreadsheet is not configured or its credentials cannot be loaded.
        """

        if self.csv_path is not None:
            from .infrastructure.sources.csv_source import CsvUrlSource

            return CsvUrlSource(self.csv_path)

        from .errors import SourceUnavailableError
        from .infrastructure.sources.google_sheets import GoogleSheetsUrlSource

        missing = self.settings.missing_required()
        if missing:
            raise SourceUnavailableError(" ".join(missing))
        source = GoogleSheetsUrlSource(
            self.settings.get("sheets.spreadsheet_id"),
            self.settings.credentials_path(),
            application_name=self.settings.get("sheets.application_name"),
        )
        source.connect()
        return source

    def build_fetcher(self) -> "HttpResourceFetcher":
        from .infrastructure.services.http_fetcher import HttpResourceFetcher

        return HttpResourceFetcher()

    def build_controller(
        self,
        sink: "PresentationSink",
        source: "UrlSource",
        fetcher: "ResourceFetcher",
        *,
        initial_range: Optional[str] = None,
    ) -> "PrefetchController":
        from .application.services.prefetch_controller import PrefetchController

        return PrefetchController(
            source,
            fetcher,
            sink,
            initial_range=initial_range or self.initial_range,
            initial_load_count=self.settings.get("feed.initial_load_count"),
            buffer_size=self.settings.get("feed.buffer_size"),
            error_handler=self.error_handler,
            event_bus=self.event_bus,
        )

    def create_runtime(self, sink: "PresentationSink", source: "UrlSource") -> "FeedRuntime":
        """Build a :class:`FeedRuntime` whose HTTP client lives on the loop thread."""

        from .application.runtime import FeedRuntime

        fetchers: list["HttpResourceFetcher"] = []

        def _factory() -> "PrefetchController":
            initial_range = self.initial_range
            fetcher = self.build_fetcher()
            fetchers.append(fetcher)
            return self.build_controller(sink, source, fetcher, initial_range=initial_range)

        async def _close_fetchers() -> None:
            for fetcher in fetchers:
                await fetcher.aclose()

        return FeedRuntime(_factory, closers=(_close_fetchers,), error_handler=self.error_handler)


__all__ = ["FeedContext"]
