"""GUI entry point for the MemeFeed desktop application."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import QApplication

from ..appctx import FeedContext
from ..domain.models import ScrollAxis
from ..errors import SourceUnavailableError
from ..errors.handler import ErrorSeverity
from ..settings.manager import SettingsManager
from ..utils.console_logger import ensure_console_logger
from .ui.feed_window import FeedWindow
from .ui.sink_bridge import QtSinkBridge

LOGGER = logging.getLogger(__name__)


def main(
    argv: list[str] | None = None,
    *,
    settings_path: Optional[Path] = None,
    csv_path: Optional[Path] = None,
    range_spec: Optional[str] = None,
) -> int:
    """Launch the Qt application and return the exit code."""

    arguments = list(sys.argv if argv is None else argv)
    app = QApplication.instance() or QApplication(arguments)
    ensure_console_logger(logging.getLogger("memefeed"), "memefeed-gui")

    settings = SettingsManager(settings_path)
    settings.load()
    context = FeedContext(settings=settings, csv_path=csv_path, range_spec=range_spec)

    bridge = QtSinkBridge()
    context.error_handler.register_ui_callback(bridge.report_error)
    window = FeedWindow(
        bridge,
        orientation=ScrollAxis(settings.get("feed.orientation")),
        spacing=settings.get("ui.image_spacing"),
    )
    window.resize(settings.get("ui.window_width"), settings.get("ui.window_height"))
    window.show()

    try:
        source = context.build_source()
    except SourceUnavailableError as exc:
        # The window stays open with the logo page explaining the problem.
        context.error_handler.handle(exc, ErrorSeverity.CRITICAL, {"stage": "startup"})
        return app.exec()

    runtime = context.create_runtime(bridge, source)
    window.attach_runtime(runtime)
    runtime.start()
    try:
        return app.exec()
    finally:
        runtime.stop(timeout=5.0)


if __name__ == "__main__":  # pragma: no cover - manual launch
    raise SystemExit(main())
