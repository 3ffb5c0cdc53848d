"""Offscreen tests for the Qt presentation layer."""

from __future__ import annotations

import os
from unittest.mock import Mock

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for GUI tests", exc_type=ImportError)
pytest.importorskip("PySide6.QtWidgets", reason="Qt widgets not available", exc_type=ImportError)
pytest.importorskip("PySide6.QtTest", reason="Qt test helpers not available", exc_type=ImportError)

from PIL import Image
from PySide6.QtGui import QColor, QImage
from PySide6.QtTest import QSignalSpy
from PySide6.QtWidgets import QApplication, QScrollBar

from memefeed.domain.models import ScrollAxis
from memefeed.errors.handler import ErrorSeverity
from memefeed.gui.ui.feed_window import FeedWindow, normalized_scroll_position
from memefeed.gui.ui.sink_bridge import QtSinkBridge
from memefeed.gui.utils.qimage import qimage_from_pil


@pytest.fixture(scope="module")
def qapp() -> QApplication:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def _qimage(width: int = 40, height: int = 30) -> QImage:
    image = QImage(width, height, QImage.Format.Format_ARGB32)
    image.fill(QColor("#336699"))
    return image


# ---------------------------------------------------------------------------
# Scroll position
# ---------------------------------------------------------------------------


def test_normalized_position_conventions(qapp: QApplication) -> None:
    bar = QScrollBar()
    bar.setRange(0, 200)

    bar.setValue(0)
    assert normalized_scroll_position(bar, ScrollAxis.VERTICAL) == pytest.approx(1.0)
    assert normalized_scroll_position(bar, ScrollAxis.HORIZONTAL) == pytest.approx(0.0)

    bar.setValue(150)
    assert normalized_scroll_position(bar, ScrollAxis.VERTICAL) == pytest.approx(0.25)
    assert normalized_scroll_position(bar, ScrollAxis.HORIZONTAL) == pytest.approx(0.75)


def test_content_that_fits_counts_as_scrolled_to_the_end(qapp: QApplication) -> None:
    bar = QScrollBar()
    bar.setRange(0, 0)

    assert normalized_scroll_position(bar, ScrollAxis.VERTICAL) == 0.0
    assert normalized_scroll_position(bar, ScrollAxis.HORIZONTAL) == 1.0


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


def test_bridge_converts_pil_images(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    loaded = QSignalSpy(bridge.resourceLoaded)

    assert bridge.on_resource_loaded(2, Image.new("RGB", (5, 4), (255, 0, 0))) is True

    assert loaded.count() == 1
    converted = qimage_from_pil(Image.new("RGB", (5, 4)))
    assert converted is not None
    assert (converted.width(), converted.height()) == (5, 4)


def test_bridge_reports_unconvertible_payload_as_failure(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    failed = QSignalSpy(bridge.resourceFailed)
    loaded = QSignalSpy(bridge.resourceLoaded)

    assert bridge.on_resource_loaded(7, object()) is False

    assert failed.count() == 1
    assert loaded.count() == 0


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------


def test_window_swaps_logo_for_feed_when_ready(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    window = FeedWindow(bridge)
    window.resize(320, 480)

    assert not window.is_feed_visible
    bridge.on_ready()
    qapp.processEvents()

    assert window.is_feed_visible
    window.close()


def test_images_are_kept_in_index_order(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    window = FeedWindow(bridge)

    bridge.resourceLoaded.emit(1, _qimage())
    bridge.resourceLoaded.emit(0, _qimage())
    bridge.resourceLoaded.emit(1, _qimage())
    bridge.on_resource_failed(2)
    bridge.resourceLoaded.emit(3, _qimage())
    qapp.processEvents()

    assert window.feed_page.indices() == [0, 1, 3]
    assert window.failed_indices == {2}
    window.close()


def test_scroll_positions_are_posted_once_ready(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    window = FeedWindow(bridge, orientation=ScrollAxis.HORIZONTAL)
    runtime = Mock()
    window.attach_runtime(runtime)

    window._report_scroll_position()
    runtime.post_scroll.assert_not_called()

    bridge.on_ready()
    qapp.processEvents()
    window._report_scroll_position()

    runtime.post_scroll.assert_called_with(1.0, ScrollAxis.HORIZONTAL)
    window.close()
    runtime.stop.assert_called_once()


def test_critical_error_before_ready_replaces_loading_text(qapp: QApplication) -> None:
    bridge = QtSinkBridge()
    window = FeedWindow(bridge)

    bridge.report_error("SpreadsheetId is not set.", ErrorSeverity.CRITICAL)
    qapp.processEvents()

    assert window.logo_page.message() == "SpreadsheetId is not set."
    assert window.statusBar().currentMessage() == "SpreadsheetId is not set."
    window.close()
