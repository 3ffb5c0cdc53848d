"""Main window that renders the endless meme feed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from PySide6.QtCore import Qt, QTimer, Slot
from PySide6.QtGui import QCloseEvent, QImage, QPixmap, QResizeEvent
from PySide6.QtWidgets import (
    QBoxLayout,
    QFrame,
    QLabel,
    QMainWindow,
    QScrollArea,
    QScrollBar,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from ...config import DEFAULT_IMAGE_SPACING, RENDER_TICK_MS
from ...domain.models import ScrollAxis
from .sink_bridge import QtSinkBridge

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from ...application.runtime import FeedRuntime

LOGGER = logging.getLogger(__name__)


def normalized_scroll_position(bar: QScrollBar, axis: ScrollAxis) -> float:
    """Return the position of *bar* in ``[0, 1]`` using the feed conventions.

    Horizontal feeds report ``0.0`` at the start and ``1.0`` at the end.
    Vertical feeds are top-anchored: ``1.0`` is the top, ``0.0`` the bottom.
    Content that does not overflow counts as scrolled to the end.
    """

    maximum = bar.maximum() - bar.minimum()
    if maximum <= 0:
        return 1.0 if axis is ScrollAxis.HORIZONTAL else 0.0
    progress = (bar.value() - bar.minimum()) / maximum
    progress = min(max(progress, 0.0), 1.0)
    return progress if axis is ScrollAxis.HORIZONTAL else 1.0 - progress


class LogoPage(QWidget):
    """Placeholder shown until the initial batch is on screen."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("logoPage")
        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.addStretch(1)

        self._title = QLabel("MemeFeed")
        self._title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        font = self._title.font()
        font.setPointSize(font.pointSize() * 2)
        font.setBold(True)
        self._title.setFont(font)
        layout.addWidget(self._title)

        self._message = QLabel("Loading…")
        self._message.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._message.setWordWrap(True)
        layout.addWidget(self._message)
        layout.addStretch(1)

    def message(self) -> str:
        return self._message.text()

    def set_message(self, text: str) -> None:
        self._message.setText(text)


class FeedPage(QScrollArea):
    """Scrollable strip of images appended in feed order."""

    def __init__(
        self,
        orientation: ScrollAxis,
        *,
        spacing: int = DEFAULT_IMAGE_SPACING,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("feedPage")
        self.setWidgetResizable(True)
        self.setFrameShape(QFrame.Shape.NoFrame)
        self._orientation = orientation

        container = QWidget()
        direction = (
            QBoxLayout.Direction.LeftToRight
            if orientation is ScrollAxis.HORIZONTAL
            else QBoxLayout.Direction.TopToBottom
        )
        self._layout = QBoxLayout(direction, container)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(spacing)
        self._layout.addStretch(1)
        self.setWidget(container)

        if orientation is ScrollAxis.HORIZONTAL:
            self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        else:
            self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        self._images: dict[int, QImage] = {}
        self._labels: dict[int, QLabel] = {}

    @property
    def orientation(self) -> ScrollAxis:
        return self._orientation

    def scroll_bar(self) -> QScrollBar:
        if self._orientation is ScrollAxis.HORIZONTAL:
            return self.horizontalScrollBar()
        return self.verticalScrollBar()

    def position(self) -> float:
        return normalized_scroll_position(self.scroll_bar(), self._orientation)

    def image_count(self) -> int:
        return len(self._labels)

    def indices(self) -> list[int]:
        return sorted(self._labels)

    def add_image(self, index: int, image: QImage) -> None:
        """Insert *image* at the slot matching its feed *index*."""

        if index in self._labels:
            LOGGER.debug("Ignoring duplicate image for index %d", index)
            return
        label = QLabel()
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._images[index] = image
        self._labels[index] = label
        self._apply_pixmap(label, image)
        # Batches complete in index order; the slot search still keeps late
        # arrivals from landing behind newer images.
        slot = sum(1 for existing in self._labels if existing < index)
        self._layout.insertWidget(slot, label)

    def rescale(self) -> None:
        for index, label in self._labels.items():
            self._apply_pixmap(label, self._images[index])

    def _apply_pixmap(self, label: QLabel, image: QImage) -> None:
        pixmap = QPixmap.fromImage(image)
        viewport = self.viewport().size()
        if self._orientation is ScrollAxis.HORIZONTAL:
            if viewport.height() > 0:
                pixmap = pixmap.scaledToHeight(
                    viewport.height(), Qt.TransformationMode.SmoothTransformation
                )
        elif viewport.width() > 0:
            pixmap = pixmap.scaledToWidth(
                viewport.width(), Qt.TransformationMode.SmoothTransformation
            )
        label.setPixmap(pixmap)


class FeedWindow(QMainWindow):
    """Swap the logo for the feed once it is ready and report scroll progress."""

    def __init__(
        self,
        bridge: QtSinkBridge,
        *,
        orientation: ScrollAxis = ScrollAxis.VERTICAL,
        spacing: int = DEFAULT_IMAGE_SPACING,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("MemeFeed")
        self._bridge = bridge
        self._runtime: Optional["FeedRuntime"] = None
        self._ready = False
        self._failed: set[int] = set()

        self._stack = QStackedWidget()
        self.logo_page = LogoPage()
        self.feed_page = FeedPage(orientation, spacing=spacing)
        self._stack.addWidget(self.logo_page)
        self._stack.addWidget(self.feed_page)
        self._stack.setCurrentWidget(self.logo_page)
        self.setCentralWidget(self._stack)

        self._render_timer = QTimer(self)
        self._render_timer.setInterval(RENDER_TICK_MS)
        self._render_timer.timeout.connect(self._report_scroll_position)

        self.feed_page.scroll_bar().valueChanged.connect(self._report_scroll_position)
        bridge.ready.connect(self.show_feed)
        bridge.resourceLoaded.connect(self.add_image)
        bridge.resourceFailed.connect(self.mark_failed)
        bridge.errorRaised.connect(self.show_error)

    @property
    def is_feed_visible(self) -> bool:
        return self._ready

    @property
    def failed_indices(self) -> set[int]:
        return set(self._failed)

    def attach_runtime(self, runtime: "FeedRuntime") -> None:
        self._runtime = runtime

    @Slot()
    def show_feed(self) -> None:
        """Hide the logo and start reporting scroll positions."""

        if self._ready:
            return
        self._ready = True
        self._stack.setCurrentWidget(self.feed_page)
        self._render_timer.start()
        LOGGER.info("Initial images loaded, showing feed")

    @Slot(int, QImage)
    def add_image(self, index: int, image: QImage) -> None:
        self.feed_page.add_image(index, image)

    @Slot(int)
    def mark_failed(self, index: int) -> None:
        self._failed.add(index)

    @Slot(str, bool)
    def show_error(self, message: str, critical: bool) -> None:
        if critical and not self._ready:
            self.logo_page.set_message(message)
        self.statusBar().showMessage(message, 0 if critical else 5000)

    @Slot()
    def _report_scroll_position(self) -> None:
        if not self._ready or self._runtime is None:
            return
        self._runtime.post_scroll(self.feed_page.position(), self.feed_page.orientation)

    def resizeEvent(self, event: QResizeEvent) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self.feed_page.rescale()

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        self._render_timer.stop()
        if self._runtime is not None:
            self._runtime.stop(timeout=5.0)
        super().closeEvent(event)


__all__ = ["FeedPage", "FeedWindow", "LogoPage", "normalized_scroll_position"]
