"""Presentation sink that forwards feed events into the Qt GUI thread."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from ...errors.handler import ErrorSeverity
from ..utils.qimage import qimage_from_pil


class QtSinkBridge(QObject):
    """Signals exposed to the feed window.

    The controller calls the ``on_*`` methods from the feed loop thread.  The
    bridge lives on the GUI thread, so every signal is delivered through a
    queued connection and slots always run on the GUI thread.
    """

    ready = Signal()
    """Emitted once the initial images were loaded."""

    resourceLoaded = Signal(int, QImage)
    """Emitted with the feed index and the decoded image."""

    resourceFailed = Signal(int)
    """Emitted when the image at the given index could not be shown."""

    errorRaised = Signal(str, bool)
    """Emitted with a message and whether the error is critical."""

    def on_ready(self) -> None:
        self.ready.emit()

    def on_resource_loaded(self, index: int, image: Any) -> bool:
        qimage = qimage_from_pil(image)
        if qimage is None:
            self.resourceFailed.emit(index)
            return False
        self.resourceLoaded.emit(index, qimage)
        return True

    def on_resource_failed(self, index: int) -> None:
        self.resourceFailed.emit(index)

    def report_error(self, message: str, severity: ErrorSeverity) -> None:
        self.errorRaised.emit(message, severity is ErrorSeverity.CRITICAL)


__all__ = ["QtSinkBridge"]
