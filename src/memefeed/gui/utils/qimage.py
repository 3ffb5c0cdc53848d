"""Convert decoded Pillow images into Qt image primitives."""

from __future__ import annotations

import logging
from typing import Any, Optional

from PIL import Image
from PIL.ImageQt import ImageQt
from PySide6.QtGui import QImage

_LOGGER = logging.getLogger(__name__)


def qimage_from_pil(image: Any) -> Optional[QImage]:
    """Return a detached :class:`QImage` for *image*.

    ``QImage`` inputs are passed through.  The conversion is safe to run off
    the GUI thread, unlike anything involving ``QPixmap``.
    """

    if isinstance(image, QImage):
        return None if image.isNull() else image
    if not isinstance(image, Image.Image):
        _LOGGER.error("Cannot convert %r into a QImage", type(image).__name__)
        return None
    try:
        # ``ImageQt`` borrows the Pillow buffer; copy so the result owns its pixels.
        converted = QImage(ImageQt(image.convert("RGBA"))).copy()
    except Exception:
        _LOGGER.exception("Pillow failed to convert image into a QImage")
        return None
    return None if converted.isNull() else converted


__all__ = ["qimage_from_pil"]
