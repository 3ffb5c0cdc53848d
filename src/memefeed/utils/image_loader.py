"""Decode downloaded image payloads with Pillow."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

_LOGGER = logging.getLogger(__name__)


def decode_image(data: bytes) -> Optional[Image.Image]:
    """Return a fully loaded :class:`PIL.Image.Image` decoded from *data*.

    ``None`` is returned for empty or undecodable payloads.  EXIF orientation
    is applied so the feed shows photos the right way up.
    """

    if not data:
        return None
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            transposed = ImageOps.exif_transpose(img)
            # ``exif_transpose`` returns the same object when nothing changes;
            # copy so the result outlives the context manager.
            return transposed.copy() if transposed is img else transposed
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        _LOGGER.debug("Pillow failed to decode %d bytes: %s", len(data), exc)
        return None


__all__ = ["decode_image"]
