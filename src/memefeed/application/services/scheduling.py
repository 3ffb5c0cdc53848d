"""Pure functions deciding when the feed prefetches more content."""

from __future__ import annotations

import math

from ...config import THRESHOLD_BASE, THRESHOLD_CAP, THRESHOLD_SLOPE, URL_FETCH_RATIO_PERCENT
from ...domain.models import ScrollAxis


def dynamic_threshold(consumed_count: int) -> float:
    """Return the normalised scroll offset at which the next batch loads.

    The more content was already consumed, the faster the user is assumed to
    scroll, so the trigger moves closer to the edge.  The result is
    non-decreasing in *consumed_count* and stays within ``[0.6, 0.95]``.
    """

    if consumed_count <= 0:
        return THRESHOLD_BASE
    threshold = THRESHOLD_BASE + THRESHOLD_SLOPE * math.log(consumed_count + 1)
    return min(max(threshold, THRESHOLD_BASE), THRESHOLD_CAP)


def threshold_crossed(position: float, axis: ScrollAxis, threshold: float) -> bool:
    """Return whether *position* passed *threshold* in the scroll-forward direction."""

    if axis is ScrollAxis.HORIZONTAL:
        return position >= threshold
    return position <= 1.0 - threshold


def url_fetch_threshold(buffer_length: int) -> int:
    """Return ``floor(0.9 * buffer_length)`` without float rounding surprises."""

    return (buffer_length * URL_FETCH_RATIO_PERCENT) // 100


def batch_size(buffer_size: int, buffer_length: int, consumed_count: int) -> int:
    return max(0, min(buffer_size, buffer_length - consumed_count))


__all__ = ["batch_size", "dynamic_threshold", "threshold_crossed", "url_fetch_threshold"]
