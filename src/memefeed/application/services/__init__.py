from .prefetch_controller import PrefetchController
from .scheduling import batch_size, dynamic_threshold, threshold_crossed, url_fetch_threshold

__all__ = [
    "PrefetchController",
    "batch_size",
    "dynamic_threshold",
    "threshold_crossed",
    "url_fetch_threshold",
]
