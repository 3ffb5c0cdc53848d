from dataclasses import dataclass

from .bus import Event


@dataclass(kw_only=True)
class FeedReadyEvent(Event):
    url_count: int = 0
    loaded_count: int = 0


@dataclass(kw_only=True)
class UrlPageAppendedEvent(Event):
    range_spec: str = ""
    added: int = 0
    skipped: int = 0
    total: int = 0


@dataclass(kw_only=True)
class BatchCompletedEvent(Event):
    first_index: int = 0
    requested: int = 0
    succeeded: int = 0
    elapsed_ms: float = 0.0
