from .bus import Event, EventBus, Subscription
from .feed_events import BatchCompletedEvent, FeedReadyEvent, UrlPageAppendedEvent

__all__ = [
    "BatchCompletedEvent",
    "Event",
    "EventBus",
    "FeedReadyEvent",
    "Subscription",
    "UrlPageAppendedEvent",
]
