"""Protocols for the collaborators of the prefetch controller."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence


class UrlSource(Protocol):
    """Lists image URLs one A1 window at a time."""

    async def fetch_page(self, range_spec: str) -> Sequence[str]:
        """Return the trimmed cells of *range_spec* in sheet order.

        Raises :class:`~memefeed.errors.PageFetchError` when the page cannot be
        retrieved.  An exhausted sheet yields an empty sequence.
        """
        ...


class ResourceFetcher(Protocol):
    """Downloads and decodes one image."""

    async def fetch(self, url: str) -> Any:
        """Return the decoded image or raise :class:`~memefeed.errors.ResourceFetchError`."""
        ...


class PresentationSink(Protocol):
    """Receives feed events in index order."""

    def on_ready(self) -> None: ...

    def on_resource_loaded(self, index: int, image: Any) -> Optional[bool]:
        """Show *image*; returning ``False`` rejects it and the slot counts as failed."""
        ...

    def on_resource_failed(self, index: int) -> None: ...
