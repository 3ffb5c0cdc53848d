"""MemeFeed: an infinitely scrolling image feed backed by a Google Sheet."""

__version__ = "0.1.0"
