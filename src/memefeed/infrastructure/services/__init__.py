from .http_fetcher import HttpResourceFetcher

__all__ = ["HttpResourceFetcher"]
