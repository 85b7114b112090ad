"""Remote image retrieval."""

from .http_fetcher import ImageFetcher, ImageFetchError, is_fetchable_url

__all__ = ["ImageFetchError", "ImageFetcher", "is_fetchable_url"]
