"""Fetch-or-load orchestration over the cache store and the fetcher."""

from .image_service import BatchItemHandler, CompletionHandler, ImageService
from .protocol import FetchableImage

__all__ = ["BatchItemHandler", "CompletionHandler", "FetchableImage", "ImageService"]
