"""Fetchable image package: remote image fetching with local file caching."""

from .config import AppConfig, load_config
from .schemas import FailureKind, FetchOptions, FetchOutcome, ImageSource, OperationResult
from .service import FetchableImage, ImageService

__all__ = [
    "AppConfig",
    "FailureKind",
    "FetchOptions",
    "FetchOutcome",
    "FetchableImage",
    "ImageService",
    "ImageSource",
    "OperationResult",
    "load_config",
]
