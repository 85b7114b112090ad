"""Storage layer: cache key derivation + file-backed image store."""

from .cache import CacheStore
from .keys import MAX_KEY_LENGTH, derive_cache_key

__all__ = ["MAX_KEY_LENGTH", "CacheStore", "derive_cache_key"]
