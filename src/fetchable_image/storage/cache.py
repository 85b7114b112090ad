from __future__ import annotations

import logging
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


class CacheStore:
    """Image files kept under two roots: caches (ephemeral) and documents (durable)."""

    def __init__(self, caches_dir: str | Path, documents_dir: str | Path) -> None:
        self.caches_dir = Path(caches_dir)
        self.documents_dir = Path(documents_dir)

    def root_for(self, store_in_caches: bool) -> Path:
        return self.caches_dir if store_in_caches else self.documents_dir

    def resolve(self, name: str, *, store_in_caches: bool = True) -> Path:
        if not name:
            raise ValueError("name must not be empty")
        return self.root_for(store_in_caches) / name

    def exists(self, path: Path) -> bool:
        """True for an existing regular file.

        Lookup errors other than a missing entry (name too long, permission
        denied) are raised as ``OSError``.
        """
        try:
            mode = path.stat().st_mode
        except (FileNotFoundError, NotADirectoryError):
            return False
        return stat.S_ISREG(mode)

    def read(self, path: Path) -> bytes:
        data = path.read_bytes()
        logger.debug("cache_store read path=%s bytes=%d", path, len(data))
        return data

    def write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("cache_store write path=%s bytes=%d", path, len(data))

    def delete(self, path: Path) -> None:
        path.unlink()
        logger.info("cache_store delete path=%s", path)
