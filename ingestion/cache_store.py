"""
ingestion/cache_store.py — DirectoryCache persistence.

Reads and writes the per-directory cache files produced by
``core.cache.encode_records``. Writes are full-file atomic rewrites: the new
content goes to a temporary file inside the cache root, which is then
``os.replace``-d over the old file, so a reader never sees a half-written
cache and an interrupted run leaves the previous cache intact.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from core.audio.types import AudioRecord
from core.cache import cache_path, decode_records, encode_records
from core.errors import CacheWriteError

logger = logging.getLogger(__name__)


class DirectoryCacheStore:
    """File-backed DirectoryCache storage rooted at *cache_root*."""

    def __init__(self, cache_root: str | Path) -> None:
        self.cache_root = Path(cache_root)

    def path_for(self, directory: str | Path) -> Path:
        return cache_path(self.cache_root, directory)

    def load(self, directory: str | Path) -> dict[str, AudioRecord]:
        """Records cached for *directory*; empty when there is no cache.

        An unreadable cache file is treated like a missing one.
        """
        path = self.path_for(directory)
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("Ignoring unreadable cache %s: %s", path, exc)
            return {}
        return decode_records(text)

    def save(self, directory: str | Path, records: Iterable[AudioRecord]) -> Path:
        """Atomically replace *directory*'s cache with *records*.

        Returns:
            The cache file path.

        Raises:
            CacheWriteError: If the cache root or file cannot be written.
        """
        path = self.path_for(directory)
        payload = encode_records(records)
        tmp_name: str | None = None
        try:
            self.cache_root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".", suffix=".tmp", dir=self.cache_root
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            raise CacheWriteError(str(path), str(exc)) from exc
        logger.debug("Wrote cache %s", path)
        return path
