"""
ingestion/index.py — Directory index pipeline and the ``alf-index`` CLI.

Steps:
    1. List the allow-listed audio files of one directory (sorted by name).
    2. Load that directory's existing cache.
    3. Select files with no cached record (or every file with ``force``).
    4. Extract features on a fixed-size thread pool; results are merged into
       the record map on the calling thread only.
    5. Rewrite the whole cache atomically, in listing order, dropping records
       for files that no longer exist.

Usage::

    alf-index ~/samples/drums
    alf-index ~/samples/drums --force -v
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from core.audio.types import AudioRecord
from core.cache import ordered_records
from core.config import is_audio_name
from core.errors import AlfError, DirectoryReadError
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.metrics import record_file_indexed, record_index_run, write_metrics
from infrastructure.settings import load_config, metrics_file
from ingestion.cache_store import DirectoryCacheStore
from ingestion.external import build_tools
from ingestion.extractor import FeatureExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexResult:
    """Outcome of one index run."""

    total: int
    """Audio files found in the directory."""

    indexed: int
    """Files run through the extractor this time."""

    cache_file: Path | None
    """Cache written, or None when nothing was written."""


def list_audio_files(directory: str | Path) -> list[str]:
    """Names of the audio files directly inside *directory*, sorted.

    Raises:
        DirectoryReadError: If the directory cannot be listed.
    """
    try:
        with os.scandir(directory) as it:
            names = [
                entry.name
                for entry in it
                if not entry.is_dir() and is_audio_name(entry.name)
            ]
    except OSError as exc:
        raise DirectoryReadError(str(directory), exc.strerror or str(exc)) from exc
    return sorted(names)


def run_index(
    directory: str | Path,
    *,
    force: bool = False,
    extractor: FeatureExtractor,
    store: DirectoryCacheStore,
    workers: int = 4,
    progress: Callable[[str], None] = print,
) -> IndexResult:
    """
    Bring *directory*'s cache up to date.

    Args:
        directory: Directory to index (not recursive).
        force: Re-extract every file, not just uncached ones.
        extractor: Per-file feature extractor.
        store: Cache persistence.
        workers: Thread pool size.
        progress: Sink for user-facing progress lines.

    Returns:
        An ``IndexResult``.

    Raises:
        DirectoryReadError: If the directory cannot be listed.
        CacheWriteError: If the merged cache cannot be written.
    """
    names = list_audio_files(directory)
    if not names:
        progress("no audio files")
        return IndexResult(total=0, indexed=0, cache_file=None)

    records: dict[str, AudioRecord] = store.load(directory)
    selected = names if force else [n for n in names if n not in records]

    if not selected:
        progress(f"cache up to date ({len(names)} files)")
        return IndexResult(total=len(names), indexed=0, cache_file=None)

    progress(f"indexing {len(selected)}/{len(names)} files...")
    logger.info("Indexing %d file(s) in %s with %d worker(s)", len(selected), directory, workers)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(extractor.extract, os.path.join(directory, name)): name
            for name in selected
        }
        for future in as_completed(futures):
            name = futures[future]
            record = future.result()
            records[name] = record
            record_file_indexed()
            progress(f"  {name}")

    merged = ordered_records(records, names)
    cache_file = store.save(directory, merged)
    progress(f"done. cached {len(merged)} files -> {cache_file}")
    return IndexResult(total=len(names), indexed=len(selected), cache_file=cache_file)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="alf-index",
        description="Extract and cache audio metadata for one directory.",
    )
    parser.add_argument("directory", help="Directory to index (not recursive).")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-index every file, not only files missing from the cache.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(resolve_level(args.verbose))

    config = load_config()
    decoder, probe, analyzer = build_tools(config)
    extractor = FeatureExtractor(
        decoder=decoder,
        probe=probe,
        analyzer=analyzer,
        spark_width=config.index_spark_width,
    )
    store = DirectoryCacheStore(config.cache_root)

    try:
        run_index(
            args.directory,
            force=args.force,
            extractor=extractor,
            store=store,
            workers=config.workers,
        )
    except AlfError as exc:
        record_index_run("error")
        print(f"alf-index: {exc}", file=sys.stderr)
        return 1
    else:
        record_index_run("ok")
    finally:
        target = metrics_file()
        if target is not None:
            write_metrics(target)
    return 0


if __name__ == "__main__":
    sys.exit(main())
