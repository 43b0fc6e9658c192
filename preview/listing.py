"""
preview/listing.py — ``alf-list``: sortable one-line-per-file directory listing.

Usage::

    alf-list ~/samples/drums
    alf-list --sort bpm --spark 30 ~/samples/drums
"""

from __future__ import annotations

import argparse
import os
import sys

from core.errors import DirectoryReadError
from core.listing import SORT_KEYS, format_listing_row, sort_entries
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.settings import load_config
from ingestion.cache_store import DirectoryCacheStore
from ingestion.external import build_tools
from ingestion.index import list_audio_files
from preview.waveform import WaveformRenderer


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="alf-list", description="List audio files with sparkline, BPM, key and duration."
    )
    parser.add_argument("directory")
    parser.add_argument(
        "--sort",
        choices=SORT_KEYS,
        default="name",
        help="Sort order (default: name).",
    )
    parser.add_argument(
        "--spark", type=int, default=20, help="Sparkline width (default: 20)."
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(resolve_level(args.verbose))
    if args.spark <= 0:
        print("alf-list: --spark must be positive", file=sys.stderr)
        return 1

    directory = os.path.abspath(args.directory)
    try:
        names = list_audio_files(directory)
    except DirectoryReadError as exc:
        print(f"alf-list: {exc}", file=sys.stderr)
        return 1

    config = load_config()
    decoder, probe, _ = build_tools(config)
    renderer = WaveformRenderer(decoder, probe, DirectoryCacheStore(config.cache_root), config)

    entries = renderer.entries(directory, names, args.spark)
    for entry in sort_entries(entries, args.sort):
        print(format_listing_row(entry))
    return 0


if __name__ == "__main__":
    sys.exit(main())
