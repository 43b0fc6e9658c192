"""
preview/waveform.py — Waveform previews for the file browser (``aw``).

Three fidelities:
    full        header line + multi-row plot, optionally position-highlighted
    sparkline   one glyph line with duration and stream info
    directory   one row per audio file: name, sparkline, duration, BPM

Cached records (written by ``alf-index``) supply BPM/pitch tags and, when the
requested width matches the indexed width, the sparkline itself. Everything
else is decoded live through the ``Decoder`` / ``InfoProbe`` collaborators.

Usage::

    aw -w 80 -H 5 kick.wav
    aw -1 -w 30 kick.wav
    aw -d ~/samples/drums
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from core.audio.peaks import bucket_peaks
from core.audio.protocols import Decoder, InfoProbe
from core.audio.render import format_duration, render_plot, silent_sparkline
from core.audio.types import AudioRecord, StreamInfo
from core.config import AlfConfig
from core.errors import DirectoryReadError, ToolError
from core.listing import (
    ListingEntry,
    format_preview,
    format_preview_row,
    preview_layout,
)
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.settings import load_config
from ingestion.cache_store import DirectoryCacheStore
from ingestion.external import build_tools
from ingestion.extractor import sparkline_for
from ingestion.index import list_audio_files
from playback.session_store import FileSessionStore

logger = logging.getLogger(__name__)

NO_AUDIO = "  [no audio data]"
DIR_ERROR = "  [error reading dir]"
NO_FILES = "  [no audio files]"


def _dur(seconds: float | None) -> str:
    return format_duration(seconds) if seconds is not None else ""


def _pitch_tag(pitch_hz: float) -> str:
    return f"{pitch_hz:.0f}"


class WaveformRenderer:
    """Renders previews of audio files and directories.

    Args:
        decoder: Raw sample source.
        probe: Stream info source.
        store: Read access to the directory caches.
        config: Listing layout limits.
    """

    def __init__(
        self,
        decoder: Decoder,
        probe: InfoProbe,
        store: DirectoryCacheStore,
        config: AlfConfig,
    ) -> None:
        self.decoder = decoder
        self.probe = probe
        self.store = store
        self.config = config

    # -- lookups ---------------------------------------------------------

    def cached_record(self, path: str) -> AudioRecord | None:
        """The cache record for *path*, if its directory has been indexed."""
        directory, name = os.path.split(os.path.abspath(path))
        return self.store.load(directory).get(name)

    def stream_info(self, path: str, record: AudioRecord | None = None) -> StreamInfo:
        """Live stream info, falling back to the cached record, then blanks."""
        try:
            return self.probe.probe(path)
        except ToolError as exc:
            logger.debug("No stream info for %s: %s", path, exc)
        if record is not None:
            return record.stream_info
        return StreamInfo()

    # -- fidelities ------------------------------------------------------

    def sparkline(
        self, path: str, width: int, record: AudioRecord | None = None
    ) -> str:
        """Glyph line of exactly *width* characters.

        A cached sparkline is reused only when its length equals *width*.
        An undecodable file yields the lowest glyph repeated.
        """
        if record is not None and record.sparkline and len(record.sparkline) == width:
            return record.sparkline
        try:
            return sparkline_for(self.decoder, path, width)
        except ToolError as exc:
            logger.debug("Cannot decode %s: %s", path, exc)
            return silent_sparkline(width)

    def one_line(self, path: str, width: int) -> str:
        """``<spark>  <duration>  <bits>b <rate>Hz <ch>ch``."""
        record = self.cached_record(path)
        spark = self.sparkline(path, width, record)
        info = self.stream_info(path, record)
        return f"{spark}  {_dur(info.seconds)}  {info.label}"

    def full(
        self,
        path: str,
        width: int = 80,
        height: int = 5,
        position: float | None = None,
    ) -> str:
        """Header line followed by a *height*-row plot.

        With a *position*, the header shows ``[now / total]`` and the played
        part of the plot is dimmed.
        """
        try:
            samples = self.decoder.decode(path)
        except ToolError as exc:
            logger.debug("Cannot decode %s: %s", path, exc)
            return NO_AUDIO

        record = self.cached_record(path)
        info = self.stream_info(path, record)
        total = info.seconds

        tags = ""
        if record is not None and record.bpm is not None:
            tags += f"  {record.bpm}bpm"
        if record is not None and record.pitch_hz is not None:
            tags += f"  ~{_pitch_tag(record.pitch_hz)}Hz"

        if position is not None and position >= 0:
            now = total * position if total is not None else None
            clock = f"[{_dur(now)} / {_dur(total)}]"
        else:
            clock = f"[{_dur(total)}]"

        header = f"  {os.path.basename(path)}  {info.label}  {clock}{tags}"
        plot = render_plot(bucket_peaks(samples, width), height, position)
        return f"{header}\n{plot}"

    # -- directories -----------------------------------------------------

    def entries(
        self,
        directory: str,
        names: Sequence[str],
        spark_width: int,
        records: Mapping[str, AudioRecord] | None = None,
    ) -> list[ListingEntry]:
        """Listing entries for *names* inside *directory*, in that order."""
        if records is None:
            records = self.store.load(directory)
        result: list[ListingEntry] = []
        for name in names:
            path = os.path.join(directory, name)
            record = records.get(name)
            seconds = record.seconds if record is not None else None
            if seconds is None:
                seconds = self.stream_info(path, record).seconds
            try:
                size = os.stat(path).st_size
            except OSError:
                size = 0
            result.append(
                ListingEntry(
                    name=name,
                    sparkline=self.sparkline(path, spark_width, record),
                    bpm=record.bpm if record is not None else None,
                    pitch_hz=record.pitch_hz if record is not None else None,
                    seconds=seconds,
                    size=size,
                )
            )
        return result

    def directory(self, path: str, width: int = 80, max_files: int | None = None) -> str:
        """Compact per-file overview of an audio directory."""
        limit = max_files if max_files is not None else self.config.max_listing_files
        try:
            names = list_audio_files(path)
        except DirectoryReadError as exc:
            logger.debug("%s", exc)
            return DIR_ERROR
        if not names:
            return NO_FILES

        layout = preview_layout(
            width, self.config.listing_spark_min, self.config.listing_spark_max
        )
        shown = self.entries(path, names[:limit], layout.spark_width)
        rows = [format_preview_row(entry, layout.name_width) for entry in shown]
        return format_preview(rows, len(names))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def session_position(store: FileSessionStore, path: str) -> float | None:
    """Playback position of *path* if it is the file currently playing."""
    session = store.load()
    if session is None:
        return None
    if os.path.realpath(session.file_path) != os.path.realpath(path):
        return None
    return session.position


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="aw", description="Terminal audio waveform preview.")
    parser.add_argument("path", help="Audio file or directory.")
    parser.add_argument("-w", dest="width", type=int, default=80, help="Width in columns.")
    parser.add_argument("-H", dest="height", type=int, default=5, help="Plot height in rows.")
    parser.add_argument(
        "-1", dest="one_line", action="store_true", help="Single-line sparkline mode."
    )
    parser.add_argument(
        "-d", dest="directory", action="store_true", help="Directory listing mode."
    )
    parser.add_argument(
        "-p",
        dest="position",
        type=float,
        default=None,
        help="Playback position 0.0-1.0 (default: follow the playing session).",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(resolve_level(args.verbose))

    path = Path(args.path)
    if not path.exists():
        print(f"aw: {args.path}: no such file or directory", file=sys.stderr)
        return 1
    if args.width <= 0 or args.height <= 0:
        print("aw: width and height must be positive", file=sys.stderr)
        return 1

    config = load_config()
    decoder, probe, _ = build_tools(config)
    renderer = WaveformRenderer(decoder, probe, DirectoryCacheStore(config.cache_root), config)

    if args.directory or path.is_dir():
        print(renderer.directory(str(path), args.width))
    elif args.one_line:
        print(renderer.one_line(str(path), args.width))
    else:
        position = args.position
        if position is None:
            position = session_position(FileSessionStore(config.state_dir), str(path))
        print(renderer.full(str(path), args.width, args.height, position))
    return 0


if __name__ == "__main__":
    sys.exit(main())
