"""
core/listing.py — Column layout for directory listings and browser info.

Two consumers:
    alf-list   one row per file: sparkline, BPM, note, duration, size, name
    alf-meta   lf ``addcustominfo`` commands shown next to each filename

plus the directory tier of the waveform preview (``aw -d``), whose sparkline
width is derived from the terminal width.

Pure module: entries in, strings out. Entries are built by the I/O layer
(preview/), which decides whether a sparkline comes from the cache or from
a live decode.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.audio.analysis import hz_to_note
from core.audio.render import format_duration, format_size

SORT_KEYS: tuple[str, ...] = ("name", "bpm", "key", "dur", "size")


@dataclass(frozen=True)
class ListingEntry:
    """One audio file as shown in a listing."""

    name: str
    sparkline: str
    bpm: int | None = None
    pitch_hz: float | None = None
    seconds: float | None = None
    size: int = 0

    @property
    def note(self) -> str:
        """Note name of the mean pitch, or ``''``."""
        return hz_to_note(self.pitch_hz)


# ---------------------------------------------------------------------------
# alf-list
# ---------------------------------------------------------------------------

_SORTERS: dict[str, Callable[[ListingEntry], object]] = {
    "name": lambda e: e.name,
    "bpm": lambda e: e.bpm or 0,
    "key": lambda e: e.pitch_hz or 0.0,
    "dur": lambda e: e.seconds or 0.0,
    "size": lambda e: e.size,
}


def sort_entries(entries: Sequence[ListingEntry], by: str = "name") -> list[ListingEntry]:
    """Stable sort by one of ``SORT_KEYS``. Missing values sort as 0.

    Raises:
        ValueError: If *by* is not a known sort key.
    """
    try:
        key = _SORTERS[by]
    except KeyError:
        raise ValueError(f"Unknown sort key {by!r}, valid options: {list(SORT_KEYS)}") from None
    return sorted(entries, key=key)  # type: ignore[arg-type]


def format_listing_row(entry: ListingEntry) -> str:
    """``spark  bpm  note  duration  size  name`` with fixed column widths."""
    bpm = f"{entry.bpm:>3}" if entry.bpm else "   "
    note = f"{entry.note:<3}"
    dur = f"{format_duration(entry.seconds) if entry.seconds is not None else '':>7}"
    size = f"{format_size(entry.size):>5}"
    return f"{entry.sparkline}  {bpm}  {note}  {dur}  {size}  {entry.name}"


# ---------------------------------------------------------------------------
# aw -d (directory preview)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreviewLayout:
    """Column budget for a directory preview of a given terminal width."""

    spark_width: int
    name_width: int


def preview_layout(width: int, spark_min: int = 16, spark_max: int = 30) -> PreviewLayout:
    """Split *width* into sparkline and name columns.

    The sparkline gets ``width - 40`` clamped into ``[spark_min, spark_max]``;
    the name column gets what is left after 16 columns of metadata, and never
    less than one column.
    """
    spark_width = min(max(width - 40, spark_min), spark_max)
    name_width = max(width - spark_width - 16, 1)
    return PreviewLayout(spark_width=spark_width, name_width=name_width)


def format_preview_row(entry: ListingEntry, name_width: int) -> str:
    """One directory-preview line; names longer than the column are hard-cut."""
    name = entry.name[:name_width]
    dur = format_duration(entry.seconds) if entry.seconds is not None else ""
    bpm = f" {entry.bpm:>3}bpm" if entry.bpm else ""
    return f"  {name:<{name_width}} {entry.sparkline} {dur:>7}{bpm}"


def format_preview(rows: Sequence[str], total: int) -> str:
    """Join preview rows and append ``... +N more`` when files were capped."""
    text = "\n".join(rows)
    if total > len(rows):
        text += f"\n  ... +{total - len(rows)} more"
    return text


# ---------------------------------------------------------------------------
# alf-meta (lf custom info)
# ---------------------------------------------------------------------------


def escape_lf(text: str) -> str:
    """Escape backslashes and quotes for an lf command argument."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")


def custom_info(sparkline: str | None, bpm: int | None, pitch_hz: float | None) -> str:
    """``'<spark> <bpm> <note>'`` summary shown beside a filename."""
    parts: list[str] = []
    if sparkline:
        parts.append(sparkline)
    parts.append(f"{bpm:>3}" if bpm else "   ")
    note = hz_to_note(pitch_hz)
    if note:
        parts.append(f"{note:<3}")
    return " ".join(parts)


def custominfo_command(path: str, info: str) -> str:
    """``addcustominfo "<path>" "<info>"`` for lf."""
    return f'addcustominfo "{escape_lf(path)}" "{escape_lf(info)}"'
