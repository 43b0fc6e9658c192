"""
core/audio/types.py — Frozen data types for indexed audio metadata.

All types are frozen dataclasses — immutable value objects that can be
safely passed between the extractor threads, the cache codec and the
renderers.

Design principles:
    - No I/O, no state, no side effects.
    - ``None`` means "not computed". A detected value is never encoded as 0,
      and 0/empty never stands in for a missing field.
    - ``StreamInfo.seconds`` is a computed property to avoid duplicate storage.
"""

from __future__ import annotations

from dataclasses import dataclass


def parse_duration(text: str | None) -> float | None:
    """Parse a sox duration (``HH:MM:SS.ss``) or a plain seconds value.

    Returns:
        Seconds as float, or None for empty/unparseable input.
    """
    if not text:
        return None
    parts = text.strip().split(":")
    try:
        if len(parts) == 3:
            hours, minutes, seconds = (float(p) for p in parts)
            return hours * 3600 + minutes * 60 + seconds
        if len(parts) == 1:
            return float(parts[0])
    except ValueError:
        return None
    return None


@dataclass(frozen=True)
class StreamInfo:
    """Basic stream properties reported by the decoder's info mode.

    Every field is optional: a field the decoder did not report, or reported
    in an unparseable form, stays None.
    """

    duration: str | None = None
    """Duration exactly as reported, e.g. ``'00:01:40.59'``."""

    channels: int | None = None
    sample_rate: int | None = None
    bit_depth: int | None = None

    @property
    def seconds(self) -> float | None:
        """Duration in seconds, or None if unknown."""
        return parse_duration(self.duration)

    @property
    def label(self) -> str:
        """Compact ``'24b 48000Hz 2ch'`` summary (missing parts left blank)."""
        return f"{_blank(self.bit_depth)}b {_blank(self.sample_rate)}Hz {_blank(self.channels)}ch"


@dataclass(frozen=True)
class AudioRecord:
    """One indexed file inside a DirectoryCache.

    Invariants:
        name is unique per cache and contains no tab or newline
        bpm > 0 when present
        pitch_hz > 20 when present
    """

    name: str
    """Filename (not a path). Unique key within a directory."""

    bpm: int | None = None
    """Tempo estimate in beats per minute."""

    pitch_hz: float | None = None
    """Mean fundamental frequency estimate in Hz."""

    duration: str | None = None
    """Duration as reported by the decoder (``HH:MM:SS.ss``)."""

    channels: int | None = None
    sample_rate: int | None = None
    bit_depth: int | None = None

    sparkline: str | None = None
    """Glyph thumbnail at the indexing width."""

    @property
    def stream_info(self) -> StreamInfo:
        """The stream fields of this record as a StreamInfo."""
        return StreamInfo(
            duration=self.duration,
            channels=self.channels,
            sample_rate=self.sample_rate,
            bit_depth=self.bit_depth,
        )

    @property
    def seconds(self) -> float | None:
        return parse_duration(self.duration)


def _blank(value: int | None) -> str:
    return "" if value is None else str(value)
