"""
core/audio/analysis.py — Pure interpretation of external analysis output.

The external tools (sox, aubiotrack, aubiopitch) print plain text. This
module turns that text into typed values and derives tempo, mean pitch and
note names from it. No subprocesses, no file access — everything here is
unit-testable with literal strings.

Tempo:
    BPM = 60 / average beat interval, where the average interval is the
    full span between the first and last beat divided by (count - 1).
    This is less sensitive to one irregular interval than averaging the
    per-pair differences. Fewer than two beats, or a non-positive
    interval, yields no tempo (None) rather than an error.

Pitch:
    Only frequencies strictly above 20 Hz are averaged; anything at or
    below is sub-audible or an unvoiced/invalid frame.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from core.audio.types import StreamInfo

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_PITCH_HZ: float = 20.0
"""Frequencies at or below this are discarded as sub-audible/invalid."""

_NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)


# ---------------------------------------------------------------------------
# Tempo
# ---------------------------------------------------------------------------


def parse_beats(output: str) -> list[float]:
    """Parse beat-tracker output: one timestamp (seconds) per line.

    Lines that are not a finite number are ignored.
    """
    beats: list[float] = []
    for line in output.splitlines():
        try:
            value = float(line.strip())
        except ValueError:
            continue
        if math.isfinite(value):
            beats.append(value)
    return beats


def bpm_from_beats(beats: Sequence[float]) -> int | None:
    """Estimate tempo from beat timestamps.

    Examples:
        [1.0, 1.5, 2.0, 2.5] → 120
        [1.0] → None

    Args:
        beats: Beat timestamps in seconds, ascending.

    Returns:
        Tempo rounded to the nearest integer BPM, or None if it cannot be
        estimated.
    """
    if len(beats) < 2:
        return None
    avg_interval = (beats[-1] - beats[0]) / (len(beats) - 1)
    if not math.isfinite(avg_interval) or avg_interval <= 0:
        return None
    return round(60.0 / avg_interval)


# ---------------------------------------------------------------------------
# Pitch
# ---------------------------------------------------------------------------


def parse_pitch_track(output: str) -> list[float]:
    """Parse pitch-tracker output of ``<time> <frequency>`` pairs.

    Returns the frequency column; malformed lines and non-finite values
    (``nan``, ``inf``) are skipped.
    """
    freqs: list[float] = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        try:
            value = float(fields[1])
        except ValueError:
            continue
        if math.isfinite(value):
            freqs.append(value)
    return freqs


def mean_pitch(freqs: Iterable[float]) -> float | None:
    """Average of the valid (> 20 Hz) frequencies, rounded to the nearest Hz.

    Returns:
        Mean frequency, or None if no valid frame exists.
    """
    valid = [f for f in freqs if math.isfinite(f) and f > MIN_PITCH_HZ]
    if not valid:
        return None
    return float(round(sum(valid) / len(valid)))


def hz_to_note(hz: float | None) -> str:
    """Map a frequency to scientific pitch notation.

    Formula: midi = 69 + 12 × log₂(hz / 440), rounded half away from zero.

    Examples:
        440.0 → 'A4'
        261.63 → 'C4'
        None, 0, 20 → ''

    Returns:
        Note name like ``'C#5'``, or ``''`` when the frequency is missing,
        at or below 20 Hz, or maps outside MIDI 0–127.
    """
    if hz is None or not math.isfinite(hz) or hz <= MIN_PITCH_HZ:
        return ""
    midi = math.floor(69.0 + 12.0 * math.log2(hz / 440.0) + 0.5)
    if midi < 0 or midi > 127:
        return ""
    return f"{_NOTE_NAMES[midi % 12]}{midi // 12 - 1}"


# ---------------------------------------------------------------------------
# Stream info
# ---------------------------------------------------------------------------


def _parse_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def parse_stream_info(output: str) -> StreamInfo:
    """Parse the decoder's ``key : value`` info report.

    Recognised keys (sox ``--i``)::

        Channels       : 2
        Sample Rate    : 44100
        Precision      : 16-bit
        Duration       : 00:00:10.07 = 444087 samples ~ 755.25 CDDA sectors

    Missing or unparseable fields stay None — never 0.
    """
    duration: str | None = None
    channels: int | None = None
    sample_rate: int | None = None
    bit_depth: int | None = None

    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key == "Duration":
            head, eq, _ = value.partition(" =")
            if eq and head:
                duration = head.strip()
        elif key == "Channels":
            channels = _parse_int(value)
        elif key == "Sample Rate":
            sample_rate = _parse_int(value)
        elif key == "Precision":
            bit_depth = _parse_int(value.removesuffix("-bit"))

    return StreamInfo(
        duration=duration,
        channels=channels,
        sample_rate=sample_rate,
        bit_depth=bit_depth,
    )
