"""
core/cache.py — DirectoryCache codec and key derivation.

On-disk format: tab-separated text, one record per line, fields in fixed
positional order::

    name  bpm  pitch_hz  duration  channels  sample_rate  bit_depth  sparkline

Missing values are empty fields. Decoding is tolerant:
    - a line with fewer than ``MIN_FIELDS`` fields is skipped;
    - a legacy 7-field line (no sparkline) decodes with sparkline None;
    - a numeric field that does not parse decodes as None.

Key derivation: SHA-256 of the canonical absolute directory path, truncated
to ``KEY_BYTES`` bytes of hex. Addressing is therefore stable regardless of
the caller's working directory and free of path-escaping problems.

Pure module except for ``canonical_dir`` which consults the filesystem to
resolve symlinks.
"""

from __future__ import annotations

import csv
import hashlib
import io
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from core.audio.types import AudioRecord

MIN_FIELDS: int = 7
"""name + six metadata fields; the sparkline column is optional."""

KEY_BYTES: int = 8
"""Digest bytes kept in the cache filename (16 hex characters)."""

CACHE_SUFFIX: str = ".tsv"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def canonical_dir(directory: str | Path) -> str:
    """Absolute, symlink-resolved form of *directory*."""
    return str(Path(directory).expanduser().resolve())


def cache_key(directory: str | Path) -> str:
    """Hex key identifying *directory*'s cache file.

    Two spellings of the same directory (relative, trailing slash,
    symlinked) produce the same key.
    """
    digest = hashlib.sha256(canonical_dir(directory).encode("utf-8")).digest()
    return digest[:KEY_BYTES].hex()


def cache_path(cache_root: str | Path, directory: str | Path) -> Path:
    """Location of *directory*'s cache file under *cache_root*."""
    return Path(cache_root) / f"{cache_key(directory)}{CACHE_SUFFIX}"


# ---------------------------------------------------------------------------
# Field codecs
# ---------------------------------------------------------------------------


def _fmt_int(value: int | None) -> str:
    return "" if value is None else str(value)


def _fmt_float(value: float | None) -> str:
    if value is None:
        return ""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _opt_str(text: str) -> str | None:
    return text if text else None


def _opt_int(text: str) -> int | None:
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _opt_float(text: str) -> float | None:
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Record codec
# ---------------------------------------------------------------------------


def record_to_fields(record: AudioRecord) -> list[str]:
    """Positional field list for one record."""
    return [
        record.name,
        _fmt_int(record.bpm),
        _fmt_float(record.pitch_hz),
        record.duration or "",
        _fmt_int(record.channels),
        _fmt_int(record.sample_rate),
        _fmt_int(record.bit_depth),
        record.sparkline or "",
    ]


def record_from_fields(fields: list[str]) -> AudioRecord | None:
    """Decode one positional field list, or None if it is too short."""
    if len(fields) < MIN_FIELDS or not fields[0]:
        return None
    return AudioRecord(
        name=fields[0],
        bpm=_opt_int(fields[1]),
        pitch_hz=_opt_float(fields[2]),
        duration=_opt_str(fields[3]),
        channels=_opt_int(fields[4]),
        sample_rate=_opt_int(fields[5]),
        bit_depth=_opt_int(fields[6]),
        sparkline=_opt_str(fields[7]) if len(fields) > MIN_FIELDS else None,
    )


def encode_records(records: Iterable[AudioRecord]) -> str:
    """Serialise records, one line each, in the given order."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter="\t", lineterminator="\n")
    for record in records:
        writer.writerow(record_to_fields(record))
    return buf.getvalue()


def decode_records(text: str) -> dict[str, AudioRecord]:
    """Parse cache text into a ``name -> AudioRecord`` map.

    Short or malformed lines are skipped; a later line for the same name
    replaces an earlier one. Insertion order follows the file.
    """
    records: dict[str, AudioRecord] = {}
    reader = csv.reader(io.StringIO(text), delimiter="\t")
    try:
        for fields in reader:
            record = record_from_fields(fields)
            if record is not None:
                records[record.name] = record
    except csv.Error as exc:
        # An unterminated quote ends the readable part of the file.
        logger.warning("Cache truncated at line %d: %s", reader.line_num, exc)
    return records


def ordered_records(
    records: Mapping[str, AudioRecord], names: Iterable[str]
) -> list[AudioRecord]:
    """Records for *names*, in that order, skipping names with no record."""
    return [records[name] for name in names if name in records]
