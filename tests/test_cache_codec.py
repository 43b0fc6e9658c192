"""Tests for core/cache.py — DirectoryCache text codec and key derivation."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from core.audio.types import AudioRecord
from core.cache import (
    cache_key,
    cache_path,
    decode_records,
    encode_records,
    ordered_records,
    record_to_fields,
)

FULL = AudioRecord(
    name="kick.wav",
    bpm=120,
    pitch_hz=440.0,
    duration="00:00:01.50",
    channels=2,
    sample_rate=44100,
    bit_depth=24,
    sparkline="▁▃▅█",
)


class TestEncode:
    """Test record serialisation to cache text."""

    def test_field_order(self) -> None:
        """Fields are written in fixed positional order."""
        line = encode_records([FULL])
        assert line == "kick.wav\t120\t440\t00:00:01.50\t2\t44100\t24\t▁▃▅█\n"

    def test_missing_values_are_empty_not_zero(self) -> None:
        fields = record_to_fields(AudioRecord(name="x.wav"))
        assert fields == ["x.wav", "", "", "", "", "", "", ""]

    def test_fractional_pitch_keeps_precision(self) -> None:
        fields = record_to_fields(AudioRecord(name="x.wav", pitch_hz=261.63))
        assert fields[2] == "261.63"

    def test_preserves_given_order(self) -> None:
        a = AudioRecord(name="a.wav")
        b = AudioRecord(name="b.wav")
        text = encode_records([b, a])
        assert text.splitlines()[0].startswith("b.wav")


class TestDecode:
    """Test cache text parsing and malformed-line handling."""

    def test_full_record(self) -> None:
        records = decode_records(encode_records([FULL]))
        assert records == {"kick.wav": FULL}

    def test_empty_fields_decode_as_none(self) -> None:
        records = decode_records("x.wav\t\t\t\t\t\t\t\n")
        rec = records["x.wav"]
        assert rec.bpm is None
        assert rec.pitch_hz is None
        assert rec.duration is None
        assert rec.sparkline is None

    def test_legacy_seven_field_line(self) -> None:
        """A line written before sparklines existed has no sparkline."""
        records = decode_records("old.wav\t90\t110\t00:00:02.00\t1\t48000\t16\n")
        rec = records["old.wav"]
        assert rec.bpm == 90
        assert rec.sample_rate == 48000
        assert rec.sparkline is None

    def test_short_lines_skipped(self) -> None:
        text = "short.wav\t1\t2\nok.wav\t\t\t\t\t\t\t\n"
        assert list(decode_records(text)) == ["ok.wav"]

    def test_unparseable_numbers_become_none(self) -> None:
        records = decode_records("x.wav\tfast\thigh\t\tstereo\t\t\t\n")
        rec = records["x.wav"]
        assert rec.bpm is None
        assert rec.pitch_hz is None
        assert rec.channels is None

    def test_later_duplicate_wins(self) -> None:
        text = "x.wav\t100\t\t\t\t\t\t\nx.wav\t120\t\t\t\t\t\t\n"
        assert decode_records(text)["x.wav"].bpm == 120

    def test_empty_text(self) -> None:
        assert decode_records("") == {}

    def test_quoted_name_round_trips(self) -> None:
        rec = AudioRecord(name='say "hi".wav', bpm=100)
        assert decode_records(encode_records([rec]))[rec.name] == rec


class TestKeys:
    """Test cache key derivation from directory paths."""

    def test_key_is_16_hex_chars_of_sha256(self, tmp_path: Path) -> None:
        expected = hashlib.sha256(str(tmp_path.resolve()).encode()).digest()[:8].hex()
        assert cache_key(tmp_path) == expected
        assert len(cache_key(tmp_path)) == 16

    def test_spellings_of_same_directory_share_a_key(self, tmp_path: Path) -> None:
        sub = tmp_path / "sub"
        sub.mkdir()
        assert cache_key(sub) == cache_key(str(sub) + os.sep)
        assert cache_key(sub) == cache_key(tmp_path / "sub" / ".." / "sub")

    def test_symlink_resolves_to_target(self, tmp_path: Path) -> None:
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real)
        assert cache_key(link) == cache_key(real)

    def test_cache_path(self, tmp_path: Path) -> None:
        path = cache_path(tmp_path / "alf", tmp_path)
        assert path.parent == tmp_path / "alf"
        assert path.name == f"{cache_key(tmp_path)}.tsv"


class TestOrderedRecords:
    """Test merging records into listing order."""

    def test_listing_order_and_dropping(self) -> None:
        records = {n: AudioRecord(name=n) for n in ("a.wav", "b.wav", "gone.wav")}
        result = ordered_records(records, ["b.wav", "a.wav", "new.wav"])
        assert [r.name for r in result] == ["b.wav", "a.wav"]
