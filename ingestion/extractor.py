"""
ingestion/extractor.py — Per-file feature extraction.

Wires the external-tool collaborators to the pure interpretation functions
and produces one ``AudioRecord`` per file. Never touches shared state: the
extractor is safe to call from several worker threads at once.

Failure policy:
    Each field is computed independently. A ``ToolError`` from one tool
    leaves that field None and never prevents the others, never aborts the
    batch.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from core.audio.analysis import bpm_from_beats, mean_pitch
from core.audio.peaks import bucket_peaks
from core.audio.protocols import Analyzer, Decoder, InfoProbe
from core.audio.render import render_sparkline
from core.audio.types import AudioRecord, StreamInfo
from core.errors import ToolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sparkline_for(decoder: Decoder, path: str, width: int) -> str:
    """Decode *path* and render its sparkline at *width*.

    Shared by indexing and live rendering so both produce identical glyphs
    for the same width.

    Raises:
        ToolError: If the file cannot be decoded.
    """
    return render_sparkline(bucket_peaks(decoder.decode(path), width))


@dataclass(frozen=True)
class FeatureExtractor:
    """Computes an AudioRecord for one file from external analysis tools.

    Usage::

        extractor = FeatureExtractor(decoder, probe, analyzer, spark_width=10)
        record = extractor.extract("/samples/kick.wav")
    """

    decoder: Decoder
    probe: InfoProbe
    analyzer: Analyzer
    spark_width: int = 10

    def _degrade(self, label: str, path: str, fn: Callable[[], T], fallback: T) -> T:
        """Run *fn*; on ToolError log and return *fallback*."""
        try:
            return fn()
        except ToolError as exc:
            logger.debug("%s unavailable for %s: %s", label, path, exc)
            return fallback

    def extract(self, path: str) -> AudioRecord:
        """Analyse *path* and return its record (name = basename)."""
        info = self._degrade("stream info", path, lambda: self.probe.probe(path), StreamInfo())
        bpm = self._degrade(
            "tempo", path, lambda: bpm_from_beats(self.analyzer.beats(path)), None
        )
        pitch = self._degrade(
            "pitch", path, lambda: mean_pitch(self.analyzer.pitch_track(path)), None
        )
        spark = self._degrade(
            "sparkline",
            path,
            lambda: sparkline_for(self.decoder, path, self.spark_width),
            None,
        )
        return AudioRecord(
            name=os.path.basename(path),
            bpm=bpm,
            pitch_hz=pitch,
            duration=info.duration,
            channels=info.channels,
            sample_rate=info.sample_rate,
            bit_depth=info.bit_depth,
            sparkline=spark,
        )
