"""
Collaborator protocols for the external audio tools.

Defines the narrow contracts the feature extractor and the waveform renderer
depend on. This module is pure — no subprocesses, no file access.
Concrete implementations (sox, aubio) live in ``ingestion/external.py``;
tests substitute in-memory fakes.

Every method raises ``core.errors.ToolError`` when the underlying tool is
unavailable or fails.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from core.audio.types import StreamInfo


@runtime_checkable
class Decoder(Protocol):
    """Decodes a file to mono 16-bit signed samples at a fixed low rate."""

    def decode(self, path: str) -> np.ndarray:
        """
        Decode *path* to samples.

        Returns:
            1-D ``int16`` array. May be empty for a zero-length file.
        """
        ...


@runtime_checkable
class InfoProbe(Protocol):
    """Reads basic stream properties without decoding."""

    def probe(self, path: str) -> StreamInfo: ...


@runtime_checkable
class Analyzer(Protocol):
    """Beat tracking and fundamental-frequency tracking."""

    def beats(self, path: str) -> list[float]:
        """Beat timestamps in seconds, ascending."""
        ...

    def pitch_track(self, path: str) -> list[float]:
        """Per-frame fundamental frequency estimates in Hz (0 = unvoiced)."""
        ...
