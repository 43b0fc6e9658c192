"""
core/audio — Pure audio feature math.

Turns already-captured tool output and PCM samples into structured values.
No subprocesses here: sox and aubio are driven by ingestion/external.py.

Public API:
    Types:      AudioRecord, StreamInfo
    Protocols:  Decoder, InfoProbe, Analyzer
    Peaks:      bucket_peaks
    Render:     render_sparkline, render_plot
"""

from core.audio.peaks import bucket_peaks
from core.audio.protocols import Analyzer, Decoder, InfoProbe
from core.audio.render import render_plot, render_sparkline
from core.audio.types import AudioRecord, StreamInfo

__all__ = [
    "AudioRecord",
    "StreamInfo",
    "Decoder",
    "InfoProbe",
    "Analyzer",
    "bucket_peaks",
    "render_sparkline",
    "render_plot",
]
