"""
core/audio/peaks.py — Peak bucketing shared by every waveform render mode.

Given N mono samples and a target width W, the range ``[0, N)`` is split into
W contiguous buckets whose boundaries are ``i * N // W`` (integer
truncation). Neighbouring buckets may therefore differ by one sample; the
boundaries are reproduced exactly so that an indexed sparkline and a live
render at the same width are identical.

A bucket's value is the maximum absolute sample magnitude within it. Buckets
with no samples (W > N) are 0.
"""

from __future__ import annotations

import numpy as np


def decode_pcm16(raw: bytes) -> np.ndarray:
    """Interpret raw little-endian signed 16-bit PCM as an int16 array.

    A trailing odd byte is ignored.
    """
    usable = len(raw) - (len(raw) % 2)
    return np.frombuffer(raw[:usable], dtype="<i2").astype(np.int16)


def bucket_boundaries(n_samples: int, width: int) -> list[tuple[int, int]]:
    """Half-open sample ranges for each of *width* buckets."""
    return [(i * n_samples // width, (i + 1) * n_samples // width) for i in range(width)]


def bucket_peaks(samples: np.ndarray, width: int) -> np.ndarray:
    """Reduce *samples* to *width* peak columns.

    Args:
        samples: 1-D integer sample array (any length, including 0).
        width: Number of output columns. Must be > 0.

    Returns:
        ``int32`` array of length *width*. Magnitudes are computed in 32-bit
        so that -32768 maps to 32768 instead of overflowing.

    Raises:
        ValueError: If width is not positive.
    """
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")

    magnitudes = np.abs(np.asarray(samples, dtype=np.int32))
    peaks = np.zeros(width, dtype=np.int32)
    for i, (start, end) in enumerate(bucket_boundaries(len(magnitudes), width)):
        if end > start:
            peaks[i] = magnitudes[start:end].max()
    return peaks
