"""
Configuration dataclass for the alf tool set.

The immutable config object decouples tunables (widths, pool size, poll
intervals, external binary names) from function signatures so the indexer,
the renderer and the playback daemon share one source of truth.

Pure module: no environment reads here. ``infrastructure.settings.load_config``
builds an ``AlfConfig`` from ``ALF_*`` environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# Recognised audio extensions (case-insensitive suffix match).
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".wav",
        ".mp3",
        ".flac",
        ".ogg",
        ".aif",
        ".aiff",
        ".opus",
        ".m4a",
        ".wma",
        ".ape",
        ".wv",
        ".alac",
    }
)


def is_audio_name(name: str) -> bool:
    """True if *name* ends with an allow-listed audio extension.

    The extension runs from the last dot, so a bare ``.wav`` counts too.
    """
    _, dot, ext = name.rpartition(".")
    return bool(dot) and f".{ext.lower()}" in AUDIO_EXTENSIONS


@dataclass(frozen=True)
class AlfConfig:
    """
    Configuration for indexing, rendering and playback.

    Attributes:
        cache_root: Directory holding one ``<key>.tsv`` per indexed directory.
        state_dir: Ephemeral directory holding the playback session files.
        index_spark_width: Glyph count of the sparkline stored at index time.
        workers: Concurrent extractions during an index run. Each extraction
            spawns several external processes, so this bounds process count.
        decode_rate: Sample rate (Hz) the decoder resamples to for peaks.
        tool_timeout: Seconds before an external analysis tool is abandoned.
        ipc_timeout: Seconds per player control-channel call.
        poll_interval: Seconds between controller progress ticks.
        socket_wait_retries: Checks for the player socket at startup.
        socket_wait_interval: Seconds between socket checks.
        max_ipc_misses: Consecutive unanswered ticks before the controller
            treats the player as gone.
        listing_spark_min: Lower clamp for directory-listing sparklines.
        listing_spark_max: Upper clamp for directory-listing sparklines.
        max_listing_files: Files rendered in a directory preview.
    """

    cache_root: Path
    state_dir: Path = Path("/tmp/alf")
    index_spark_width: int = 10
    workers: int = 4
    decode_rate: int = 8000
    tool_timeout: float = 120.0
    ipc_timeout: float = 0.5
    poll_interval: float = 0.3
    socket_wait_retries: int = 30
    socket_wait_interval: float = 0.05
    max_ipc_misses: int = 10
    listing_spark_min: int = 16
    listing_spark_max: int = 30
    max_listing_files: int = 50
    sox_bin: str = "sox"
    beat_bin: str = "aubiotrack"
    pitch_bin: str = "aubiopitch"
    player_bin: str = "mpv"
    browser_bin: str = "lf"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.index_spark_width <= 0:
            raise ValueError(
                f"index_spark_width must be positive, got {self.index_spark_width}"
            )
        if self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.decode_rate <= 0:
            raise ValueError(f"decode_rate must be positive, got {self.decode_rate}")
        for name in ("tool_timeout", "ipc_timeout", "poll_interval", "socket_wait_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.socket_wait_retries < 0:
            raise ValueError(
                f"socket_wait_retries must be non-negative, got {self.socket_wait_retries}"
            )
        if self.max_ipc_misses <= 0:
            raise ValueError(f"max_ipc_misses must be positive, got {self.max_ipc_misses}")
        if not 0 < self.listing_spark_min <= self.listing_spark_max:
            raise ValueError(
                f"listing spark range ({self.listing_spark_min}, "
                f"{self.listing_spark_max}) must satisfy 0 < min <= max"
            )
        if self.max_listing_files <= 0:
            raise ValueError(
                f"max_listing_files must be positive, got {self.max_listing_files}"
            )

    @property
    def socket_path(self) -> Path:
        """Player IPC socket inside the state directory."""
        return self.state_dir / "mpv"
