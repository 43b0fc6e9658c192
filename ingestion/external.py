"""
ingestion/external.py — Subprocess boundary for sox and aubio.

This is the ONLY module that spawns analysis tools. Everything downstream
(``core/audio/analysis.py``, ``core/audio/peaks.py``) takes already-captured
text or sample arrays — never processes.

Tools:
    sox --i <file>                                    stream info report
    sox <file> -c 1 -r 8000 -b 16 -e signed-integer -t raw -   mono PCM
    aubiotrack <file>                                 beat timestamps
    aubiopitch -p yinfft <file>                       time/frequency pairs

Error handling:
    Any failure — binary missing, nonzero exit, timeout — raises
    ``ToolError``. Callers decide whether that is fatal; the feature
    extractor degrades the one affected field.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

import numpy as np

from core.audio.analysis import parse_beats, parse_pitch_track, parse_stream_info
from core.audio.peaks import decode_pcm16
from core.audio.types import StreamInfo
from core.config import AlfConfig
from core.errors import ToolError
from infrastructure.metrics import LatencyTimer, record_tool_call

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT: float = 120.0


def run_tool(args: list[str], *, timeout: float = _DEFAULT_TIMEOUT) -> bytes:
    """Run an external tool and return its stdout.

    Args:
        args: Command line; ``args[0]`` is the binary.
        timeout: Seconds before the process is killed.

    Returns:
        Raw stdout bytes.

    Raises:
        ToolError: Binary missing, not executable, nonzero exit, or timeout.
    """
    tool = args[0]
    ok = False
    with LatencyTimer() as t:
        try:
            proc = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError:
            reason = "not installed"
        except PermissionError:
            reason = "not executable"
        except subprocess.TimeoutExpired:
            reason = f"timed out after {timeout:.0f}s"
        else:
            if proc.returncode == 0:
                ok = True
                reason = ""
            else:
                stderr = proc.stderr.decode("utf-8", errors="replace").strip()
                reason = f"exit {proc.returncode}" + (f": {stderr[:200]}" if stderr else "")

    record_tool_call(tool, latency_seconds=t.elapsed, ok=ok)
    if not ok:
        logger.debug("%s failed (%s)", " ".join(args), reason)
        raise ToolError(tool, reason)
    return proc.stdout


# ---------------------------------------------------------------------------
# sox
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SoxDecoder:
    """Decoder backed by ``sox``: mono, fixed rate, 16-bit signed little-endian."""

    binary: str = "sox"
    rate: int = 8000
    timeout: float = _DEFAULT_TIMEOUT

    def decode(self, path: str) -> np.ndarray:
        raw = run_tool(
            [
                self.binary,
                path,
                "-c",
                "1",
                "-r",
                str(self.rate),
                "-b",
                "16",
                "-e",
                "signed-integer",
                "-t",
                "raw",
                "-",
            ],
            timeout=self.timeout,
        )
        if len(raw) < 2:
            raise ToolError(self.binary, "no audio data")
        return decode_pcm16(raw)


@dataclass(frozen=True)
class SoxInfoProbe:
    """Stream info from ``sox --i``."""

    binary: str = "sox"
    timeout: float = _DEFAULT_TIMEOUT

    def probe(self, path: str) -> StreamInfo:
        out = run_tool([self.binary, "--i", path], timeout=self.timeout)
        return parse_stream_info(out.decode("utf-8", errors="replace"))


# ---------------------------------------------------------------------------
# aubio
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AubioAnalyzer:
    """Beat tracking via ``aubiotrack``, pitch tracking via ``aubiopitch -p yinfft``."""

    beat_binary: str = "aubiotrack"
    pitch_binary: str = "aubiopitch"
    timeout: float = _DEFAULT_TIMEOUT

    def beats(self, path: str) -> list[float]:
        out = run_tool([self.beat_binary, path], timeout=self.timeout)
        return parse_beats(out.decode("utf-8", errors="replace"))

    def pitch_track(self, path: str) -> list[float]:
        out = run_tool([self.pitch_binary, "-p", "yinfft", path], timeout=self.timeout)
        return parse_pitch_track(out.decode("utf-8", errors="replace"))


def build_tools(config: AlfConfig) -> tuple[SoxDecoder, SoxInfoProbe, AubioAnalyzer]:
    """Decoder, info probe and analyzer configured from *config*."""
    decoder = SoxDecoder(
        binary=config.sox_bin, rate=config.decode_rate, timeout=config.tool_timeout
    )
    probe = SoxInfoProbe(binary=config.sox_bin, timeout=config.tool_timeout)
    analyzer = AubioAnalyzer(
        beat_binary=config.beat_bin,
        pitch_binary=config.pitch_bin,
        timeout=config.tool_timeout,
    )
    return decoder, probe, analyzer
