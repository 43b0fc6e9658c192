"""
Shared fixtures for the test suite.

Fakes for every external collaborator (decoder, info probe, analyzer,
player control channel, player process, session store) so no test ever
spawns sox, aubio, mpv or lf.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from core.audio.types import StreamInfo
from core.config import AlfConfig
from core.errors import ToolError
from core.playback import PlaybackSession

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RAMP_SAMPLES: np.ndarray = np.array([0, 1000, -2000, 4000, -8000, 16000, -32000, 32000], dtype=np.int16)
"""Eight samples of rising magnitude."""

WAV_INFO = StreamInfo(duration="00:00:10.07", channels=2, sample_rate=44100, bit_depth=16)


# ---------------------------------------------------------------------------
# Analysis fakes
# ---------------------------------------------------------------------------


class FakeDecoder:
    """Returns canned samples; paths in ``failing`` raise ToolError."""

    def __init__(self, samples: np.ndarray | None = None, failing: Sequence[str] = ()) -> None:
        self.samples = RAMP_SAMPLES if samples is None else samples
        self.failing = set(failing)
        self.calls: list[str] = []

    def decode(self, path: str) -> np.ndarray:
        self.calls.append(path)
        if path in self.failing or Path(path).name in self.failing:
            raise ToolError("sox", "no audio data")
        return self.samples


class FakeProbe:
    def __init__(self, info: StreamInfo = WAV_INFO, fail: bool = False) -> None:
        self.info = info
        self.fail = fail

    def probe(self, path: str) -> StreamInfo:
        if self.fail:
            raise ToolError("sox", "not installed")
        return self.info


class FakeAnalyzer:
    def __init__(
        self,
        beats: list[float] | None = None,
        pitches: list[float] | None = None,
        fail_beats: bool = False,
        fail_pitch: bool = False,
    ) -> None:
        self._beats = [1.0, 1.5, 2.0, 2.5] if beats is None else beats
        self._pitches = [440.0, 440.0, 0.0] if pitches is None else pitches
        self.fail_beats = fail_beats
        self.fail_pitch = fail_pitch

    def beats(self, path: str) -> list[float]:
        if self.fail_beats:
            raise ToolError("aubiotrack", "exit 1")
        return self._beats

    def pitch_track(self, path: str) -> list[float]:
        if self.fail_pitch:
            raise ToolError("aubiopitch", "exit 1")
        return self._pitches


# ---------------------------------------------------------------------------
# Playback fakes
# ---------------------------------------------------------------------------


class InMemorySessionStore:
    """SessionStore kept in memory."""

    def __init__(self, session: PlaybackSession | None = None, autoplay: bool = False) -> None:
        self.session = session
        self._autoplay = autoplay
        self.saves: list[PlaybackSession] = []
        self.clears = 0

    def load(self) -> PlaybackSession | None:
        return self.session

    def save(self, session: PlaybackSession) -> None:
        self.session = session
        self.saves.append(session)

    def clear(self) -> None:
        self.session = None
        self.clears += 1

    def autoplay(self) -> bool:
        return self._autoplay

    def set_autoplay(self, on: bool) -> None:
        self._autoplay = on


class FakePlayer:
    """PlayerControl returning canned property values.

    ``answering=False`` makes every command return None, like a dead socket.
    ``positions`` is consumed one value per ``percent-pos`` query; when it
    runs out the last value repeats.
    """

    def __init__(
        self,
        answering: bool = True,
        properties: dict[str, Any] | None = None,
        positions: Sequence[Any] = (),
        ready_after: int = 0,
    ) -> None:
        self.answering = answering
        self.properties = {"pid": 4242, "pause": False, "duration": 100.0}
        self.properties.update(properties or {})
        self.positions = list(positions)
        self.ready_after = ready_after
        self.ready_checks = 0
        self.commands: list[list[Any]] = []

    def command(self, args: Sequence[Any]) -> Any | None:
        self.commands.append(list(args))
        if not self.answering:
            return None
        if list(args[:1]) == ["get_property"]:
            name = args[1]
            if name == "percent-pos":
                if not self.positions:
                    return None
                if len(self.positions) > 1:
                    return self.positions.pop(0)
                return self.positions[0]
            return self.properties.get(name)
        return None

    def socket_ready(self) -> bool:
        self.ready_checks += 1
        return self.ready_checks > self.ready_after


class FakeProcess:
    """PlayerProcess that exits after ``lifetime`` polls (None = never)."""

    def __init__(self, pid: int = 9999, lifetime: int | None = None) -> None:
        self._pid = pid
        self.lifetime = lifetime
        self.polls = 0
        self.terminated = False
        self.waited = False

    @property
    def pid(self) -> int:
        return self._pid

    def poll(self) -> int | None:
        if self.terminated:
            return -15
        self.polls += 1
        if self.lifetime is not None and self.polls > self.lifetime:
            return 0
        return None

    def terminate(self) -> None:
        self.terminated = True

    def wait(self, timeout: float | None = None) -> int | None:
        self.waited = True
        return self.poll()


class RecordingRefresher:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def refresh(self, viewer_id: str) -> None:
        self.calls.append(viewer_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config(tmp_path: Path) -> AlfConfig:
    """AlfConfig rooted in a temporary directory, with instant timings."""
    return AlfConfig(
        cache_root=tmp_path / "cache",
        state_dir=tmp_path / "state",
        poll_interval=0.03,
        socket_wait_interval=0.01,
    )


@pytest.fixture()
def audio_dir(tmp_path: Path) -> Path:
    """Directory with three audio files, one text file and a subdirectory."""
    d = tmp_path / "samples"
    d.mkdir()
    for name in ("b_snare.wav", "a_kick.WAV", "c_hat.flac"):
        (d / name).write_bytes(b"\x00" * 64)
    (d / "notes.txt").write_text("not audio")
    (d / "sub.wav").mkdir()
    return d
