"""
core/playback.py — Playback session model and collaborator protocols.

State machine::

    IDLE ──play──▶ STARTING ──player answers──▶ ACTIVE ──stop / end / preempt──▶ IDLE

ACTIVE's playing/paused sub-state is not stored; it is queried live from
the player.

At most one controller is live at a time. The session records the
controller's pid; a new ``play`` signals that pid before any new state is
written, and a controller only writes (or clears) state it still owns.

Pure module: the protocols below are implemented by ``playback/`` against the
filesystem, the mpv IPC socket and ``lf -remote``, and by in-memory fakes in
tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class PlaybackState(str, Enum):
    """Observable daemon states."""

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"


@dataclass(frozen=True)
class PlaybackSession:
    """The currently (or most recently) playing file and its controller.

    Invariants:
        file_path is absolute
        0.0 <= position <= 1.0
    """

    file_path: str
    controller_pid: int
    position: float = 0.0

    def with_position(self, position: float) -> PlaybackSession:
        """Copy with *position* clamped into [0, 1]."""
        return replace(self, position=min(max(position, 0.0), 1.0))


SEEK_MODES: tuple[str, ...] = ("relative", "absolute", "absolute-percent")
AUTOPLAY_ACTIONS: tuple[str, ...] = ("on", "off", "toggle")


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SessionStore(Protocol):
    """Persistence for the single active session and the autoplay flag."""

    def load(self) -> PlaybackSession | None:
        """Current session, or None when idle."""
        ...

    def save(self, session: PlaybackSession) -> None: ...

    def clear(self) -> None:
        """Remove all session state. Safe to call when nothing is stored."""
        ...

    def autoplay(self) -> bool: ...

    def set_autoplay(self, on: bool) -> None: ...


@runtime_checkable
class PlayerControl(Protocol):
    """Control channel to the external player."""

    def command(self, args: Sequence[Any]) -> Any | None:
        """
        Send one command and return the response's ``data`` field.

        Returns None when the player is unreachable, times out, or the
        response cannot be decoded.
        """
        ...

    def socket_ready(self) -> bool:
        """True once the control channel endpoint exists."""
        ...


@runtime_checkable
class BrowserRefresher(Protocol):
    """Tells the host browser to reload its view. Failures are ignored."""

    def refresh(self, viewer_id: str) -> None: ...


@runtime_checkable
class PlayerProcess(Protocol):
    """Handle on a launched player process."""

    @property
    def pid(self) -> int: ...

    def poll(self) -> int | None:
        """Exit code, or None while running."""
        ...

    def terminate(self) -> None: ...

    def wait(self, timeout: float | None = None) -> int | None: ...
