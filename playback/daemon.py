"""
playback/daemon.py — Playback control plane.

``PlaybackDaemon`` implements the short-lived ``alf-play`` commands. It never
plays audio itself: ``play`` spawns a detached background controller
(``playback/controller.py``) which owns the player process for the rest of
the session, and the other commands talk to the player over its control
channel or to the session store.

State is derived, never stored::

    IDLE       no session recorded
    STARTING   a session is recorded but the player does not answer yet
    ACTIVE     the player answers (playing or paused, queried live)
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from core.playback import (
    AUTOPLAY_ACTIONS,
    SEEK_MODES,
    PlaybackSession,
    PlaybackState,
    PlayerControl,
    SessionStore,
)

logger = logging.getLogger(__name__)

STOP_SETTLE_SECONDS: float = 0.05
"""Pause after asking the player to quit, before session files are removed."""


def spawn_controller(file_path: str, viewer_id: str) -> int:
    """Start ``python -m playback.controller`` detached; return its pid.

    The child gets its own session and no inherited stdio, so it survives
    the browser's short-lived shell and never writes to the preview pane.
    """
    proc = subprocess.Popen(
        [sys.executable, "-m", "playback.controller", file_path, viewer_id],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
        close_fds=True,
    )
    logger.info("Spawned controller pid=%d for %s", proc.pid, file_path)
    return proc.pid


def terminate_pid(pid: int) -> None:
    """SIGTERM *pid*; a process that is already gone is not an error."""
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        logger.debug("Controller pid=%d already gone", pid)
    except PermissionError:
        logger.warning("Not allowed to signal pid=%d (stale pid file?)", pid)


@dataclass(frozen=True)
class PlaybackStatus:
    """Snapshot for the browser status line."""

    session: PlaybackSession
    paused: bool
    duration: float | None
    """Total length in seconds as reported by the player."""

    @property
    def now(self) -> float | None:
        if self.duration is None:
            return None
        return self.duration * self.session.position


class PlaybackDaemon:
    """Control operations over one player and one session store.

    Args:
        store: Session persistence.
        player: Control channel to the player.
        spawn: Starts a background controller for ``(file_path, viewer_id)``
            and returns its pid.
        terminate: Signals a controller pid to stop.
        sleep: Injected for tests.
        own_pid: This process's pid; never signalled.
    """

    def __init__(
        self,
        store: SessionStore,
        player: PlayerControl,
        spawn: Callable[[str, str], int] = spawn_controller,
        terminate: Callable[[int], None] = terminate_pid,
        sleep: Callable[[float], None] = time.sleep,
        own_pid: int | None = None,
    ) -> None:
        self.store = store
        self.player = player
        self.spawn = spawn
        self.terminate = terminate
        self.sleep = sleep
        self.own_pid = own_pid if own_pid is not None else os.getpid()

    def _answers(self) -> bool:
        return self.player.command(["get_property", "pid"]) is not None

    def state(self) -> PlaybackState:
        if self.store.load() is None:
            return PlaybackState.IDLE
        if not self._answers():
            return PlaybackState.STARTING
        return PlaybackState.ACTIVE

    def play(self, path: str, viewer_id: str) -> int:
        """Stop whatever is playing and start *path*. Returns the controller pid."""
        self.stop()
        file_path = os.path.realpath(os.path.expanduser(path))
        pid = self.spawn(file_path, viewer_id)
        # recorded here too so an immediate stop can find the new controller
        self.store.save(PlaybackSession(file_path=file_path, controller_pid=pid))
        return pid

    def pause(self, path: str | None = None, viewer_id: str | None = None) -> int | None:
        """Toggle pause, or start *path* when nothing answers.

        Returns:
            The new controller pid if playback was started, else None.
        """
        if self._answers():
            self.player.command(["cycle", "pause"])
            return None
        if path and viewer_id is not None:
            return self.play(path, viewer_id)
        return None

    def stop(self) -> None:
        """End the session. Safe to call when idle."""
        session = self.store.load()
        if session is not None and session.controller_pid != self.own_pid:
            self.terminate(session.controller_pid)
        self.player.command(["quit"])
        self.sleep(STOP_SETTLE_SECONDS)
        self.store.clear()

    def seek(self, offset: float, mode: str = "relative") -> bool:
        """Forward a seek to the player. Returns False when idle.

        Raises:
            ValueError: If *mode* is not one of ``SEEK_MODES``.
        """
        if mode not in SEEK_MODES:
            raise ValueError(f"Unknown seek mode {mode!r}, valid options: {list(SEEK_MODES)}")
        if self.store.load() is None:
            return False
        self.player.command(["seek", offset, mode])
        return True

    def autoplay(self, action: str | None = None) -> bool:
        """Apply ``on`` / ``off`` / ``toggle`` (or just query) and return the flag.

        Raises:
            ValueError: If *action* is not one of ``AUTOPLAY_ACTIONS``.
        """
        if action is None:
            return self.store.autoplay()
        if action not in AUTOPLAY_ACTIONS:
            raise ValueError(
                f"Unknown autoplay action {action!r}, valid options: {list(AUTOPLAY_ACTIONS)}"
            )
        if action == "toggle":
            on = not self.store.autoplay()
        else:
            on = action == "on"
        self.store.set_autoplay(on)
        return on

    def status(self) -> PlaybackStatus | None:
        """Current session with live pause state and length, or None when idle."""
        session = self.store.load()
        if session is None:
            return None
        paused = self.player.command(["get_property", "pause"])
        duration = self.player.command(["get_property", "duration"])
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            duration = None
        return PlaybackStatus(session=session, paused=paused is True, duration=duration)
