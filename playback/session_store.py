"""
playback/session_store.py — Filesystem-backed playback session state.

Layout of the state directory (default ``/tmp/alf``)::

    pid        controller process id
    file       absolute path of the playing file
    pos        position fraction, ``%.4f``
    autoplay   present = autoplay on (content ignored)
    mpv        player IPC socket (owned by the controller, not this store)

The files are the public interface to the browser's preview and status
hooks, which read them without any locking. Each file is replaced
atomically so a reader sees either the old or the new value.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from core.playback import PlaybackSession

logger = logging.getLogger(__name__)

PID_FILE = "pid"
FILE_FILE = "file"
POS_FILE = "pos"
AUTOPLAY_FILE = "autoplay"

_SESSION_FILES = (POS_FILE, FILE_FILE, PID_FILE)


class FileSessionStore:
    """``SessionStore`` over plain files in *state_dir*."""

    def __init__(self, state_dir: str | Path) -> None:
        self.state_dir = Path(state_dir)

    def _read(self, name: str) -> str | None:
        try:
            return (self.state_dir / name).read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

    def _write(self, name: str, text: str) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        target = self.state_dir / name
        tmp = target.with_name(f".{name}.{os.getpid()}")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, target)

    def _remove(self, name: str) -> None:
        try:
            (self.state_dir / name).unlink()
        except FileNotFoundError:
            pass

    def load(self) -> PlaybackSession | None:
        pid_text = self._read(PID_FILE)
        file_path = self._read(FILE_FILE)
        if not pid_text or not file_path:
            return None
        try:
            pid = int(pid_text)
        except ValueError:
            logger.debug("Ignoring malformed pid file: %r", pid_text)
            return None
        position = 0.0
        pos_text = self._read(POS_FILE)
        if pos_text:
            try:
                position = float(pos_text)
            except ValueError:
                logger.debug("Ignoring malformed pos file: %r", pos_text)
        return PlaybackSession(file_path=file_path, controller_pid=pid).with_position(position)

    def save(self, session: PlaybackSession) -> None:
        # pid last: until it lands the files still name the previous owner
        self._write(FILE_FILE, session.file_path)
        self._write(POS_FILE, f"{session.position:.4f}")
        self._write(PID_FILE, str(session.controller_pid))

    def clear(self) -> None:
        for name in _SESSION_FILES:
            self._remove(name)

    def autoplay(self) -> bool:
        return (self.state_dir / AUTOPLAY_FILE).exists()

    def set_autoplay(self, on: bool) -> None:
        if on:
            self._write(AUTOPLAY_FILE, "")
        else:
            self._remove(AUTOPLAY_FILE)
