"""
playback/controller.py — Background playback controller.

One controller process exists per session. It launches the player, waits a
bounded time for the control socket, then polls the playback position and
republishes it as session state plus a browser refresh, until one of:

    - a stop was requested (SIGTERM / SIGINT → ``request_stop``)
    - the player process exited
    - another controller took over the session (or it was cleared)
    - the player stopped answering for ``max_ipc_misses`` consecutive ticks

On the way out it terminates the player if still running, removes the
session files only if it still owns them, and refreshes the browser once
more so the preview drops the position highlight.

Run as ``python -m playback.controller <file> <viewer-id>``; ``alf-play``
does this detached.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable
from pathlib import Path

from core.config import AlfConfig
from core.playback import (
    BrowserRefresher,
    PlaybackSession,
    PlayerControl,
    PlayerProcess,
    SessionStore,
)
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.settings import load_config
from playback.browser import LfRemote
from playback.ipc import MpvClient
from playback.session_store import FileSessionStore

logger = logging.getLogger(__name__)

_TERMINATE_GRACE_SECONDS = 2.0


class MpvLauncher:
    """Starts ``mpv`` headless with its IPC server on *socket_path*."""

    def __init__(self, binary: str, socket_path: str | Path) -> None:
        self.binary = binary
        self.socket_path = Path(socket_path)

    def launch(self, file_path: str) -> PlayerProcess:
        try:
            self.socket_path.unlink()
        except FileNotFoundError:
            pass
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        return subprocess.Popen(
            [
                self.binary,
                "--no-terminal",
                "--no-video",
                f"--input-ipc-server={self.socket_path}",
                file_path,
            ],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


def _as_position(reply: object) -> float | None:
    """``percent-pos`` reply as a fraction, or None if it is not a number."""
    if isinstance(reply, bool) or not isinstance(reply, (int, float)):
        return None
    return reply / 100.0


class PlaybackController:
    """Drives one player process for the lifetime of one session."""

    def __init__(
        self,
        store: SessionStore,
        player: PlayerControl,
        launch: Callable[[str], PlayerProcess],
        refresher: BrowserRefresher,
        config: AlfConfig,
        pid: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.player = player
        self.launch = launch
        self.refresher = refresher
        self.config = config
        self.pid = pid if pid is not None else os.getpid()
        self.sleep = sleep
        self._stop_requested = False

    def request_stop(self) -> None:
        """Ask the loop to finish after the current tick."""
        self._stop_requested = True

    def _owns_session(self) -> PlaybackSession | None:
        session = self.store.load()
        if session is None or session.controller_pid != self.pid:
            return None
        return session

    def _wait_for_socket(self) -> bool:
        for _ in range(self.config.socket_wait_retries):
            if self.player.socket_ready():
                return True
            self.sleep(self.config.socket_wait_interval)
        return self.player.socket_ready()

    def run(self, file_path: str, viewer_id: str) -> None:
        """Play *file_path* to completion (or until stopped/preempted)."""
        self.store.save(PlaybackSession(file_path=file_path, controller_pid=self.pid))
        try:
            process = self.launch(file_path)
        except OSError as exc:
            logger.error("Cannot start player for %s: %s", file_path, exc)
            self._release(viewer_id)
            return

        if not self._wait_for_socket():
            logger.warning("Player socket did not appear; polling anyway")

        try:
            self._poll(process, viewer_id)
        finally:
            self._stop_player(process)
            self._release(viewer_id)

    def _poll(self, process: PlayerProcess, viewer_id: str) -> None:
        last: float | None = None
        misses = 0
        while not self._stop_requested:
            if process.poll() is not None:
                logger.info("Player exited with %s", process.poll())
                return
            session = self._owns_session()
            if session is None:
                logger.info("Session taken over or cleared; exiting")
                return

            position = _as_position(self.player.command(["get_property", "percent-pos"]))
            if position is None:
                misses += 1
                if misses >= self.config.max_ipc_misses:
                    logger.warning("Player unresponsive for %d ticks; exiting", misses)
                    return
            else:
                misses = 0
                if position != last:
                    # the query can outlast a preemption
                    session = self._owns_session()
                    if session is None:
                        logger.info("Session taken over during tick; exiting")
                        return
                    self.store.save(session.with_position(position))
                    self.refresher.refresh(viewer_id)
                    last = position

            self.sleep(self.config.poll_interval)

    def _stop_player(self, process: PlayerProcess) -> None:
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=_TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Player pid=%d ignored SIGTERM", process.pid)

    def _release(self, viewer_id: str) -> None:
        if self._owns_session() is not None:
            self.store.clear()
        self.refresher.refresh(viewer_id)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="playback.controller")
    parser.add_argument("file_path")
    parser.add_argument("viewer_id")
    args = parser.parse_args(argv)

    config = load_config()
    configure_logging(resolve_level(1), log_file=config.state_dir / "controller.log")

    controller = PlaybackController(
        store=FileSessionStore(config.state_dir),
        player=MpvClient(config.socket_path, timeout=config.ipc_timeout),
        launch=MpvLauncher(config.player_bin, config.socket_path).launch,
        refresher=LfRemote(config.browser_bin),
        config=config,
    )

    def _handle_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %d", signum)
        controller.request_stop()

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)

    logger.info("Controller pid=%d playing %s", controller.pid, args.file_path)
    controller.run(args.file_path, args.viewer_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
