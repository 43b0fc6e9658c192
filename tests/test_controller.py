"""Tests for playback/controller.py — background polling controller."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from core.config import AlfConfig
from core.playback import PlaybackSession
from playback.controller import MpvLauncher, PlaybackController
from tests.conftest import FakePlayer, FakeProcess, InMemorySessionStore, RecordingRefresher

OWN_PID = 1000


class TakeoverPlayer(FakePlayer):
    """Hands the session to another controller while answering a position query."""

    def __init__(self, store: InMemorySessionStore, successor: PlaybackSession) -> None:
        super().__init__(positions=[42.0])
        self.store = store
        self.successor = successor

    def command(self, args):
        if list(args) == ["get_property", "percent-pos"]:
            self.store.session = self.successor
        return super().command(args)


class Harness:
    """Controller wired to fakes; ``on_tick`` runs inside each sleep."""

    def __init__(
        self,
        config: AlfConfig,
        player: FakePlayer | None = None,
        process: FakeProcess | None = None,
        store: InMemorySessionStore | None = None,
        max_ticks: int = 50,
    ) -> None:
        self.store = store if store is not None else InMemorySessionStore()
        self.player = player if player is not None else FakePlayer()
        self.process = process if process is not None else FakeProcess(lifetime=3)
        self.refresher = RecordingRefresher()
        self.launched: list[str] = []
        self.sleeps: list[float] = []
        self.on_tick = None
        self.max_ticks = max_ticks
        self.controller = PlaybackController(
            store=self.store,
            player=self.player,
            launch=self._launch,
            refresher=self.refresher,
            config=config,
            pid=OWN_PID,
            sleep=self._sleep,
        )

    def _launch(self, file_path: str) -> FakeProcess:
        self.launched.append(file_path)
        return self.process

    def _sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.on_tick is not None:
            self.on_tick(len(self.sleeps))
        if len(self.sleeps) >= self.max_ticks:
            self.controller.request_stop()


class TestRun:
    """Test the controller polling loop and cleanup."""

    def test_publishes_changed_positions_then_cleans_up(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(positions=[10.0, 10.0, 55.5]), process=FakeProcess(lifetime=3))
        h.controller.run("/s/a.wav", "4")

        positions = [s.position for s in h.store.saves]
        # initial STARTING save, then one save per distinct position
        assert positions == [0.0, 0.1, 0.555]
        assert all(s.controller_pid == OWN_PID for s in h.store.saves)
        assert h.launched == ["/s/a.wav"]
        assert h.store.session is None
        # one refresh per published position and one final refresh
        assert h.refresher.calls == ["4", "4", "4"]

    def test_stops_on_request(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(positions=[1.0]), process=FakeProcess(lifetime=None))
        h.on_tick = lambda n: h.controller.request_stop() if n == 2 else None
        h.controller.run("/s/a.wav", "4")
        assert h.process.terminated is True
        assert h.process.waited is True
        assert h.store.session is None

    def test_preempted_controller_leaves_successor_state(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(positions=[20.0, 30.0]), process=FakeProcess(lifetime=None))
        successor = PlaybackSession("/s/b.wav", OWN_PID + 1)

        def take_over(tick: int) -> None:
            if tick == 1:
                h.store.session = successor

        h.on_tick = take_over
        h.controller.run("/s/a.wav", "4")
        assert h.store.session == successor
        assert h.store.clears == 0
        assert h.process.terminated is True

    def test_takeover_during_position_query_is_not_overwritten(self, config: AlfConfig) -> None:
        store = InMemorySessionStore()
        successor = PlaybackSession("/s/b.wav", OWN_PID + 1)
        h = Harness(
            config,
            player=TakeoverPlayer(store, successor),
            store=store,
            process=FakeProcess(lifetime=None),
        )
        h.controller.run("/s/a.wav", "4")
        assert h.store.session == successor
        assert [s.position for s in h.store.saves] == [0.0]
        assert h.store.clears == 0
        assert h.process.terminated is True

    def test_cleared_session_ends_loop(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(positions=[20.0]), process=FakeProcess(lifetime=None))
        h.on_tick = lambda n: h.store.clear() if n == 1 else None
        h.controller.run("/s/a.wav", "4")
        assert h.process.terminated is True
        assert h.store.clears == 1

    def test_unresponsive_player_gives_up(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(answering=False), process=FakeProcess(lifetime=None))
        h.controller.run("/s/a.wav", "4")
        poll_sleeps = [s for s in h.sleeps if s == config.poll_interval]
        assert len(poll_sleeps) == config.max_ipc_misses - 1
        assert h.store.session is None

    def test_bounded_socket_wait(self, config: AlfConfig) -> None:
        player = FakePlayer(ready_after=10_000, positions=[5.0])
        h = Harness(config, player=player, process=FakeProcess(lifetime=1))
        h.controller.run("/s/a.wav", "4")
        assert player.ready_checks == config.socket_wait_retries + 1
        assert h.sleeps.count(config.socket_wait_interval) == config.socket_wait_retries

    def test_socket_ready_immediately_skips_waiting(self, config: AlfConfig) -> None:
        h = Harness(config, player=FakePlayer(positions=[5.0]), process=FakeProcess(lifetime=1))
        h.controller.run("/s/a.wav", "4")
        assert h.player.ready_checks == 1

    def test_launch_failure_releases_session(self, config: AlfConfig) -> None:
        h = Harness(config)

        def broken(_path: str) -> FakeProcess:
            raise FileNotFoundError("mpv")

        h.controller.launch = broken
        h.controller.run("/s/a.wav", "9")
        assert h.store.session is None
        assert h.refresher.calls == ["9"]


class TestMpvLauncher:
    """Test mpv process launch arguments."""

    def test_removes_stale_socket_and_starts_headless(self, tmp_path: Path) -> None:
        sock = tmp_path / "state" / "mpv"
        sock.parent.mkdir()
        sock.write_text("stale")
        with patch("playback.controller.subprocess.Popen", return_value=MagicMock()) as popen:
            MpvLauncher("mpv", sock).launch("/s/a.wav")
        assert not sock.exists()
        args, kwargs = popen.call_args
        assert args[0] == [
            "mpv",
            "--no-terminal",
            "--no-video",
            f"--input-ipc-server={sock}",
            "/s/a.wav",
        ]
        assert kwargs["stdout"] is subprocess.DEVNULL
