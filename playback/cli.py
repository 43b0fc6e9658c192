"""
playback/cli.py — ``alf-play``: playback commands for lf keybindings.

Usage::

    alf-play play <file> <lf-id>
    alf-play stop
    alf-play pause [<file> <lf-id>]
    alf-play seek <offset> [relative|absolute|absolute-percent]
    alf-play autoplay [on|off|toggle]
    alf-play status
"""

from __future__ import annotations

import argparse
import os
import sys

from core.audio.render import format_duration
from core.playback import AUTOPLAY_ACTIONS, SEEK_MODES
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.settings import load_config
from playback.daemon import PlaybackDaemon, PlaybackStatus
from playback.ipc import MpvClient
from playback.session_store import FileSessionStore

PLAYING = "▶"
PAUSED = "⏸"


def format_status(status: PlaybackStatus | None) -> str:
    """``▶ 0:12.3 / 1:40.6  name`` for the status line; empty when idle."""
    if status is None:
        return ""
    glyph = PAUSED if status.paused else PLAYING
    name = os.path.basename(status.session.file_path)
    if status.duration is None:
        return f"{glyph} {name}"
    return f"{glyph} {format_duration(status.now or 0.0)} / {format_duration(status.duration)}  {name}"


class _Parser(argparse.ArgumentParser):
    """Usage errors exit 1 like every other alf command."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="alf-play", description="Control background audio playback.")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True, parser_class=_Parser)

    play = sub.add_parser("play", help="Play a file, replacing current playback.")
    play.add_argument("path")
    play.add_argument("viewer_id", metavar="lf-id")

    sub.add_parser("stop", help="Stop playback.")

    pause = sub.add_parser("pause", help="Toggle pause, or play the given file if idle.")
    pause.add_argument("path", nargs="?")
    pause.add_argument("viewer_id", nargs="?", metavar="lf-id")

    seek = sub.add_parser("seek", help="Seek the current playback.")
    seek.add_argument("offset", type=float)
    seek.add_argument("mode", nargs="?", choices=SEEK_MODES, default="relative")

    autoplay = sub.add_parser("autoplay", help="Show or change the autoplay flag.")
    autoplay.add_argument("action", nargs="?", choices=AUTOPLAY_ACTIONS)

    sub.add_parser("status", help="One-line playback status.")
    return parser


def main(argv: list[str] | None = None, daemon: PlaybackDaemon | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(resolve_level(args.verbose))

    if daemon is None:
        config = load_config()
        daemon = PlaybackDaemon(
            store=FileSessionStore(config.state_dir),
            player=MpvClient(config.socket_path, timeout=config.ipc_timeout),
        )

    if args.command == "play":
        daemon.play(args.path, args.viewer_id)
    elif args.command == "stop":
        daemon.stop()
    elif args.command == "pause":
        daemon.pause(args.path, args.viewer_id)
    elif args.command == "seek":
        daemon.seek(args.offset, args.mode)
    elif args.command == "autoplay":
        on = daemon.autoplay(args.action)
        print(f"autoplay: {'ON' if on else 'OFF'}")
    elif args.command == "status":
        line = format_status(daemon.status())
        if line:
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
