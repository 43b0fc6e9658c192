"""
playback/ipc.py — mpv JSON IPC client.

One connection per command: connect to the Unix socket, send
``{"command": [...]}`` as one JSON line, read lines until the reply arrives
(mpv may interleave ``{"event": ...}`` lines), return the reply's ``data``.

Every failure mode (no socket, refused connection, timeout, garbage) maps
to ``None``; callers treat that as "the player is not answering".
"""

from __future__ import annotations

import json
import logging
import os
import socket
from collections.abc import Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_READ_CHUNK = 4096


class MpvClient:
    """``PlayerControl`` over mpv's ``--input-ipc-server`` socket."""

    def __init__(self, socket_path: str | Path, timeout: float = 0.5) -> None:
        self.socket_path = str(socket_path)
        self.timeout = timeout

    def socket_ready(self) -> bool:
        return os.path.exists(self.socket_path)

    def command(self, args: Sequence[Any]) -> Any | None:
        payload = json.dumps({"command": list(args)}).encode("utf-8") + b"\n"
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect(self.socket_path)
            sock.sendall(payload)
            return self._read_reply(sock)
        except (OSError, ValueError) as exc:
            logger.debug("mpv %s: %s", list(args)[:1], exc)
            return None
        finally:
            sock.close()

    def _read_reply(self, sock: socket.socket) -> Any | None:
        buf = b""
        while True:
            chunk = sock.recv(_READ_CHUNK)
            if not chunk:
                return None
            buf += chunk
            while b"\n" in buf:
                line, buf = buf.split(b"\n", 1)
                if not line.strip():
                    continue
                message = json.loads(line)
                if not isinstance(message, dict) or "event" in message:
                    continue
                return message.get("data")
