"""
playback/browser.py — Refresh signal to the lf file browser.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


class LfRemote:
    """``BrowserRefresher`` that runs ``lf -remote "send <id> reload"``.

    Fire-and-forget: a missing binary, an unknown viewer id, or a slow lf
    server never interrupts playback.
    """

    def __init__(self, binary: str = "lf", timeout: float = 2.0) -> None:
        self.binary = binary
        self.timeout = timeout

    def refresh(self, viewer_id: str) -> None:
        if not viewer_id:
            return
        try:
            subprocess.run(
                [self.binary, "-remote", f"send {viewer_id} reload"],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("lf refresh for %s failed: %s", viewer_id, exc)
