"""
Logging setup for the alf command-line tools.

Every CLI's stdout is consumed by the file browser (preview text, custom
info commands, status lines), so diagnostics go to stderr, or to a file for
the detached playback controller which has no terminal at all.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

_LOG_FORMAT = "%(asctime)s.%(msecs)03d " "[%(name)s] %(levelname)s " "%(message)s"
_LOG_DATE_FORMAT = "%H:%M:%S"


def resolve_level(verbose: int = 0) -> int:
    """Pick a log level from ``-v`` count and ``ALF_LOG_LEVEL``.

    ``ALF_LOG_LEVEL`` (e.g. ``DEBUG``) wins when set to a valid level name.
    Otherwise: 0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    env_level = os.environ.get("ALF_LOG_LEVEL", "").strip().upper()
    if env_level:
        level = logging.getLevelName(env_level)
        if isinstance(level, int):
            return level
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(level: int = logging.WARNING, log_file: Path | None = None) -> None:
    """
    Configure the root logger with a single handler.

    Args:
        level: Python logging level (default: WARNING)
        log_file: Append to this file instead of writing to stderr. The
            parent directory is created if needed.
    """
    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
