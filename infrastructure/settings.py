"""Environment-driven settings for the alf tools.

Builds an ``AlfConfig`` from ``ALF_*`` environment variables. A dotenv file at
``$XDG_CONFIG_HOME/alf/alf.env`` (default ``~/.config/alf/alf.env``) is loaded
first without overriding variables already set in the environment, so a
per-user file can hold defaults while lf keybindings stay short.

Variables:
    ALF_CACHE_DIR            cache root (default $XDG_CACHE_HOME/alf or ~/.cache/alf)
    ALF_STATE_DIR            session directory (default /tmp/alf)
    ALF_INDEX_SPARK_WIDTH    sparkline width stored at index time (default 10)
    ALF_WORKERS              concurrent extractions (default 4)
    ALF_TOOL_TIMEOUT         seconds per analysis tool call (default 120)
    ALF_POLL_INTERVAL        controller tick in seconds (default 0.3)
    ALF_IPC_TIMEOUT          seconds per player IPC call (default 0.5)
    ALF_SOX / ALF_AUBIOTRACK / ALF_AUBIOPITCH / ALF_MPV / ALF_LF   binaries
    ALF_METRICS_FILE         write index metrics here (unset = disabled)
    ALF_LOG_LEVEL            overrides the CLI log level
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from core.config import AlfConfig


def _xdg(var: str, fallback: str) -> Path:
    value = os.environ.get(var, "")
    if value:
        return Path(value)
    return Path.home() / fallback


def user_env_file() -> Path:
    """Optional per-user dotenv file."""
    return _xdg("XDG_CONFIG_HOME", ".config") / "alf" / "alf.env"


def default_cache_root() -> Path:
    """``$XDG_CACHE_HOME/alf``, falling back to ``~/.cache/alf``."""
    return _xdg("XDG_CACHE_HOME", ".cache") / "alf"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def metrics_file() -> Path | None:
    """Destination for index metrics, or None when disabled."""
    raw = os.environ.get("ALF_METRICS_FILE", "").strip()
    return Path(raw) if raw else None


def load_config(*, env_file: Path | None = None) -> AlfConfig:
    """Build the configuration from the environment.

    Args:
        env_file: Dotenv file to load first. Defaults to ``user_env_file()``;
            a missing file is ignored.

    Raises:
        ValueError: If a variable holds an invalid value.
    """
    load_dotenv(env_file or user_env_file(), override=False)

    defaults = AlfConfig(cache_root=default_cache_root())
    cache_dir = os.environ.get("ALF_CACHE_DIR", "").strip()
    state_dir = os.environ.get("ALF_STATE_DIR", "").strip()

    return AlfConfig(
        cache_root=Path(cache_dir) if cache_dir else defaults.cache_root,
        state_dir=Path(state_dir) if state_dir else defaults.state_dir,
        index_spark_width=_env_int("ALF_INDEX_SPARK_WIDTH", defaults.index_spark_width),
        workers=_env_int("ALF_WORKERS", defaults.workers),
        decode_rate=defaults.decode_rate,
        tool_timeout=_env_float("ALF_TOOL_TIMEOUT", defaults.tool_timeout),
        ipc_timeout=_env_float("ALF_IPC_TIMEOUT", defaults.ipc_timeout),
        poll_interval=_env_float("ALF_POLL_INTERVAL", defaults.poll_interval),
        sox_bin=os.environ.get("ALF_SOX", defaults.sox_bin),
        beat_bin=os.environ.get("ALF_AUBIOTRACK", defaults.beat_bin),
        pitch_bin=os.environ.get("ALF_AUBIOPITCH", defaults.pitch_bin),
        player_bin=os.environ.get("ALF_MPV", defaults.player_bin),
        browser_bin=os.environ.get("ALF_LF", defaults.browser_bin),
    )
