"""
preview/meta.py — ``alf-meta``: lf custom-info commands from the cache.

Prints one ``addcustominfo`` command per cached audio file argument, joined
with ``; `` and without a trailing newline, for use as::

    cmd on-select &{{ lf -remote "send $id $(alf-meta $fx)" }}

Files without a cache record are skipped; no cache at all means no output.
Nothing is decoded here, so the command stays instant on large selections.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence

from core.audio.types import AudioRecord
from core.config import is_audio_name
from core.listing import custom_info, custominfo_command
from infrastructure.logging_config import configure_logging, resolve_level
from infrastructure.settings import load_config
from ingestion.cache_store import DirectoryCacheStore


def custominfo_commands(paths: Sequence[str], store: DirectoryCacheStore) -> list[str]:
    """One lf command per path that has a cache record, in argument order."""
    caches: dict[str, dict[str, AudioRecord]] = {}
    commands: list[str] = []
    for path in paths:
        name = os.path.basename(path)
        if not is_audio_name(name):
            continue
        directory = os.path.dirname(os.path.abspath(path))
        if directory not in caches:
            caches[directory] = store.load(directory)
        record = caches[directory].get(name)
        if record is None:
            continue
        info = custom_info(record.sparkline, record.bpm, record.pitch_hz)
        commands.append(custominfo_command(path, info))
    return commands


def main(argv: list[str] | None = None) -> int:
    paths = sys.argv[1:] if argv is None else argv
    configure_logging(resolve_level())
    if not paths:
        return 0
    config = load_config()
    commands = custominfo_commands(paths, DirectoryCacheStore(config.cache_root))
    if commands:
        sys.stdout.write("; ".join(commands))
    return 0


if __name__ == "__main__":
    sys.exit(main())
