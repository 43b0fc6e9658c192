"""Playback I/O boundary: mpv IPC, session files, lf refresh, daemon and controller."""
