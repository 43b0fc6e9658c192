"""
Exception hierarchy shared by the indexer, the renderers and the CLIs.

Only *environment* failures are exceptions that reach a user. Degraded
features (one analysis step failing) are ``ToolError`` raised by a tool
wrapper and caught by the caller, which then leaves that field empty.
"""

from __future__ import annotations


class AlfError(Exception):
    """Base class for errors surfaced by the alf command-line tools."""


class DirectoryReadError(AlfError):
    """The target directory could not be listed."""

    def __init__(self, directory: str, reason: str) -> None:
        self.directory = directory
        super().__init__(f"cannot read directory {directory}: {reason}")


class CacheWriteError(AlfError):
    """The directory cache file could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"write cache {path}: {reason}")


class ToolError(Exception):
    """An external analysis tool failed (missing, nonzero exit, timeout, bad output).

    Args:
        tool: Name of the binary that failed, e.g. ``"aubiotrack"``.
        reason: Short human-readable cause.
    """

    def __init__(self, tool: str, reason: str) -> None:
        self.tool = tool
        self.reason = reason
        super().__init__(f"{tool}: {reason}")
