"""
core/audio/render.py — Text/glyph rendering of peak columns.

Three fidelities share one 8-level glyph ramp:

    sparkline   one glyph per column, single line
    plot        H rows per column, fractional glyph at the top of each bar
    listing     sparkline + name/metadata columns (see core/listing.py)

Position highlighting wraps the already-played part of each row in
DIM/BRIGHT/RESET escape sequences. The glyph characters themselves are
never changed, so stripping the escapes yields the unhighlighted plot.

Pure module: peaks in, strings out.
"""

from __future__ import annotations

from collections.abc import Sequence

# ---------------------------------------------------------------------------
# Glyphs and emphasis markers
# ---------------------------------------------------------------------------

RAMP: str = "▁▂▃▄▅▆▇█"
"""Light → full block. Index 0 is the silent/baseline glyph."""

LOWEST: str = RAMP[0]
FULL: str = RAMP[-1]

DIM: str = "\033[38;5;240m"
BRIGHT: str = "\033[0m"
RESET: str = "\033[0m"

_LEVELS = len(RAMP)


def _max_peak(peaks: Sequence[int]) -> int:
    top = max(peaks, default=0)
    return top if top > 0 else 1


# ---------------------------------------------------------------------------
# Sparkline
# ---------------------------------------------------------------------------


def render_sparkline(peaks: Sequence[int]) -> str:
    """One glyph per peak column.

    Level index is ``floor(peak / max_peak * 7)``. An all-silent input
    renders as the lowest glyph repeated.
    """
    top = _max_peak(peaks)
    return "".join(RAMP[int(int(p) / top * (_LEVELS - 1))] for p in peaks)


def silent_sparkline(width: int) -> str:
    """Placeholder used when a file cannot be decoded."""
    return LOWEST * width


# ---------------------------------------------------------------------------
# Multi-row plot
# ---------------------------------------------------------------------------


def render_plot_rows(peaks: Sequence[int], height: int) -> list[str]:
    """Build the plot rows, top row first.

    For each column the fill level is ``peak / max_peak * height``. Row ``r``
    (0 = bottom) is a full block when ``level >= r + 1``, a fractional glyph
    when ``r < level < r + 1``, the baseline glyph on row 0 otherwise, and
    blank above the level.

    Raises:
        ValueError: If height is not positive.
    """
    if height <= 0:
        raise ValueError(f"height must be positive, got {height}")

    top = _max_peak(peaks)
    levels = [int(p) / top * height for p in peaks]

    rows: list[str] = []
    for row in range(height - 1, -1, -1):
        chars: list[str] = []
        for level in levels:
            if level >= row + 1:
                chars.append(FULL)
            elif level > row:
                chars.append(RAMP[int((level - row) * (_LEVELS - 1))])
            elif row == 0:
                chars.append(LOWEST)
            else:
                chars.append(" ")
        rows.append("".join(chars))
    return rows


def highlight_row(row: str, position: float | None) -> str:
    """Dim the already-played part of a row.

    The split column is ``floor(position * width)``. Columns left of it are
    wrapped in DIM, the rest follows BRIGHT, and the row ends with RESET.
    A split at or past the end dims the whole row; no position leaves the
    row untouched.
    """
    if position is None or position < 0:
        return row
    width = len(row)
    split = int(position * width)
    if split >= width:
        return f"{DIM}{row}{RESET}"
    return f"{DIM}{row[:split]}{BRIGHT}{row[split:]}{RESET}"


def render_plot(peaks: Sequence[int], height: int, position: float | None = None) -> str:
    """Plot rows joined by newlines (no trailing newline), optionally highlighted."""
    rows = render_plot_rows(peaks, height)
    return "\n".join(highlight_row(row, position) for row in rows)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``'9.5s'`` under a minute, ``'M:SS.S'`` otherwise.

    Examples:
        9.54 → '9.5s'
        100.59 → '1:40.6'
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    return f"{minutes}:{seconds - minutes * 60:04.1f}"


_KIB = 1024
_MIB = 1024**2
_GIB = 1024**3


def format_size(size: int) -> str:
    """Binary-unit file size: ``'512B'``, ``'1.5K'``, ``'3.2M'``, ``'1.0G'``."""
    if size >= _GIB:
        return f"{size / _GIB:.1f}G"
    if size >= _MIB:
        return f"{size / _MIB:.1f}M"
    if size >= _KIB:
        return f"{size / _KIB:.1f}K"
    return f"{size}B"
