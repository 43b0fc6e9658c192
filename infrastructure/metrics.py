"""Prometheus metrics for the alf indexer.

The index CLI is a short-lived batch process, so metrics are not served over
HTTP. When ``ALF_METRICS_FILE`` is set, ``alf-index`` writes the registry to
that path in the node-exporter textfile-collector format at the end of a run.

Metrics:
    alf_index_runs_total            Counter of index runs by outcome (ok/error)
    alf_files_indexed_total         Counter of files run through the extractor
    alf_tool_failures_total         Counter of external tool failures by tool
    alf_tool_seconds                Histogram of external tool wall time by tool

Usage::

    from infrastructure.metrics import LatencyTimer, record_tool_call

    with LatencyTimer() as t:
        out = run(...)
    record_tool_call("aubiotrack", latency_seconds=t.elapsed, ok=True)
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    write_to_textfile,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

index_runs_total = Counter(
    "alf_index_runs_total",
    "Index runs by outcome",
    ["outcome"],
    registry=_REGISTRY,
)

files_indexed_total = Counter(
    "alf_files_indexed_total",
    "Audio files run through the feature extractor",
    registry=_REGISTRY,
)

tool_failures_total = Counter(
    "alf_tool_failures_total",
    "External tool invocations that failed (missing, nonzero exit, timeout)",
    ["tool"],
    registry=_REGISTRY,
)

tool_seconds = Histogram(
    "alf_tool_seconds",
    "Wall-clock time of external tool invocations",
    ["tool"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 120.0],
    registry=_REGISTRY,
)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_tool_call(tool: str, *, latency_seconds: float, ok: bool) -> None:
    """Record one external tool invocation.

    Args:
        tool: Binary name, e.g. ``"sox"``.
        latency_seconds: Wall-clock time spent waiting for it.
        ok: False if it failed in any way.
    """
    tool_seconds.labels(tool=tool).observe(latency_seconds)
    if not ok:
        tool_failures_total.labels(tool=tool).inc()


def record_file_indexed() -> None:
    """Increment the indexed-file counter."""
    files_indexed_total.inc()


def record_index_run(outcome: str) -> None:
    """Increment the run counter.

    Args:
        outcome: ``"ok"`` or ``"error"``.
    """
    index_runs_total.labels(outcome=outcome).inc()


def write_metrics(path: str | Path) -> None:
    """Write the registry to *path* atomically (textfile collector format).

    Failures are logged, never raised: metrics must not fail an index run.
    """
    try:
        write_to_textfile(str(path), _REGISTRY)
    except OSError as exc:
        logger.warning("Could not write metrics to %s: %s", path, exc)


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            out = subprocess.run(...)
        record_tool_call("sox", latency_seconds=t.elapsed, ok=True)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
