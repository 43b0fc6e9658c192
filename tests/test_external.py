"""Tests for ingestion/external.py — subprocess wrappers (subprocess.run mocked)."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from core.config import AlfConfig
from core.errors import ToolError
from ingestion.external import (
    AubioAnalyzer,
    SoxDecoder,
    SoxInfoProbe,
    build_tools,
    run_tool,
)


def _completed(stdout: bytes = b"", returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.stdout = stdout
    proc.stderr = stderr
    proc.returncode = returncode
    return proc


class TestRunTool:
    """Test subprocess execution and failure mapping."""

    def test_returns_stdout(self) -> None:
        with patch("ingestion.external.subprocess.run", return_value=_completed(b"ok")) as run:
            assert run_tool(["sox", "--version"], timeout=5) == b"ok"
        args, kwargs = run.call_args
        assert args[0] == ["sox", "--version"]
        assert kwargs["timeout"] == 5
        assert kwargs["stdin"] is subprocess.DEVNULL

    def test_missing_binary(self) -> None:
        with patch("ingestion.external.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(ToolError, match="aubiotrack: not installed"):
                run_tool(["aubiotrack", "x.wav"])

    def test_timeout(self) -> None:
        with patch(
            "ingestion.external.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="sox", timeout=3),
        ):
            with pytest.raises(ToolError, match="timed out after 3s"):
                run_tool(["sox", "x.wav"], timeout=3)

    def test_nonzero_exit_includes_stderr(self) -> None:
        proc = _completed(returncode=2, stderr=b"can't open input file")
        with patch("ingestion.external.subprocess.run", return_value=proc):
            with pytest.raises(ToolError) as excinfo:
                run_tool(["sox", "--i", "x.wav"])
        assert excinfo.value.tool == "sox"
        assert "exit 2" in excinfo.value.reason
        assert "can't open input file" in excinfo.value.reason

    def test_failure_recorded_in_metrics(self) -> None:
        with patch("ingestion.external.subprocess.run", side_effect=FileNotFoundError()), patch(
            "ingestion.external.record_tool_call"
        ) as record:
            with pytest.raises(ToolError):
                run_tool(["aubiopitch"])
        assert record.call_args.kwargs["ok"] is False


class TestSox:
    """Test the sox decoder and info probe."""

    def test_decoder_command_and_samples(self) -> None:
        raw = b"\x01\x00\xff\xff"
        with patch("ingestion.external.subprocess.run", return_value=_completed(raw)) as run:
            samples = SoxDecoder(rate=8000).decode("/a/kick.wav")
        assert samples.tolist() == [1, -1]
        assert run.call_args.args[0] == [
            "sox", "/a/kick.wav", "-c", "1", "-r", "8000", "-b", "16",
            "-e", "signed-integer", "-t", "raw", "-",
        ]

    def test_decoder_empty_output_is_an_error(self) -> None:
        with patch("ingestion.external.subprocess.run", return_value=_completed(b"\x00")):
            with pytest.raises(ToolError, match="no audio data"):
                SoxDecoder().decode("/a/empty.wav")

    def test_info_probe(self) -> None:
        out = b"Channels       : 1\nSample Rate    : 48000\nPrecision      : 16-bit\n"
        with patch("ingestion.external.subprocess.run", return_value=_completed(out)) as run:
            info = SoxInfoProbe().probe("/a/kick.wav")
        assert run.call_args.args[0] == ["sox", "--i", "/a/kick.wav"]
        assert (info.channels, info.sample_rate, info.bit_depth) == (1, 48000, 16)


class TestAubio:
    """Test the aubio beat and pitch wrappers."""

    def test_beats(self) -> None:
        with patch("ingestion.external.subprocess.run", return_value=_completed(b"0.5\n1.0\n")) as run:
            assert AubioAnalyzer().beats("/a/loop.wav") == [0.5, 1.0]
        assert run.call_args.args[0] == ["aubiotrack", "/a/loop.wav"]

    def test_pitch_track_uses_yinfft(self) -> None:
        out = b"0.0 0.0\n0.01 220.0\n"
        with patch("ingestion.external.subprocess.run", return_value=_completed(out)) as run:
            assert AubioAnalyzer().pitch_track("/a/bass.wav") == [0.0, 220.0]
        assert run.call_args.args[0] == ["aubiopitch", "-p", "yinfft", "/a/bass.wav"]


class TestBuildTools:
    """Test tool construction from config."""

    def test_binaries_from_config(self) -> None:
        config = AlfConfig(
            cache_root=Path("/c"),
            sox_bin="/opt/sox",
            beat_bin="/opt/track",
            pitch_bin="/opt/pitch",
            tool_timeout=9.0,
        )
        decoder, probe, analyzer = build_tools(config)
        assert decoder.binary == "/opt/sox"
        assert decoder.timeout == 9.0
        assert probe.binary == "/opt/sox"
        assert analyzer.beat_binary == "/opt/track"
        assert analyzer.pitch_binary == "/opt/pitch"
