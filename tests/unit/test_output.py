"""Tests for timestamped configure output."""

import io
import re

from rbuild import output


def test_log_is_timestamped(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr(output, "_output_stream", stream)

    output.log("Getting Rust dependency info for crate root lib.rs")

    assert re.fullmatch(r"\d{2}:\d{2}\.\d{2} Getting Rust dependency info for crate root lib.rs\n", stream.getvalue())


def test_verbose_only_respects_verbose(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr(output, "_output_stream", stream)
    monkeypatch.setattr(output, "_verbose", False)

    output.log_detail("Artifact: out/liblib.rlib", verbose_only=True)
    output.log_phase(1, 2, "Configuring crate:lib...")

    assert stream.getvalue().endswith("[1/2] Configuring crate:lib...\n")
    assert "Artifact" not in stream.getvalue()


def test_timed_logger_reports_done(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr(output, "_output_stream", stream)
    monkeypatch.setattr(output, "_verbose", True)

    with output.TimedLogger("Configuring 2 target(s)"):
        output.log_detail("lib")

    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("Configuring 2 target(s)...")
    assert lines[1].endswith("      lib")
    assert re.search(r"Done \(\d+\.\d{2}s\)$", lines[2])
