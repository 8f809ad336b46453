"""Pytest configuration and fixtures for rbuild tests.

Compiler queries are answered by FakeRustc, patched in place of
rbuild.compiler.safe_run, so no Rust toolchain is needed. It keys its
answers by crate root path relative to the working directory rustc is
started in.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from rbuild import output
from rbuild.context import ConfigureContext
from rbuild.toolchain import Toolchain


class FakeRustc:
    """Stand-in for rustc answering dep-info and --print queries."""

    def __init__(self):
        self.dep_info: dict[str, str] = {}
        self.file_names: dict[str, list[str]] = {}
        self.crate_names: dict[str, str] = {}
        self.returncode = 0
        self.stderr = ""
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        if self.returncode != 0:
            return subprocess.CompletedProcess(cmd, self.returncode, "", self.stderr)

        root = Path(cmd[-1]).relative_to(Path(kwargs["cwd"])).as_posix()
        emit = next((arg for arg in cmd if arg.startswith("--emit=")), None)
        if emit is not None:
            dep_file = emit[len("--emit=") :].split(",")[0].split("=", 1)[1]
            Path(dep_file).write_text(self.dep_info[root], encoding="utf-8")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        what = cmd[cmd.index("--print") + 1]
        if what == "file-names":
            stdout = "".join(f"{name}\n" for name in self.file_names.get(root, []))
        else:
            stdout = f"{self.crate_names.get(root, '')}\n"
        return subprocess.CompletedProcess(cmd, 0, stdout, "")

    def queries(self, kind: str) -> list[list[str]]:
        """Recorded calls of one kind: 'dep-info', 'file-names' or 'crate-name'."""
        if kind == "dep-info":
            return [c for c in self.calls if any(a.startswith("--emit=") for a in c)]
        return [c for c in self.calls if "--print" in c and c[c.index("--print") + 1] == kind]


def _fake_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


@pytest.fixture(autouse=True)
def _quiet_output(tmp_path, monkeypatch):
    """Send configure status output to a file instead of stdout."""
    with open(tmp_path / "configure.log", "w", encoding="utf-8") as stream:
        monkeypatch.setattr(output, "_output_stream", stream)
        yield


@pytest.fixture
def toolchain(tmp_path) -> Toolchain:
    return Toolchain(
        rustc=_fake_executable(tmp_path / "toolchain" / "rustc"),
        rustdoc=_fake_executable(tmp_path / "toolchain" / "rustdoc"),
    )


@pytest.fixture
def fake_rustc():
    fake = FakeRustc()
    with patch("rbuild.compiler.safe_run", side_effect=fake):
        yield fake


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """A crate with lib.rs including util.rs."""
    src = tmp_path / "project"
    src.mkdir()
    (src / "lib.rs").write_text("mod util;\npub fn answer() -> u32 { util::value() }\n")
    (src / "util.rs").write_text("pub fn value() -> u32 { 42 }\n")
    return src


@pytest.fixture
def ctx(tmp_path, source_dir, toolchain) -> ConfigureContext:
    return ConfigureContext.create(source_dir, tmp_path / "build", toolchain=toolchain)
