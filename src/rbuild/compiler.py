"""Rust compiler queries.

This module issues the configure-time questions rbuild asks rustc:

    1. Dep-info: which source files does a crate root depend on
       (optionally compiling the crate as a side effect)
    2. File names: which artifacts would a compile with these flags emit
    3. Crate name: what is the crate called (names the rustdoc output)

It also builds the argv of the real compile and rustdoc invocations that
are recorded in the build graph. Those are never run here.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ToolInvocationError
from .subprocess_utils import safe_run
from .toolchain import Toolchain

logger = logging.getLogger(__name__)


class RustCompiler:
    """Runs rustc queries for crate roots under a source directory.

    Every query runs with working_dir as the current directory, so relative
    paths reported by rustc are relative to it.
    """

    def __init__(self, toolchain: Toolchain, working_dir: Path):
        self.toolchain = toolchain
        self.working_dir = working_dir

    def _rustc_argv(self, flags: Sequence[str]) -> List[str]:
        rustc = self.toolchain.require_rustc()
        return [str(rustc), *self.toolchain.rustc_flags, *flags]

    def _query(self, cmd: List[str]) -> str:
        try:
            result = safe_run(cmd, cwd=str(self.working_dir), capture_output=True, text=True)
        except OSError as e:
            raise ToolInvocationError(cmd, None, str(e)) from e
        if result.returncode != 0:
            raise ToolInvocationError(cmd, result.returncode, result.stderr or "")
        return result.stdout or ""

    def write_dep_info(
        self,
        root_file: Path,
        flags: Sequence[str],
        dep_file: Path,
        out_dir: Optional[Path] = None,
    ) -> None:
        """Write dep-info for root_file to dep_file.

        Args:
            root_file: Absolute path to the crate root
            flags: Per-crate rustc flags
            dep_file: Where rustc writes the make-style dependency rule
            out_dir: If given, also compile the crate into this directory
        """
        cmd = self._rustc_argv(flags)
        if out_dir is not None:
            cmd += [f"--emit=dep-info={dep_file},link", "--out-dir", str(out_dir)]
        else:
            cmd += [f"--emit=dep-info={dep_file}"]
        cmd.append(str(root_file))
        self._query(cmd)

    def print_file_names(self, root_file: Path, flags: Sequence[str]) -> List[str]:
        """Dry run: the artifact file names a compile with flags would emit."""
        stdout = self._query(self._rustc_argv(flags) + ["--print", "file-names", str(root_file)])
        names = [line.strip() for line in stdout.splitlines() if line.strip()]
        logger.debug(f"rustc --print file-names {root_file}: {names}")
        return names

    def print_crate_name(self, root_file: Path, flags: Sequence[str]) -> str:
        """Dry run: the crate name used for the rustdoc output directory."""
        stdout = self._query(self._rustc_argv(flags) + ["--print", "crate-name", str(root_file)])
        return stdout.strip()

    def build_command(self, root_file: Path, flags: Sequence[str], out_dir: Path) -> List[str]:
        return self._rustc_argv(flags) + ["--out-dir", str(out_dir), str(root_file)]

    def doc_command(self, root_file: Path, doc_flags: Sequence[str], out_dir: Path) -> List[str]:
        rustdoc = self.toolchain.require_rustdoc()
        return [str(rustdoc), *self.toolchain.rustdoc_flags, *doc_flags, "-o", str(out_dir), str(root_file)]

