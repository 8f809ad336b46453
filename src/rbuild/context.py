"""Configure Context - where a configure run reads and writes.

Design:
    A ConfigureContext pairs a source directory with a build directory, the
    toolchain used for compiler queries and the BuildGraph that collects
    synthesized targets. It is created once per configure run and passed to
    every operation; subdirectory() derives contexts for nested source
    directories that share the same graph.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from .compiler import RustCompiler
from .graph import BuildGraph
from .toolchain import Toolchain

METADATA_DIR_NAME = ".rbuild"


@dataclass(frozen=True)
class ConfigureContext:
    """Configure-time state shared by all operations.

    Attributes:
        source_dir: Directory module roots are relative to
        binary_dir: Build directory destinations are relative to
        toolchain: rustc/rustdoc executables and global flags
        graph: Build graph receiving steps, targets and configure inputs
        native_configure_inputs: Register discovered sources directly as
            configure inputs instead of shadow-copying them
    """

    source_dir: Path
    binary_dir: Path
    toolchain: Toolchain
    graph: BuildGraph = field(default_factory=BuildGraph)
    native_configure_inputs: bool = False

    @classmethod
    def create(
        cls,
        source_dir: Path,
        binary_dir: Path,
        toolchain: Optional[Toolchain] = None,
        graph: Optional[BuildGraph] = None,
        native_configure_inputs: bool = False,
    ) -> "ConfigureContext":
        """Create a context with absolute directories and a fresh graph."""
        return cls(
            source_dir=Path(source_dir).resolve(),
            binary_dir=Path(binary_dir).resolve(),
            toolchain=toolchain if toolchain is not None else Toolchain.from_environment(),
            graph=graph if graph is not None else BuildGraph(),
            native_configure_inputs=native_configure_inputs,
        )

    def subdirectory(self, name: str) -> "ConfigureContext":
        return replace(self, source_dir=self.source_dir / name, binary_dir=self.binary_dir / name)

    @property
    def metadata_dir(self) -> Path:
        return self.binary_dir / METADATA_DIR_NAME

    @property
    def dependency_dir(self) -> Path:
        return self.metadata_dir / "rust_dependencies"

    def compiler(self) -> RustCompiler:
        return RustCompiler(self.toolchain, self.source_dir)

    def relative_path(self, path: str) -> str:
        """path rewritten relative to source_dir, with forward slashes.

        Absolute paths and spellings such as ./lib.rs or src/../lib.rs
        normalize to the same string, so one crate root has one key.
        """
        resolved = Path(os.path.normpath(path))
        if not resolved.is_absolute():
            resolved = Path(os.path.normpath(self.source_dir / resolved))
        try:
            return Path(os.path.relpath(resolved, self.source_dir)).as_posix()
        except ValueError:
            # Different drive on Windows; keep it absolute
            return resolved.as_posix()

    def root_file(self, module_root: str) -> Path:
        return self.source_dir / module_root

    def destination_dir(self, destination: str) -> Path:
        return self.binary_dir / destination if destination else self.binary_dir
