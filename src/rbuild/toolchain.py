"""Rust toolchain executables and global flags.

Design:
    Locating a Rust installation is not rbuild's job. The toolchain is taken
    from the RUSTC and RUSTDOC environment variables, falling back to a PATH
    lookup, and is only validated when an operation actually needs it.

    Global flags (RUSTC_FLAGS, RUSTDOC_FLAGS) precede per-crate flags on
    every invocation. Flags are opaque tokens and are never validated here.
"""

import os
import shlex
import shutil
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .errors import ToolNotFoundError


@dataclass(frozen=True)
class Toolchain:
    """Rust compiler and documentation generator used for configure queries.

    Attributes:
        rustc: Path to rustc, or None if it could not be resolved
        rustdoc: Path to rustdoc, or None if it could not be resolved
        rustc_flags: Flags passed to every rustc invocation
        rustdoc_flags: Flags passed to every rustdoc invocation
    """

    rustc: Optional[Path]
    rustdoc: Optional[Path]
    rustc_flags: tuple[str, ...] = ()
    rustdoc_flags: tuple[str, ...] = ()

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]] = None) -> "Toolchain":
        """Resolve the toolchain from environment variables and PATH."""
        if env is None:
            env = os.environ
        return cls(
            rustc=_resolve_executable(env.get("RUSTC"), "rustc"),
            rustdoc=_resolve_executable(env.get("RUSTDOC"), "rustdoc"),
            rustc_flags=tuple(shlex.split(env.get("RUSTC_FLAGS", ""))),
            rustdoc_flags=tuple(shlex.split(env.get("RUSTDOC_FLAGS", ""))),
        )

    def with_flags(self, rustc_flags: Sequence[str] = (), rustdoc_flags: Sequence[str] = ()) -> "Toolchain":
        """Return a copy with extra global flags appended."""
        return replace(
            self,
            rustc_flags=self.rustc_flags + tuple(rustc_flags),
            rustdoc_flags=self.rustdoc_flags + tuple(rustdoc_flags),
        )

    def require_rustc(self) -> Path:
        return _require_executable(self.rustc, "rustc", "RUSTC")

    def require_rustdoc(self) -> Path:
        return _require_executable(self.rustdoc, "rustdoc", "RUSTDOC")


def _resolve_executable(configured: Optional[str], name: str) -> Optional[Path]:
    if configured:
        found = shutil.which(configured)
        return Path(found) if found else Path(configured)
    found = shutil.which(name)
    return Path(found) if found else None


def _require_executable(path: Optional[Path], name: str, env_var: str) -> Path:
    if path is None:
        raise ToolNotFoundError(f"{name} not found on PATH. Set {env_var} to the {name} executable.")
    if not path.is_file():
        raise ToolNotFoundError(f"{name} executable does not exist: {path}")
    if not os.access(path, os.X_OK):
        raise ToolNotFoundError(f"{name} is not executable: {path}")
    return path
