"""Shadow copies of discovered dependencies.

Host build systems re-run configuration when a declared configure input
changes, but cannot be told about files that only rustc knows a crate
depends on. Copying each dependency into the build tree and declaring the
copy as a configure input closes that gap: the copy is only rewritten when
the source content differs, so its content is the change signal.

Layout:
    <build>/.rbuild/rust_dependencies/<module root>.deps/<relative source path>
"""

from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable, List

logger = logging.getLogger(__name__)


def _safe_parts(rel_path: str) -> List[str]:
    parts = []
    for part in PurePosixPath(rel_path.replace("\\", "/")).parts:
        if part == "/":
            continue
        if part == "..":
            parts.append("__parent__")
        else:
            parts.append(part.replace(":", "_"))
    return parts


def file_hash(file_path: Path) -> str:
    """SHA256 of file contents, read in chunks."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


class ShadowStore:
    """Shadow copy area for a single module root.

    Distinct module roots map to distinct directories, so configuring
    several crates never mixes their copies. Configuring the same module
    root concurrently is not supported.
    """

    def __init__(self, dependency_dir: Path, module_root: str):
        self.module_root = module_root
        self.root_dir = dependency_dir.joinpath(*_safe_parts(module_root + ".deps"))

    def shadow_path(self, rel_path: str) -> Path:
        return self.root_dir.joinpath(*_safe_parts(rel_path))

    def copy(self, source_dir: Path, rel_path: str) -> Path:
        """Copy source_dir/rel_path into the store if its content changed.

        Returns:
            Path of the shadow copy

        Raises:
            FileNotFoundError: If the source file no longer exists
        """
        source = source_dir / rel_path
        if not source.is_file():
            raise FileNotFoundError(f"Dependency vanished before it could be recorded: {source}")

        target = self.shadow_path(rel_path)
        if target.is_file() and file_hash(target) == file_hash(source):
            logger.debug(f"Shadow copy unchanged: {rel_path}")
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        logger.debug(f"Shadow copy updated: {rel_path} -> {target}")
        return target

    def changed(self, source_dir: Path, rel_paths: Iterable[str]) -> List[str]:
        """Relative paths whose source differs from its shadow copy.

        A missing source or missing shadow copy counts as changed.
        """
        stale = []
        for rel_path in rel_paths:
            source = source_dir / rel_path
            target = self.shadow_path(rel_path)
            if not source.is_file() or not target.is_file() or file_hash(source) != file_hash(target):
                stale.append(rel_path)
        return stale
