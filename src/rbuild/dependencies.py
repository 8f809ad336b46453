"""Dependency extraction for Rust crate roots.

rustc is asked for dep-info, the make rule listing every source file a
crate root pulls in. The listed files are rewritten relative to the source
directory and registered as configure inputs, so editing any of them
re-triggers configuration.

NOTE: Only the dependencies of the first output rule are read. A single
call does not support compilation units with several independent
dependency graphs.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from . import output
from .context import ConfigureContext
from .depinfo import parse_dep_info
from .errors import DependencyExtractionError, DepInfoParseError, ToolInvocationError, ToolNotFoundError
from .options import DependencyOptions
from .shadow import ShadowStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencySet:
    """Ordered, duplicate-free source paths a crate root depends on.

    Paths use forward slashes and are relative to the source directory.
    The module root itself is always included.
    """

    module_root: str
    paths: tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.paths


def _unique(paths: Sequence[str]) -> List[str]:
    seen = set()
    ordered = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            ordered.append(path)
    return ordered


def extract_dependencies(
    ctx: ConfigureContext,
    module_root: str,
    extra_flags: Sequence[str] = (),
    compile: bool = False,
    destination: Optional[str] = None,
) -> DependencySet:
    """Fetch the dependencies of a crate root and optionally build it.

    Args:
        ctx: Configure context
        module_root: Crate root, relative to ctx.source_dir
        extra_flags: Extra rustc flags
        compile: Also produce artifacts in destination. This forces the
            crate to be compiled every time the project is reconfigured.
        destination: Output directory relative to ctx.binary_dir, required
            with compile

    Returns:
        DependencySet of the crate root

    Raises:
        DependencyExtractionError: If rustc fails, its dep-info is malformed,
            or a dependency vanished before it could be recorded
    """
    options = DependencyOptions(
        module_root=module_root,
        rustc_flags=tuple(extra_flags),
        compile=compile,
        destination=destination,
    )
    root = ctx.relative_path(options.module_root)
    root_file = ctx.root_file(root)
    if not root_file.is_file():
        raise DependencyExtractionError(root, f"crate root does not exist: {root_file}")

    out_dir = ctx.destination_dir(options.destination or "") if options.compile else None
    try:
        if out_dir is not None:
            out_dir.mkdir(parents=True, exist_ok=True)
        ctx.metadata_dir.mkdir(parents=True, exist_ok=True)
        fd, dep_name = tempfile.mkstemp(prefix="dep-info-", suffix=".d", dir=ctx.metadata_dir)
        os.close(fd)
    except OSError as e:
        raise DependencyExtractionError(root, f"cannot prepare build directory: {e}") from e

    if out_dir is not None:
        output.log(f"Compiling and getting Rust dependency info for crate root {root}")
    else:
        output.log(f"Getting Rust dependency info for crate root {root}")

    dep_file = Path(dep_name)
    try:
        ctx.compiler().write_dep_info(root_file, options.rustc_flags, dep_file, out_dir)
        dep_text = dep_file.read_text(encoding="utf-8")
    except (ToolNotFoundError, ToolInvocationError, OSError) as e:
        raise DependencyExtractionError(root, str(e)) from e
    finally:
        dep_file.unlink(missing_ok=True)

    try:
        raw_deps = parse_dep_info(dep_text)
    except DepInfoParseError as e:
        raise DependencyExtractionError(root, str(e)) from e

    paths = _unique([ctx.relative_path(raw) for raw in raw_deps])
    if root not in paths:
        paths.insert(0, root)

    store = ShadowStore(ctx.dependency_dir, root)
    for rel_path in paths:
        if ctx.native_configure_inputs:
            source = ctx.source_dir / rel_path
            if not source.is_file():
                raise DependencyExtractionError(root, f"dependency does not exist: {source}")
            ctx.graph.add_configure_input(source)
            continue
        try:
            ctx.graph.add_configure_input(store.copy(ctx.source_dir, rel_path))
        except OSError as e:
            raise DependencyExtractionError(root, str(e)) from e

    ctx.graph.record_dependencies(root, paths)
    logger.debug(f"Dependencies of {root}: {paths}")
    return DependencySet(module_root=root, paths=tuple(paths))
