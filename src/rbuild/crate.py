"""Build targets for Rust crates.

build_crate asks rustc which files a compile with the given flags would
emit, records one step producing exactly those files and an aggregate
target grouping them. Pass the crate's DependencySet (from
extract_dependencies) as extra_deps so edits to any source rebuild it.

build_crate_auto does the extraction for you. That is convenient but
re-runs dependency discovery on every call: wasteful if the same crate is
built several times with different flags (e.g. with and without --test) or
also documented. Extract once and feed the result to build_crate and
build_docs instead.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from . import output
from .context import ConfigureContext
from .dependencies import extract_dependencies
from .errors import BuildTargetError, ToolInvocationError, ToolNotFoundError
from .graph import AggregateTarget, BuildStep
from .options import DEFAULT_CRATE_TARGET, CrateOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrateTarget:
    """Result of synthesizing a crate build target.

    Attributes:
        name: Aggregate target name
        artifacts: Files the compile produces; install or copy these
        step: Recorded compile step
        target: Recorded aggregate target
    """

    name: str
    artifacts: tuple[Path, ...]
    step: BuildStep
    target: AggregateTarget

    @property
    def full_target(self) -> tuple[str, ...]:
        """Dependencies meaning "this crate, fully built".

        Lists the artifacts next to the target name for hosts that do not
        reliably resolve target-to-file dependencies.
        """
        return (self.name, *(str(p) for p in self.artifacts))


def build_crate(
    ctx: ConfigureContext,
    module_root: str,
    destination: str = "",
    flags: Sequence[str] = (),
    extra_deps: Sequence[str] = (),
    target_name: Optional[str] = None,
    default_build: bool = False,
) -> CrateTarget:
    """Add a target that compiles the crate rooted at module_root.

    Args:
        ctx: Configure context
        module_root: Crate root, relative to ctx.source_dir
        destination: Output directory relative to ctx.binary_dir
        flags: Extra rustc flags
        extra_deps: Files or targets the compile step depends on
        target_name: Aggregate target name (default "CRATE")
        default_build: Build this target by default

    Raises:
        BuildTargetError: If the crate root is missing or rustc reports no
            output files
        TargetCollisionError: If the target name or an artifact is taken
    """
    options = CrateOptions(
        module_root=module_root,
        destination=destination,
        target_name=target_name or DEFAULT_CRATE_TARGET,
        default_build=default_build,
        extra_deps=tuple(extra_deps),
        rustc_flags=tuple(flags),
    )
    return _synthesize(ctx, options)


def _synthesize(ctx: ConfigureContext, options: CrateOptions) -> CrateTarget:
    root = ctx.relative_path(options.module_root)
    root_file = ctx.root_file(root)
    if not root_file.is_file():
        raise BuildTargetError(root, f"crate root does not exist: {root_file}")

    compiler = ctx.compiler()
    try:
        names = compiler.print_file_names(root_file, options.rustc_flags)
    except (ToolNotFoundError, ToolInvocationError) as e:
        raise BuildTargetError(root, str(e)) from e
    if not names:
        raise BuildTargetError(root, "rustc reported no output file names; check the crate root and flags")

    out_dir = ctx.destination_dir(options.destination)
    artifacts = tuple(out_dir / name for name in names)
    prefix = f"{options.destination}/" if options.destination else ""
    comment = "Building " + ", ".join(f"{prefix}{name}" for name in names)

    step = BuildStep(
        module_root=root,
        outputs=artifacts,
        command=tuple(compiler.build_command(root_file, options.rustc_flags, out_dir)),
        depends=options.extra_deps,
        working_dir=ctx.source_dir,
        comment=comment,
    )
    target = AggregateTarget(
        name=options.target_name,
        depends=tuple(str(p) for p in artifacts),
        default=options.default_build,
    )
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BuildTargetError(root, f"cannot create destination {out_dir}: {e}") from e
    ctx.graph.register(step, target)

    for artifact in artifacts:
        output.log_detail(f"Artifact: {artifact}", verbose_only=True)
    logger.debug(f"Crate target {target.name}: {step.command}")
    return CrateTarget(name=target.name, artifacts=artifacts, step=step, target=target)


def build_crate_auto(
    ctx: ConfigureContext,
    module_root: str,
    destination: str = "",
    flags: Sequence[str] = (),
    extra_deps: Sequence[str] = (),
    target_name: Optional[str] = None,
    default_build: bool = False,
) -> CrateTarget:
    """Like build_crate, but fetches the crate dependencies first."""
    deps = extract_dependencies(ctx, module_root, extra_flags=flags)
    return build_crate(
        ctx,
        module_root,
        destination=destination,
        flags=flags,
        extra_deps=merge_dependencies(deps, extra_deps),
        target_name=target_name,
        default_build=default_build,
    )


def merge_dependencies(discovered: Iterable[str], extra: Iterable[str]) -> tuple[str, ...]:
    """Discovered dependencies followed by extra ones, without duplicates."""
    merged = []
    for dep in (*discovered, *extra):
        if dep not in merged:
            merged.append(dep)
    return tuple(merged)
