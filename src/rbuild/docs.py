"""Documentation targets for Rust crates.

rustdoc writes a directory tree named after the crate (not the crate root
file), plus a mirrored copy of the sources:

    <destination>/<crate name>/index.html
    <destination>/src/<crate name>/...

The crate name comes from a `rustc --print crate-name` dry run. The
aggregate target depends only on index.html; its presence means the whole
tree is current.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .context import ConfigureContext
from .crate import merge_dependencies
from .dependencies import extract_dependencies
from .errors import DocTargetError, ToolInvocationError, ToolNotFoundError
from .graph import AggregateTarget, BuildStep
from .options import DEFAULT_DOC_TARGET, DocOptions

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


@dataclass(frozen=True)
class DocTarget:
    """Result of synthesizing a documentation target."""

    name: str
    crate_name: str
    doc_root: Path
    mirror_src: Path
    step: BuildStep
    target: AggregateTarget

    @property
    def marker(self) -> Path:
        return self.doc_root / INDEX_FILE

    @property
    def artifacts(self) -> tuple[Path, ...]:
        return (self.doc_root, self.mirror_src)

    @property
    def full_target(self) -> tuple[str, ...]:
        return (self.name, str(self.marker))


def build_docs(
    ctx: ConfigureContext,
    module_root: str,
    destination: str = "",
    flags: Sequence[str] = (),
    doc_flags: Sequence[str] = (),
    extra_deps: Sequence[str] = (),
    target_name: Optional[str] = None,
    default_build: bool = False,
) -> DocTarget:
    """Add a target that runs rustdoc on the crate rooted at module_root.

    Args:
        ctx: Configure context
        module_root: Crate root, relative to ctx.source_dir
        destination: Documentation output root relative to ctx.binary_dir
        flags: Extra rustc flags (used for the crate name query)
        doc_flags: Extra rustdoc flags
        extra_deps: Files or targets the rustdoc step depends on
        target_name: Aggregate target name (default "DOC")
        default_build: Build this target by default

    Raises:
        DocTargetError: If the crate root is missing or rustc reports no
            crate name
        TargetCollisionError: If the target name or an output is taken
    """
    options = DocOptions(
        module_root=module_root,
        destination=destination,
        target_name=target_name or DEFAULT_DOC_TARGET,
        default_build=default_build,
        extra_deps=tuple(extra_deps),
        rustc_flags=tuple(flags),
        rustdoc_flags=tuple(doc_flags),
    )
    root = ctx.relative_path(options.module_root)
    root_file = ctx.root_file(root)
    if not root_file.is_file():
        raise DocTargetError(root, f"crate root does not exist: {root_file}")

    compiler = ctx.compiler()
    try:
        crate_name = compiler.print_crate_name(root_file, options.rustc_flags)
        out_dir = ctx.destination_dir(options.destination)
        command = compiler.doc_command(root_file, options.rustdoc_flags, out_dir)
    except (ToolNotFoundError, ToolInvocationError) as e:
        raise DocTargetError(root, str(e)) from e
    if not crate_name:
        raise DocTargetError(root, "rustc reported no crate name; check the crate root and flags")

    doc_root = out_dir / crate_name
    mirror_src = out_dir / "src" / crate_name
    marker = doc_root / INDEX_FILE

    step = BuildStep(
        module_root=root,
        outputs=(marker, doc_root, mirror_src),
        command=tuple(command),
        depends=options.extra_deps,
        working_dir=ctx.source_dir,
        comment=f"Documenting {crate_name}",
    )
    target = AggregateTarget(name=options.target_name, depends=(str(marker),), default=options.default_build)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DocTargetError(root, f"cannot create destination {out_dir}: {e}") from e
    ctx.graph.register(step, target)

    logger.debug(f"Doc target {target.name}: {step.command}")
    return DocTarget(
        name=target.name,
        crate_name=crate_name,
        doc_root=doc_root,
        mirror_src=mirror_src,
        step=step,
        target=target,
    )


def build_docs_auto(
    ctx: ConfigureContext,
    module_root: str,
    destination: str = "",
    flags: Sequence[str] = (),
    doc_flags: Sequence[str] = (),
    extra_deps: Sequence[str] = (),
    target_name: Optional[str] = None,
    default_build: bool = False,
) -> DocTarget:
    """Like build_docs, but fetches the crate dependencies first.

    Shares the cost noted on build_crate_auto: prefer one
    extract_dependencies call when a crate is also built.
    """
    deps = extract_dependencies(ctx, module_root, extra_flags=flags)
    return build_docs(
        ctx,
        module_root,
        destination=destination,
        flags=flags,
        doc_flags=doc_flags,
        extra_deps=merge_dependencies(deps, extra_deps),
        target_name=target_name,
        default_build=default_build,
    )
