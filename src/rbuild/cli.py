"""
Command-line interface for rbuild.

This module provides the `rbuild` CLI tool:

    rbuild configure [PROJECT_DIR] [-B BUILD_DIR]   # synthesize targets
    rbuild check [PROJECT_DIR] [-B BUILD_DIR]       # is reconfiguration needed?
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rich.console import Console
from rich.table import Table

from rbuild import __version__, output
from rbuild.context import ConfigureContext
from rbuild.crate import CrateTarget
from rbuild.description import DESCRIPTION_FILE, configure_project, load_description
from rbuild.docs import DocTarget
from rbuild.errors import RbuildError
from rbuild.graph import BuildGraph
from rbuild.shadow import ShadowStore
from rbuild.toolchain import Toolchain

MANIFEST_FILE = "rbuild-graph.json"
EXIT_STALE = 2

console = Console()


@dataclass
class ConfigureArgs:
    """Arguments for the configure command."""

    project_dir: Path
    build_dir: Optional[Path] = None
    native_configure_inputs: bool = False
    verbose: bool = False


@dataclass
class CheckArgs:
    """Arguments for the check command."""

    project_dir: Path
    build_dir: Optional[Path] = None


def _build_dir(project_dir: Path, build_dir: Optional[Path]) -> Path:
    return build_dir if build_dir is not None else project_dir / "build"


def _print_targets(results: Sequence[Union[CrateTarget, DocTarget]], build_dir: Path) -> None:
    table = Table(title="Configured targets")
    table.add_column("Target", style="bold")
    table.add_column("Kind")
    table.add_column("Crate root")
    table.add_column("Default")
    table.add_column("Artifacts")
    for result in results:
        kind = "doc" if isinstance(result, DocTarget) else "crate"
        artifacts = result.artifacts if isinstance(result, CrateTarget) else (result.marker,)
        shown = []
        for artifact in artifacts:
            try:
                shown.append(str(artifact.relative_to(build_dir)))
            except ValueError:
                shown.append(str(artifact))
        table.add_row(
            result.name,
            kind,
            result.step.module_root,
            "yes" if result.target.default else "no",
            "\n".join(shown),
        )
    console.print(table)


def configure_command(args: ConfigureArgs) -> None:
    """Configure every target in PROJECT_DIR/rbuild.ini.

    Examples:
        rbuild configure                 # Configure ./rbuild.ini into ./build
        rbuild configure my_crate -B out # Configure my_crate into out/
    """
    output.init_timer()
    output.set_verbose(args.verbose)
    output.log_header("rbuild", __version__)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    project_dir = args.project_dir.resolve()
    build_dir = _build_dir(project_dir, args.build_dir).resolve()
    description_file = project_dir / DESCRIPTION_FILE

    try:
        description = load_description(description_file)
        toolchain = Toolchain.from_environment().with_flags(description.rustc_flags, description.rustdoc_flags)
        ctx = ConfigureContext.create(
            project_dir,
            build_dir,
            toolchain=toolchain,
            native_configure_inputs=args.native_configure_inputs,
        )
        ctx.graph.add_configure_input(description_file)

        with output.TimedLogger(f"Configuring {len(description.entries)} target(s)"):
            results = configure_project(ctx, description)
        ctx.graph.save(build_dir / MANIFEST_FILE)

    except RbuildError as e:
        output.log_error(str(e))
        console.print("[bold red]✗ Configuration failed[/bold red]")
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("[bold yellow]✗ Configuration interrupted[/bold yellow]")
        sys.exit(130)

    _print_targets(results, build_dir)
    console.print(f"[bold green]✓ Build graph written to {build_dir / MANIFEST_FILE}[/bold green]")
    sys.exit(0)


def find_stale_inputs(project_dir: Path, build_dir: Path) -> Optional[List[str]]:
    """Configure inputs that changed since the last configure run.

    Returns:
        Changed paths, or None if there is no usable manifest
    """
    manifest_file = build_dir / MANIFEST_FILE
    graph = BuildGraph.load(manifest_file)
    if graph is None:
        return None

    configured_at = manifest_file.stat().st_mtime
    stale = []
    for configure_input in graph.configure_inputs:
        path = Path(configure_input)
        if not path.exists() or path.stat().st_mtime > configured_at:
            stale.append(configure_input)

    ctx = ConfigureContext.create(project_dir, build_dir, toolchain=Toolchain(rustc=None, rustdoc=None))
    for module_root, paths in graph.dependency_sets.items():
        store = ShadowStore(ctx.dependency_dir, module_root)
        if not store.root_dir.is_dir():
            continue
        for rel_path in store.changed(ctx.source_dir, paths):
            source = str(ctx.source_dir / rel_path)
            if source not in stale:
                stale.append(source)
    return stale


def check_command(args: CheckArgs) -> None:
    """Report whether PROJECT_DIR must be reconfigured.

    Exit code 0 when up to date, 2 when stale or never configured.
    """
    project_dir = args.project_dir.resolve()
    build_dir = _build_dir(project_dir, args.build_dir).resolve()

    stale = find_stale_inputs(project_dir, build_dir)
    if stale is None:
        console.print(f"[bold yellow]No build graph found in {build_dir}; run rbuild configure[/bold yellow]")
        sys.exit(EXIT_STALE)
    if stale:
        console.print("[bold yellow]Reconfiguration needed, changed inputs:[/bold yellow]")
        for path in stale:
            console.print(f"  {path}")
        sys.exit(EXIT_STALE)

    console.print("[bold green]✓ Configuration is up to date[/bold green]")
    sys.exit(0)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="rbuild",
        description="Discover Rust crate dependencies and synthesize build targets",
    )
    parser.add_argument("--version", action="version", version=f"rbuild {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    configure_parser = subparsers.add_parser("configure", help="Synthesize build targets from rbuild.ini")
    configure_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory containing rbuild.ini (default: current directory)",
    )
    configure_parser.add_argument(
        "-B",
        "--build-dir",
        type=Path,
        default=None,
        help="Build directory (default: PROJECT_DIR/build)",
    )
    configure_parser.add_argument(
        "--native-configure-inputs",
        action="store_true",
        help="Declare discovered sources as configure inputs instead of shadow-copying them",
    )
    configure_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    check_parser = subparsers.add_parser("check", help="Check whether reconfiguration is needed")
    check_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory containing rbuild.ini (default: current directory)",
    )
    check_parser.add_argument(
        "-B",
        "--build-dir",
        type=Path,
        default=None,
        help="Build directory (default: PROJECT_DIR/build)",
    )

    parsed_args = parser.parse_args(argv)

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if not parsed_args.project_dir.is_dir():
        console.print(f"[bold red]✗ Error: Path is not a directory: {parsed_args.project_dir}[/bold red]")
        sys.exit(2)

    if parsed_args.command == "configure":
        configure_command(
            ConfigureArgs(
                project_dir=parsed_args.project_dir,
                build_dir=parsed_args.build_dir,
                native_configure_inputs=parsed_args.native_configure_inputs,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "check":
        check_command(CheckArgs(project_dir=parsed_args.project_dir, build_dir=parsed_args.build_dir))


if __name__ == "__main__":
    main()
