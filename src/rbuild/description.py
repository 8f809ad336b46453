"""rbuild.ini build description.

A project describes its crates and documentation in rbuild.ini, one section
per target; the section suffix is the target name:

    [rbuild]
    rustc_flags = -C opt-level=2

    [crate:hello]
    root = src/main.rs
    destination = bin
    default = yes

    [doc:hello_doc]
    root = src/lib.rs
    destination = doc
    rustdoc_flags = --document-private-items

Flag and dependency values are split like a shell command line.
"""

import configparser
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from . import output
from .context import ConfigureContext
from .crate import CrateTarget, build_crate, merge_dependencies
from .dependencies import DependencySet, extract_dependencies
from .docs import DocTarget, build_docs
from .errors import DescriptionError, InvalidOptionsError
from .options import CrateOptions, DocOptions

logger = logging.getLogger(__name__)

DESCRIPTION_FILE = "rbuild.ini"
GLOBAL_SECTION = "rbuild"

_CRATE_KEYS = {"root", "destination", "default", "auto", "depends", "rustc_flags", "compile_deps"}
_DOC_KEYS = _CRATE_KEYS | {"rustdoc_flags"}


@dataclass(frozen=True)
class TargetEntry:
    """One section of the description.

    Attributes:
        options: CrateOptions or DocOptions for the section
        auto: Discover crate dependencies before synthesizing the target
        compile_deps: Compile the crate while discovering dependencies
    """

    options: Union[CrateOptions, DocOptions]
    auto: bool = True
    compile_deps: bool = False


@dataclass
class ProjectDescription:
    rustc_flags: Tuple[str, ...] = ()
    rustdoc_flags: Tuple[str, ...] = ()
    entries: List[TargetEntry] = field(default_factory=list)


def _split(section: configparser.SectionProxy, key: str) -> Tuple[str, ...]:
    return tuple(shlex.split(section.get(key, "")))


def _boolean(section: configparser.SectionProxy, key: str, fallback: bool) -> bool:
    try:
        return section.getboolean(key, fallback=fallback)
    except ValueError as e:
        raise DescriptionError(f"[{section.name}] {key}: {e}") from e


def load_description(description_file: Path) -> ProjectDescription:
    """Parse an rbuild.ini file.

    Raises:
        DescriptionError: If the file is missing or malformed
    """
    if not description_file.exists():
        raise DescriptionError(f"{DESCRIPTION_FILE} not found: {description_file}")

    config = configparser.ConfigParser(interpolation=None)
    try:
        config.read(description_file, encoding="utf-8")
    except configparser.Error as e:
        raise DescriptionError(f"Failed to parse {description_file}: {e}") from e

    description = ProjectDescription()
    for section_name in config.sections():
        section = config[section_name]
        if section_name == GLOBAL_SECTION:
            description.rustc_flags = _split(section, "rustc_flags")
            description.rustdoc_flags = _split(section, "rustdoc_flags")
            continue

        kind, _, name = section_name.partition(":")
        if kind not in ("crate", "doc") or not name:
            raise DescriptionError(f"Unknown section [{section_name}]; expected [crate:<name>] or [doc:<name>]")

        allowed = _CRATE_KEYS if kind == "crate" else _DOC_KEYS
        unknown = sorted(set(section.keys()) - allowed)
        if unknown:
            raise DescriptionError(f"[{section_name}] has unknown keys: {', '.join(unknown)}")

        common = {
            "module_root": section.get("root", ""),
            "destination": section.get("destination", ""),
            "target_name": name,
            "default_build": _boolean(section, "default", False),
            "extra_deps": _split(section, "depends"),
            "rustc_flags": _split(section, "rustc_flags"),
        }
        try:
            if kind == "crate":
                options: Union[CrateOptions, DocOptions] = CrateOptions(**common)
            else:
                options = DocOptions(rustdoc_flags=_split(section, "rustdoc_flags"), **common)
        except InvalidOptionsError as e:
            raise DescriptionError(f"[{section_name}] {e}") from e

        description.entries.append(
            TargetEntry(
                options=options,
                auto=_boolean(section, "auto", True),
                compile_deps=_boolean(section, "compile_deps", False),
            )
        )

    logger.debug(f"Loaded {len(description.entries)} target(s) from {description_file}")
    return description


def configure_project(
    ctx: ConfigureContext, description: ProjectDescription
) -> List[Union[CrateTarget, DocTarget]]:
    """Synthesize every target of a description, in file order.

    Dependencies of a crate root are discovered once per flag set and
    reused by every target built from it. Sections that compile while
    discovering get their own extraction per destination.
    """
    discovered: Dict[Tuple[str, Tuple[str, ...], Optional[str]], DependencySet] = {}
    results: List[Union[CrateTarget, DocTarget]] = []

    total = len(description.entries)
    for index, entry in enumerate(description.entries, start=1):
        options = entry.options
        kind = "doc" if isinstance(options, DocOptions) else "crate"
        output.log_phase(index, total, f"Configuring {kind}:{options.target_name}...")
        extra_deps: Tuple[str, ...] = options.extra_deps
        if entry.auto:
            compile_into = options.destination if entry.compile_deps else None
            key = (ctx.relative_path(options.module_root), options.rustc_flags, compile_into)
            if key not in discovered:
                discovered[key] = extract_dependencies(
                    ctx,
                    options.module_root,
                    extra_flags=options.rustc_flags,
                    compile=entry.compile_deps,
                    destination=compile_into,
                )
            extra_deps = merge_dependencies(discovered[key], extra_deps)

        if isinstance(options, DocOptions):
            results.append(
                build_docs(
                    ctx,
                    options.module_root,
                    destination=options.destination,
                    flags=options.rustc_flags,
                    doc_flags=options.rustdoc_flags,
                    extra_deps=extra_deps,
                    target_name=options.target_name,
                    default_build=options.default_build,
                )
            )
        else:
            results.append(
                build_crate(
                    ctx,
                    options.module_root,
                    destination=options.destination,
                    flags=options.rustc_flags,
                    extra_deps=extra_deps,
                    target_name=options.target_name,
                    default_build=options.default_build,
                )
            )
    return results
