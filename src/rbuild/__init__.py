"""rbuild - Rust crate dependency discovery and build-target synthesis.

Configure-time helpers that ask rustc which sources a crate root depends on
and which artifacts it would emit, and record matching build steps in an
explicit build graph.
"""

__version__ = "0.1.0"

from .context import ConfigureContext
from .crate import CrateTarget, build_crate, build_crate_auto
from .dependencies import DependencySet, extract_dependencies
from .docs import DocTarget, build_docs, build_docs_auto
from .errors import (
    BuildTargetError,
    ConfigureError,
    DependencyExtractionError,
    DocTargetError,
    RbuildError,
    TargetCollisionError,
)
from .graph import AggregateTarget, BuildGraph, BuildStep
from .toolchain import Toolchain

__all__ = [
    "__version__",
    "ConfigureContext",
    "Toolchain",
    "BuildGraph",
    "BuildStep",
    "AggregateTarget",
    "DependencySet",
    "extract_dependencies",
    "CrateTarget",
    "build_crate",
    "build_crate_auto",
    "DocTarget",
    "build_docs",
    "build_docs_auto",
    "RbuildError",
    "ConfigureError",
    "DependencyExtractionError",
    "BuildTargetError",
    "DocTargetError",
    "TargetCollisionError",
]
