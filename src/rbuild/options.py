"""Option values for configure operations.

Each operation takes a structured options value with named, defaulted
fields. Required fields are validated at construction, so an operation
never starts with an incomplete request.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import InvalidOptionsError

DEFAULT_CRATE_TARGET = "CRATE"
DEFAULT_DOC_TARGET = "DOC"


def _tokens(values: Iterable[object], field_name: str) -> tuple[str, ...]:
    if isinstance(values, str):
        raise InvalidOptionsError(f"{field_name} must be a list of tokens, not a string: {values!r}")
    return tuple(str(value) for value in values)


def _require_module_root(module_root: object) -> str:
    if module_root is None or not str(module_root).strip():
        raise InvalidOptionsError("module_root is required")
    return str(module_root).replace("\\", "/")


@dataclass(frozen=True)
class DependencyOptions:
    """Options for dependency extraction.

    Attributes:
        module_root: Crate root, relative to the source directory
        rustc_flags: Extra rustc flags, forwarded verbatim
        compile: Also compile the crate while extracting. This recompiles
            the crate on every configure run.
        destination: Output directory for compile, relative to the build dir
    """

    module_root: str
    rustc_flags: tuple[str, ...] = ()
    compile: bool = False
    destination: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "module_root", _require_module_root(self.module_root))
        object.__setattr__(self, "rustc_flags", _tokens(self.rustc_flags, "rustc_flags"))
        if self.compile and self.destination is None:
            raise InvalidOptionsError("destination is required when compile is requested")


@dataclass(frozen=True)
class CrateOptions:
    """Options for a crate build target."""

    module_root: str
    destination: str = ""
    target_name: str = DEFAULT_CRATE_TARGET
    default_build: bool = False
    extra_deps: tuple[str, ...] = ()
    rustc_flags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "module_root", _require_module_root(self.module_root))
        object.__setattr__(self, "extra_deps", _tokens(self.extra_deps, "extra_deps"))
        object.__setattr__(self, "rustc_flags", _tokens(self.rustc_flags, "rustc_flags"))
        if not self.target_name:
            object.__setattr__(self, "target_name", DEFAULT_CRATE_TARGET)


@dataclass(frozen=True)
class DocOptions:
    """Options for a documentation target."""

    module_root: str
    destination: str = ""
    target_name: str = DEFAULT_DOC_TARGET
    default_build: bool = False
    extra_deps: tuple[str, ...] = ()
    rustc_flags: tuple[str, ...] = ()
    rustdoc_flags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "module_root", _require_module_root(self.module_root))
        object.__setattr__(self, "extra_deps", _tokens(self.extra_deps, "extra_deps"))
        object.__setattr__(self, "rustc_flags", _tokens(self.rustc_flags, "rustc_flags"))
        object.__setattr__(self, "rustdoc_flags", _tokens(self.rustdoc_flags, "rustdoc_flags"))
        if not self.target_name:
            object.__setattr__(self, "target_name", DEFAULT_DOC_TARGET)
