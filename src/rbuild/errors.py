"""Exception hierarchy for rbuild.

Every condition that must abort configuration is a ConfigureError subclass
carrying the offending module root and the operation that failed.
"""

from typing import Optional, Sequence


class RbuildError(Exception):
    """Base class for all rbuild errors."""


class ToolNotFoundError(RbuildError):
    """Raised when rustc or rustdoc cannot be resolved or executed."""


class ToolInvocationError(RbuildError):
    """Raised when a compiler query exits non-zero or cannot be started."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed with exit code {returncode}: {' '.join(self.command)}"
        if stderr.strip():
            message += f"\nstderr: {stderr.strip()}"
        super().__init__(message)


class DepInfoParseError(RbuildError):
    """Raised when dep-info output does not have the `output: deps` shape."""


class DescriptionError(RbuildError):
    """Raised when an rbuild.ini build description is malformed."""


class InvalidOptionsError(ValueError):
    """Raised when option values fail validation at construction."""


class ConfigureError(RbuildError):
    """Fatal configure-time failure for a single module root."""

    operation = "configuration"

    def __init__(self, module_root: str, detail: str):
        self.module_root = module_root
        self.detail = detail
        super().__init__(f"{self.operation} failed for module root {module_root}: {detail}")


class DependencyExtractionError(ConfigureError):
    operation = "Dependency extraction"


class BuildTargetError(ConfigureError):
    operation = "Build-target synthesis"


class DocTargetError(ConfigureError):
    operation = "Doc-target synthesis"


class TargetCollisionError(ConfigureError):
    """Raised when a target name or output path is registered twice."""

    operation = "Target registration"
