"""Subprocess utilities for platform-safe compiler invocation.

This module wraps the subprocess module so that every compiler query
applies platform-specific flags (no console window flashing on Windows)
and never inherits the configuring process's stdin.
"""

import logging
import subprocess
import sys
from typing import Any

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Adds CREATE_NO_WINDOW on Windows, OR'd into any creationflags given,
    and stdin=DEVNULL unless stdin is passed.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    logger.debug(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, **kwargs)
