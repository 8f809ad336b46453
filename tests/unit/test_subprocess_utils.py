"""Tests for subprocess_utils module."""

import subprocess
from unittest.mock import patch

from rbuild.subprocess_utils import get_subprocess_creation_flags, safe_run


def test_get_subprocess_creation_flags_windows():
    """Test that Windows returns CREATE_NO_WINDOW flag."""
    with patch("sys.platform", "win32"), patch.object(subprocess, "CREATE_NO_WINDOW", 0x08000000, create=True):
        flags = get_subprocess_creation_flags()
        assert flags == 0x08000000


def test_get_subprocess_creation_flags_linux():
    """Test that Linux returns 0."""
    with patch("sys.platform", "linux"):
        assert get_subprocess_creation_flags() == 0


@patch("subprocess.run")
def test_safe_run_no_flags_on_linux(mock_run):
    """Test that safe_run doesn't apply flags on Linux."""
    with patch("sys.platform", "linux"):
        safe_run(["rustc", "--version"], capture_output=True)

        mock_run.assert_called_once()
        call_kwargs = mock_run.call_args[1]
        assert "creationflags" not in call_kwargs
        assert call_kwargs["stdin"] == subprocess.DEVNULL


@patch("subprocess.run")
def test_safe_run_merges_custom_creationflags(mock_run):
    """Test that custom creationflags are OR'd with defaults."""
    with patch("sys.platform", "win32"), patch.object(subprocess, "CREATE_NO_WINDOW", 0x08000000, create=True):
        custom_flag = 0x00000200
        safe_run(["rustc", "--version"], creationflags=custom_flag)

        call_kwargs = mock_run.call_args[1]
        assert call_kwargs["creationflags"] == custom_flag | 0x08000000


@patch("subprocess.run")
def test_safe_run_keeps_explicit_stdin(mock_run):
    safe_run(["rustc", "-"], stdin=subprocess.PIPE)

    assert mock_run.call_args[1]["stdin"] == subprocess.PIPE
