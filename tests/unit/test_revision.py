#!/usr/bin/env python3
"""
Unit tests for the git revision lookup and the shell runner.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from unittest.mock import MagicMock

import pytest

from opsdeploy.core.console import Console, ShellCommandError
from opsdeploy.core.revision import UNKNOWN_REVISION, current_revision


@pytest.mark.unit
class TestCurrentRevision:
    """Revision used to tag deployments."""

    def test_returns_sha(self):
        console = MagicMock()
        console.sh.return_value = "0123abcd"

        assert current_revision(cwd="/src", console=console) == "0123abcd"
        console.sh.assert_called_once_with("git rev-parse HEAD", timeout=10, cwd="/src")

    def test_not_a_checkout(self):
        console = MagicMock()
        console.sh.side_effect = ShellCommandError("git rev-parse HEAD", 128, "not a git repository")

        assert current_revision(console=console) == UNKNOWN_REVISION

    def test_git_missing(self):
        console = MagicMock()
        console.sh.side_effect = OSError("git not installed")

        assert current_revision(console=console) == "unknown"


@pytest.mark.unit
class TestConsole:
    """Shell command runner."""

    def test_sh_returns_stripped_output(self):
        assert Console().sh("echo '  hello  '") == "hello"

    def test_sh_raises_on_failure(self):
        with pytest.raises(ShellCommandError) as exc_info:
            Console().sh("exit 3")
        assert exc_info.value.returncode == 3

    def test_sh_can_fail(self):
        assert Console().sh("echo oops; exit 1", canFail=True) == "oops"

    def test_sh_timeout(self):
        with pytest.raises(ShellCommandError) as exc_info:
            Console().sh("sleep 5", timeout=1)
        assert exc_info.value.returncode is None
        assert "timed out" in str(exc_info.value)
