#!/usr/bin/env python3
"""
Source-control revision lookup.

Every deployment is tagged with the revision of the checkout it was
triggered from.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Optional

from opsdeploy.core.console import Console, ShellCommandError

logger = logging.getLogger(__name__)

UNKNOWN_REVISION = "unknown"


def current_revision(cwd: Optional[str] = None, console: Optional[Console] = None) -> str:
    """
    Return the git sha of HEAD.

    Args:
        cwd: Directory of the checkout (defaults to the process cwd)
        console: Shell runner, injectable for tests

    Returns:
        The sha, or "unknown" outside a git checkout
    """
    console = console or Console()
    try:
        sha = console.sh("git rev-parse HEAD", timeout=10, cwd=cwd)
    except (ShellCommandError, OSError) as e:
        logger.warning("Could not determine git revision: %s", e)
        return UNKNOWN_REVISION
    return sha or UNKNOWN_REVISION
