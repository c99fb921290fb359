#!/usr/bin/env python3
"""Module to run shell commands.

Used to read local state such as the source-control revision that tags
every deployment.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""
# built-in modules
import logging
import subprocess
import typing


logger = logging.getLogger(__name__)


class ShellCommandError(RuntimeError):
    """Shell command exited non-zero or timed out."""

    def __init__(self, command: str, returncode: typing.Optional[int], output: str = "") -> None:
        if returncode is None:
            message = f"Subprocess '{command}' timed out"
        else:
            message = f"Subprocess '{command}' failed with exit code {returncode}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class Console:
    """Class to run shell commands.

    Attributes:
        shellVerbose (bool): Log every command before running it.
    """
    def __init__(self, shellVerbose: bool=False) -> None:
        self.shellVerbose = shellVerbose

    def sh(
            self,
            command: str,
            canFail: bool=False,
            timeout: int=60,
            cwd: typing.Optional[str]=None,
            env: typing.Optional[typing.Dict[str, str]]=None
        ) -> str:
        """Run shell command.

        Args:
            command (str): The shell command.
            canFail (bool): Return the output instead of raising on failure.
            timeout (int): The timeout in seconds.
            cwd (str): Working directory.
            env (dict): The environment variables.

        Returns:
            str: The stripped output (stdout and stderr) of the command.

        Raises:
            ShellCommandError: If the command fails or times out.
        """
        if self.shellVerbose:
            logger.debug("> %s", command)

        proc = subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            shell=True,
            universal_newlines=False,
            cwd=cwd,
            env=env,
        )

        try:
            raw_outs, _ = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            raise ShellCommandError(command, None) from exc

        outs = raw_outs.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0 and not canFail:
            raise ShellCommandError(command, proc.returncode, outs)
        return outs
