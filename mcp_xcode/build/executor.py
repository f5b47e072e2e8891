#!/usr/bin/env python3
"""Command executor - runs exactly one native tool process per call"""

import logging
import os
import shlex
import subprocess
import tempfile
import time
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from mcp_xcode.exceptions import CommandTimeoutError, OutputLimitExceededError, ToolNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5 * 60
DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024
COMMAND_NOT_FOUND_EXIT_CODE = 127
COMMAND_NOT_FOUND_TEXT = ("command not found", "No such file or directory")
POLL_INTERVAL = 0.25


@dataclass(frozen=True)
class ExecutionOutcome:
    exit_code: int
    stdout: str
    stderr: str
    command: str = ""

    @property
    def output(self) -> str:
        """stdout and stderr combined, in that order"""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


def render_command(argv: Sequence[str]) -> str:
    """Shell-quoted rendering of an argument list, for logs and debug snapshots"""
    return shlex.join(list(argv))


class CommandExecutor:
    """
    Run a command without a shell and capture its output.

    Output is spooled to temporary files rather than held in pipes, and the
    combined size is checked while the process runs so a runaway log cannot
    exhaust memory or disk.
    """

    def __init__(self,
                 default_timeout: float = DEFAULT_TIMEOUT,
                 max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
                 env: Optional[Mapping[str, str]] = None):
        self.default_timeout = default_timeout
        self.max_output_bytes = max_output_bytes
        self.env = dict(env) if env is not None else None

    def execute(self,
                argv: Sequence[str],
                timeout: Optional[float] = None,
                max_output_bytes: Optional[int] = None,
                cwd: Optional[str] = None) -> ExecutionOutcome:
        """
        Execute a command and wait for it to finish.

        Args:
            argv: Program and arguments
            timeout: Wall-clock limit in seconds (defaults to the executor's)
            max_output_bytes: Ceiling on captured stdout+stderr
            cwd: Working directory for the process

        Returns:
            ExecutionOutcome with whatever exit code the process produced

        Raises:
            ToolNotFoundError: The program does not exist on this host
            CommandTimeoutError: The process ran past the timeout and was killed
            OutputLimitExceededError: The process produced more output than allowed
        """
        argv = list(argv)
        if not argv:
            raise ValueError("argv must not be empty")
        timeout = self.default_timeout if timeout is None else timeout
        limit = self.max_output_bytes if max_output_bytes is None else max_output_bytes
        command = render_command(argv)
        logger.debug("Executing: %s (timeout %ss)", command, timeout)

        with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
            try:
                process = subprocess.Popen(argv, stdout=out, stderr=err, stdin=subprocess.DEVNULL,
                                           cwd=cwd, env=self.env)
            except FileNotFoundError as e:
                raise ToolNotFoundError(argv[0], str(e)) from e

            started = time.monotonic()
            while True:
                try:
                    exit_code = process.wait(timeout=POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    pass

                size = _captured_size(out, err)
                if size > limit:
                    _kill(process)
                    logger.error("Output limit exceeded (%d bytes) for: %s", size, command)
                    raise OutputLimitExceededError(limit, size)
                if time.monotonic() - started > timeout:
                    _kill(process)
                    logger.error("Timed out after %ss: %s", timeout, command)
                    raise CommandTimeoutError(command, timeout)

            size = _captured_size(out, err)
            if size > limit:
                raise OutputLimitExceededError(limit, size)

            stdout = _read(out)
            stderr = _read(err)

        if _shell_command_not_found(exit_code, stderr) or _xcrun_missing_utility(argv, stderr):
            raise ToolNotFoundError(argv[0], stderr)

        logger.debug("Exit code %d from: %s", exit_code, command)
        return ExecutionOutcome(exit_code=exit_code, stdout=stdout, stderr=stderr, command=command)


def _captured_size(out, err) -> int:
    return os.fstat(out.fileno()).st_size + os.fstat(err.fileno()).st_size


def _read(handle) -> str:
    handle.seek(0)
    return handle.read().decode("utf-8", errors="replace")


def _kill(process: subprocess.Popen):
    process.kill()
    process.wait()


def _shell_command_not_found(exit_code: int, stderr: str) -> bool:
    # `swift run` programs can exit 127 on their own
    return exit_code == COMMAND_NOT_FOUND_EXIT_CODE and any(text in stderr for text in COMMAND_NOT_FOUND_TEXT)


def _xcrun_missing_utility(argv: Sequence[str], stderr: str) -> bool:
    # xcrun exits 72 rather than 127 when the requested developer tool is absent
    return os.path.basename(argv[0]) == "xcrun" and "unable to find utility" in stderr
