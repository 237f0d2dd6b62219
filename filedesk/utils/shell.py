"""
Shell utilities for safe subprocess execution.

This module provides subprocess management with scoped teardown and
timeout handling for the external tools the converters drive.
"""

import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger


@contextmanager
def managed_process(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None
) -> Iterator[subprocess.Popen]:
    """
    Launch a process and guarantee it is terminated and reaped on exit.

    The process is killed when the ``with`` block exits for any reason
    (normal return, exception, timeout) and it is still running.

    Args:
        cmd: Command to run as list of strings
        cwd: Working directory for the command
        env: Environment variables

    Yields:
        The running ``subprocess.Popen`` instance
    """
    _validate_command(cmd)

    logger.debug(f"Launching process: {' '.join(cmd)}")
    process = subprocess.Popen(
        cmd,
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True
    )
    try:
        yield process
    finally:
        if process.poll() is None:
            logger.warning(f"Terminating process {process.pid}: {cmd[0]}")
            process.kill()
        # Reap the child so no zombie is left behind
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.error(f"Process {process.pid} did not exit after kill")
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()
        logger.debug(f"Process {process.pid} torn down")


def _validate_command(cmd: list[str]) -> None:
    """
    Validate command shape. Commands never go through a shell.

    Raises:
        ValueError: If command is empty or contains non-string parts
    """
    if not cmd:
        raise ValueError("Empty command")
    if not all(isinstance(part, str) for part in cmd):
        raise ValueError(f"Command parts must be strings: {cmd!r}")
    if any("\x00" in part for part in cmd):
        raise ValueError("Command contains NUL bytes")


def check_command_available(cmd: str) -> bool:
    """
    Check if a command is available in the system.

    Args:
        cmd: Command name or path

    Returns:
        True if command is available, False otherwise
    """
    return Path(cmd).is_file() or shutil.which(cmd) is not None
