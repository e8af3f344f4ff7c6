"""Subprocess helpers for git, gh and README setup commands."""

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Raised when a checked command exits non-zero."""

    def __init__(self, cmd: str, returncode: int, stderr: str, stdout: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(
            f"Command failed with exit code {returncode}: {cmd}\nstderr: {stderr}"
        )


@dataclass
class ShellResult:
    success: bool
    stdout: str
    stderr: str


def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command, capturing text output.

    Raises:
        SubprocessError: If check=True and the command exits non-zero
        subprocess.TimeoutExpired: If timeout exceeded
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,  # We handle check ourselves for better error messages
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        raise

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=" ".join(cmd),
            returncode=result.returncode,
            stderr=result.stderr,
            stdout=result.stdout,
        )
    return result


def run_git_command(
    args: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: int = 30,
) -> subprocess.CompletedProcess:
    """Run ``git <args>``; see run_command."""
    try:
        return run_command(["git"] + args, cwd=cwd, check=check, timeout=timeout)
    except SubprocessError:
        logger.error(f"Git command failed in {cwd}: {' '.join(args)}")
        raise


def kill_process_tree(pid: int, sig: int) -> None:
    """Signal a process group, falling back to the single process."""
    try:
        os.killpg(os.getpgid(pid), sig)
    except (ProcessLookupError, PermissionError):
        pass
    except OSError:
        try:
            os.kill(pid, sig)
        except (ProcessLookupError, PermissionError):
            pass


def run_shell_command(command: str, cwd: Path, timeout_ms: int) -> ShellResult:
    """Run a shell snippet through ``sh -c``. Timeouts become failed results.

    The shell runs in its own session and a timeout kills the whole group,
    including background children still holding the pipes.
    """
    logger.debug(f"Running shell command in {cwd}: {command}")
    try:
        proc = subprocess.Popen(
            ["sh", "-c", command],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=True,
        )
    except OSError as e:
        return ShellResult(success=False, stdout="", stderr=str(e))

    try:
        stdout, stderr = proc.communicate(timeout=timeout_ms / 1000)
    except subprocess.TimeoutExpired:
        kill_process_tree(proc.pid, signal.SIGKILL)
        stdout, _ = proc.communicate()
        return ShellResult(
            success=False,
            stdout=stdout or "",
            stderr=f"Command timed out after {timeout_ms}ms: {command}",
        )

    return ShellResult(
        success=proc.returncode == 0,
        stdout=stdout,
        stderr=stderr,
    )
