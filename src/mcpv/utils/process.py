# External process helpers
# ABOUTME: Single blocking subprocess call per step, no timeout, no retries
import logging
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Signature shared by fetch/build steps so tests can inject a fake runner
CommandRunner = Callable[..., subprocess.CompletedProcess[str]]


def run_command(
    argv: Sequence[str],
    cwd: Path | None = None,
    capture: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run an external command and wait for it to finish.

    ABOUTME: Inherits stdout/stderr unless capture=True
    ABOUTME: Never raises on non-zero exit; callers inspect returncode
    ABOUTME: FileNotFoundError propagates when the executable is missing

    Args:
        argv: Command and arguments
        cwd: Working directory for the process
        capture: Capture stdout/stderr as text instead of streaming them

    Returns:
        CompletedProcess with returncode (and output when captured)
    """
    logger.debug(f"Running {' '.join(argv)} in {cwd or '.'}")
    return subprocess.run(
        list(argv),
        cwd=str(cwd) if cwd else None,
        check=False,
        text=True,
        capture_output=capture,
    )


def command_exists(command: str) -> bool:
    """Return True if command resolves on the executable search path."""
    return shutil.which(command) is not None


def describe_failure(result: subprocess.CompletedProcess[str]) -> str:
    """Summarize a failed process for error messages."""
    detail = f"exit status {result.returncode}"
    stderr = (result.stderr or "").strip()
    if stderr:
        detail = f"{detail}: {stderr.splitlines()[-1]}"
    return detail
