"""Process execution adapter.

Every external capability (rclone, ffmpeg) goes through run_command:
spawn, block until exit, report the exit status. Stages accept any callable
with the same signature, which is how tests replace the real binaries.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable

log = logging.getLogger(__name__)

# Exit status reported when the binary could not be started or timed out.
SPAWN_FAILED = 127
TIMED_OUT = 124


@dataclass
class CommandResult:
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, limit: int = 500) -> str:
        """Last `limit` characters of stderr, for error messages."""
        return self.stderr[-limit:].strip()


Runner = Callable[..., CommandResult]


def run_command(cmd: list[str], timeout: float | None = None) -> CommandResult:
    """Run cmd to completion and capture its stderr.

    Never raises for process failures. A missing binary or a timeout is
    reported as a non-zero CommandResult so callers handle all failures
    through one path.
    """
    log.debug("CMD: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except FileNotFoundError as e:
        return CommandResult(SPAWN_FAILED, f"executable not found: {e.filename}")
    except subprocess.TimeoutExpired:
        return CommandResult(TIMED_OUT, f"timed out after {timeout}s: {cmd[0]}")
    stderr = proc.stderr.decode(errors="replace") if proc.stderr else ""
    if proc.returncode != 0:
        log.debug("exit %d: %s", proc.returncode, stderr[-500:])
    return CommandResult(proc.returncode, stderr)
