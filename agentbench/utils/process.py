"""Bounded execution of external processes.

Every process runs in its own session so that a deadline kills the whole
process group, not just the direct child. Output is drained by background
threads into fixed-size buffers, so a chatty process cannot exhaust memory.
"""

import os
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from .logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
KILL_GRACE_SECONDS = 2.0
_CHUNK_SIZE = 64 * 1024


class ProcessResult(BaseModel):
    """Outcome of one external process invocation."""

    exit_code: Optional[int] = Field(
        default=None, description="Exit code; None if the process never started or was killed"
    )
    stdout: str = Field(default="", description="Captured stdout, possibly truncated")
    stderr: str = Field(default="", description="Captured stderr, possibly truncated")
    timed_out: bool = Field(default=False, description="Deadline expired and the group was killed")
    spawn_error: Optional[str] = Field(default=None, description="Why the process could not start")
    duration_seconds: float = Field(default=0.0, description="Wall-clock duration")
    truncated: bool = Field(default=False, description="Some output was dropped")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr."""
        if self.stdout and self.stderr:
            sep = "" if self.stdout.endswith("\n") else "\n"
            return f"{self.stdout}{sep}{self.stderr}"
        return self.stdout or self.stderr


class BoundedBuffer:
    """Keeps the first and last ``limit / 2`` bytes written to it."""

    def __init__(self, limit: int):
        self.head_limit = max(limit // 2, 1)
        self.tail_limit = max(limit - self.head_limit, 1)
        self.head = bytearray()
        self.tail = bytearray()
        self.total = 0

    def write(self, data: bytes) -> None:
        self.total += len(data)
        room = self.head_limit - len(self.head)
        if room > 0:
            self.head.extend(data[:room])
            data = data[room:]
        if data:
            self.tail.extend(data)
            excess = len(self.tail) - self.tail_limit
            if excess > 0:
                del self.tail[:excess]

    @property
    def dropped(self) -> int:
        return self.total - len(self.head) - len(self.tail)

    def getvalue(self) -> str:
        head = self.head.decode("utf-8", errors="replace")
        tail = self.tail.decode("utf-8", errors="replace")
        if self.dropped:
            return f"{head}\n...[truncated {self.dropped} bytes]...\n{tail}"
        return head + tail


def _pump(stream, buffer: BoundedBuffer) -> None:
    try:
        while True:
            chunk = stream.read1(_CHUNK_SIZE)
            if not chunk:
                break
            buffer.write(chunk)
    except (OSError, ValueError):
        # Stream closed under us while the process was being killed
        pass
    finally:
        try:
            stream.close()
        except OSError:
            pass


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


def kill_process_tree(proc: subprocess.Popen, grace_seconds: float = KILL_GRACE_SECONDS) -> None:
    """Terminate a process and everything in its group, escalating to SIGKILL.

    Args:
        proc: A process started by :func:`run_process` (its own session leader).
        grace_seconds: How long to wait after SIGTERM before SIGKILL.
    """
    if os.name != "posix":
        proc.kill()
        proc.wait()
        return

    _signal_group(proc, signal.SIGTERM)
    try:
        proc.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        pass
    # Sweep the group even if the leader exited on SIGTERM
    _signal_group(proc, signal.SIGKILL)
    proc.wait()


def run_process(
    command: list[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    env: Optional[dict[str, str]] = None,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
) -> ProcessResult:
    """Run a command to completion or until its deadline.

    Never raises for process-level failures: an empty command, a missing
    executable, a non-zero exit and a timeout are all reported on the result.

    Args:
        command: Executable and arguments.
        cwd: Working directory for the process.
        timeout: Deadline in seconds; None waits indefinitely.
        env: Full environment for the process (inherits ours if None).
        max_output_bytes: Per-stream capture limit.

    Returns:
        ProcessResult describing the run.
    """
    if not command:
        return ProcessResult(spawn_error="empty command")
    if timeout is not None and timeout <= 0:
        return ProcessResult(timed_out=True)

    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=(os.name == "posix"),
        )
    except OSError as e:
        logger.debug(f"Could not start {command[0] if command else command!r}: {e}")
        return ProcessResult(
            spawn_error=f"{type(e).__name__}: {e}",
            duration_seconds=time.monotonic() - start,
        )

    out_buf = BoundedBuffer(max_output_bytes)
    err_buf = BoundedBuffer(max_output_bytes)
    pumps = [
        threading.Thread(target=_pump, args=(proc.stdout, out_buf), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, err_buf), daemon=True),
    ]
    for t in pumps:
        t.start()

    timed_out = False
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        logger.debug(f"Deadline of {timeout}s expired for pid {proc.pid}, killing group")
        kill_process_tree(proc)
    except BaseException:
        kill_process_tree(proc)
        raise
    else:
        # Background children left behind would keep the pipes open
        if os.name == "posix":
            _signal_group(proc, signal.SIGKILL)

    for t in pumps:
        t.join(timeout=KILL_GRACE_SECONDS)

    return ProcessResult(
        exit_code=None if timed_out else proc.returncode,
        stdout=out_buf.getvalue(),
        stderr=err_buf.getvalue(),
        timed_out=timed_out,
        duration_seconds=time.monotonic() - start,
        truncated=bool(out_buf.dropped or err_buf.dropped),
    )


def shell_command(cmd: str) -> list[str]:
    """Wrap a shell string for :func:`run_process`."""
    if os.name == "nt":
        return ["cmd", "/c", cmd]
    return ["bash", "-c", cmd]


def probe_version(binary: str, timeout: float = 10.0) -> str:
    """Return the first line of ``<binary> --version``, or "unknown"."""
    try:
        result = run_process([binary, "--version"], timeout=timeout)
    except Exception as e:
        logger.debug(f"Version probe for {binary} failed: {e}")
        return "unknown"
    if not result.succeeded:
        return "unknown"
    for line in result.output.splitlines():
        if line.strip():
            return line.strip()
    return "unknown"
