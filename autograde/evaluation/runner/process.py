# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runs a compiled submission once, under a hard deadline.

Student programs are untrusted in the most mundane way: they hang waiting
for input that never comes, loop forever, fork children that outlive them,
or print until the disk fills up. The runner has to come back with an
ExecutionResult no matter what, and the deadline is the only guarantee it
gives the caller.

How it stays bounded:
  - stdin, stdout and stderr are temporary files, not pipes. Nothing can
    block on a full pipe buffer or on a descendant that keeps a pipe open,
    and we only ever wait on the process itself.
  - On POSIX the program starts in a new session, so it and everything it
    spawns share one process group. Timeout (or leaving the ManagedProcess
    scope for any reason, including Ctrl-C) SIGKILLs the whole group.
  - On POSIX the child also gets an RLIMIT_FSIZE of MAX_CAPTURE_BYTES, so a
    runaway print loop dies of SIGXFSZ instead of filling the temp directory.
  - If the group refuses to die within a grace period, something is badly
    wrong with the host. That's a ProcessKillError, which aborts the run.

A program killed by a signal (segfault, abort) is not an error here, just an
ExecutionResult with `signaled=True`.
"""

import os
import signal
import subprocess
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import IO, Callable, Mapping, Sequence

from autograde.evaluation.exceptions import ProcessKillError
from autograde.evaluation.suite.models import ExecutionResult
from autograde.logging.logger import get_logger

logger = get_logger(__name__)

_POSIX = os.name == "posix"

if _POSIX:
    import resource

# How long a SIGKILLed process group gets to actually go away.
KILL_GRACE_SECONDS: float = 5.0

# Per stream, and per file the program writes. No sane expected output is that big.
MAX_CAPTURE_BYTES: int = 16 * 1024 * 1024


def _read_capture(handle: IO[bytes]) -> bytes:
    handle.flush()
    handle.seek(0)
    return handle.read(MAX_CAPTURE_BYTES)


def _limit_file_size() -> None:
    """Runs in the child between fork and exec: cap every file it writes."""
    try:
        _, hard = resource.getrlimit(resource.RLIMIT_FSIZE)
        cap = MAX_CAPTURE_BYTES if hard == resource.RLIM_INFINITY else min(MAX_CAPTURE_BYTES, hard)
        resource.setrlimit(resource.RLIMIT_FSIZE, (cap, hard))
    except (ValueError, OSError):
        pass


class ManagedProcess:
    """
    A child process whose whole process tree dies when the scope ends.

    Usage:
        with ManagedProcess(command, cwd, stdin_text) as proc:
            timed_out = proc.wait(timeout_seconds)
            stdout, stderr = proc.output()

    The process is spawned in __enter__. Whatever happens inside the block
    (normal return, timeout, exception, KeyboardInterrupt), __exit__ kills
    any surviving members of the group and closes the capture files.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: Path | None = None,
        stdin: bytes | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._command = list(command)
        self._cwd = cwd
        self._stdin_data = stdin
        self._env = env
        self._popen: subprocess.Popen[bytes] | None = None
        self._stdin: IO[bytes] | None = None
        self._stdout: IO[bytes] | None = None
        self._stderr: IO[bytes] | None = None

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode if self._popen is not None else None

    def __enter__(self) -> "ManagedProcess":
        if self._popen is None:
            self.start()
        return self

    def start(self) -> None:
        """Spawn the process. Raises OSError if it can't be started."""
        self._stdout = tempfile.TemporaryFile()
        self._stderr = tempfile.TemporaryFile()
        stdin_arg: IO[bytes] | int = subprocess.DEVNULL
        if self._stdin_data is not None:
            self._stdin = tempfile.TemporaryFile()
            self._stdin.write(self._stdin_data)
            self._stdin.flush()
            self._stdin.seek(0)
            stdin_arg = self._stdin

        env = None
        if self._env:
            env = {**os.environ, **self._env}
        preexec: Callable[[], None] | None = _limit_file_size if _POSIX else None

        try:
            self._popen = subprocess.Popen(
                self._command,
                stdin=stdin_arg,
                stdout=self._stdout,
                stderr=self._stderr,
                cwd=str(self._cwd) if self._cwd else None,
                env=env,
                start_new_session=_POSIX,
                preexec_fn=preexec,
            )
        except BaseException:
            self._close_files()
            raise

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if self._popen is not None:
                # Even after a normal exit, background children may linger in the group.
                self.kill()
                if self._popen.poll() is None:
                    try:
                        self._popen.wait(timeout=KILL_GRACE_SECONDS)
                    except subprocess.TimeoutExpired:
                        if exc_type is None:
                            raise ProcessKillError(
                                f"Process {self._popen.pid} survived SIGKILL"
                            ) from None
                        logger.error(
                            "Process survived SIGKILL during cleanup",
                            extra={"pid": self._popen.pid},
                        )
        finally:
            self._close_files()

    def kill(self) -> None:
        """SIGKILL the whole process group (or just the process off POSIX)."""
        if self._popen is None:
            return
        if _POSIX:
            try:
                os.killpg(self._popen.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                # Group already gone, or its pid got reused by someone else's group.
                pass
        elif self._popen.poll() is None:
            self._popen.kill()

    def wait(self, timeout_seconds: float) -> bool:
        """
        Wait for the process to exit. Returns True if the deadline hit first.

        On timeout the group is killed and reaped before returning.

        Raises:
            ProcessKillError: the group didn't die after SIGKILL.
        """
        assert self._popen is not None, "wait() called outside the managed scope"
        try:
            self._popen.wait(timeout=timeout_seconds)
            return False
        except subprocess.TimeoutExpired:
            pass

        self.kill()
        try:
            self._popen.wait(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired as exc:
            raise ProcessKillError(
                f"Process {self._popen.pid} did not terminate after SIGKILL"
            ) from exc
        return True

    def output(self) -> tuple[bytes, bytes]:
        """Everything written to stdout and stderr so far."""
        assert self._stdout is not None and self._stderr is not None
        return _read_capture(self._stdout), _read_capture(self._stderr)

    def _close_files(self) -> None:
        for handle in (self._stdin, self._stdout, self._stderr):
            if handle is not None:
                handle.close()


def _to_result(
    returncode: int | None,
    timed_out: bool,
    stdout: bytes,
    stderr: bytes,
    elapsed: float,
) -> ExecutionResult:
    if timed_out:
        return ExecutionResult(timed_out=True, stdout=stdout, stderr=stderr, elapsed_seconds=elapsed)
    if returncode is not None and returncode < 0:
        return ExecutionResult(
            signaled=True,
            signal=-returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed_seconds=elapsed,
        )
    return ExecutionResult(
        exit_code=returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_seconds=elapsed,
    )


def run_process(
    executable: Path,
    args: Sequence[str] = (),
    stdin: str | None = None,
    timeout_seconds: float = 5.0,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ExecutionResult:
    """
    Run `executable` once with `args` and `stdin`, bounded by `timeout_seconds`.

    `stdin=None` means the program gets an empty, already-closed stdin.
    `env` is added on top of the current environment.
    A program that can't be started at all (missing file, no exec permission)
    comes back as an ExecutionResult with `launch_error` set.

    Raises:
        ProcessKillError: a timed-out process couldn't be killed.
    """
    command = [str(executable), *args]
    stdin_data = stdin.encode("utf-8", errors="surrogateescape") if stdin is not None else None
    start = time.monotonic()

    process = ManagedProcess(command, cwd=cwd, stdin=stdin_data, env=env)
    try:
        process.start()
    except OSError as exc:
        logger.warning(
            "Cannot start process",
            extra={"command": command[0], "error": str(exc)},
        )
        return ExecutionResult(
            launch_error=str(exc),
            elapsed_seconds=time.monotonic() - start,
        )

    with process:
        timed_out = process.wait(timeout_seconds)
        elapsed = time.monotonic() - start
        stdout, stderr = process.output()
        returncode = process.returncode

    if timed_out:
        logger.debug(
            "Process timed out",
            extra={"command": command[0], "timeout_seconds": timeout_seconds},
        )

    return _to_result(returncode, timed_out, stdout, stderr, elapsed)

