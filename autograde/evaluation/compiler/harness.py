# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Compile harness for C submissions.

This is the part that actually runs the compiler. Building is two steps,
the way a classic makefile does it:

    $CC $CFLAGS -c <submission>/proj.c -o <build>/proj.o
    $CC <build>/proj.o $LDFLAGS -o <build>/proj

Both steps run with the submission directory as the working directory (so
`#include "helper.h"` next to the source resolves), write only into the
build directory, and are bounded by a timeout. A submission that doesn't
compile is a perfectly normal outcome: we return a failed CompileResult with
the compiler's diagnostics, never raise.

No shell=True anywhere — flags are split once when the config is loaded.
"""

import shutil
import subprocess
import time
from pathlib import Path

from autograde.evaluation.exceptions import ToolchainNotFoundError
from autograde.evaluation.suite.models import CompileResult, CompilerSettings, Submission
from autograde.logging.logger import get_logger

logger = get_logger(__name__)


def ensure_toolchain(settings: CompilerSettings) -> str:
    """
    Make sure the compiler exists before grading anything.

    Without this check a missing gcc would quietly turn into "every
    submission failed to compile" — a run full of zeros that looks
    legitimate. Returns the resolved compiler path.

    Raises:
        ToolchainNotFoundError: the compiler isn't installed / on PATH.
    """
    resolved = shutil.which(settings.cc)
    if resolved is None:
        raise ToolchainNotFoundError(
            f"Compiler '{settings.cc}' not found (is it installed and on PATH?)"
        )
    return resolved


def _invoke(command: list[str], cwd: Path, timeout_seconds: float) -> tuple[int | None, str]:
    """
    Run one compiler command. Returns (exit_code, combined output).

    exit_code is None when the compiler couldn't be started or timed out;
    the output then explains what happened.
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout_seconds,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired:
        return None, f"Compilation timed out after {timeout_seconds}s"
    except OSError as exc:
        return None, f"Cannot execute '{command[0]}': {exc}"

    return result.returncode, result.stdout + result.stderr


def compile_submission(
    submission: Submission,
    settings: CompilerSettings,
    build_dir: Path,
) -> CompileResult:
    """
    Build a submission's source into an executable inside `build_dir`.

    The executable belongs to the build directory; whoever owns that
    directory (normally a BuildDirectory context) removes it afterwards.
    """
    start = time.monotonic()

    stem = submission.source_path.stem or "solution"
    object_file = build_dir / f"{stem}.o"
    executable = build_dir / stem

    steps = [
        [settings.cc, *settings.cflags, "-c", str(submission.source_path), "-o", str(object_file)],
        [settings.cc, str(object_file), *settings.ldflags, "-o", str(executable)],
    ]

    diagnostics: list[str] = []
    for command in steps:
        exit_code, output = _invoke(command, submission.directory, settings.timeout_seconds)
        if output:
            diagnostics.append(output)

        if exit_code != 0:
            elapsed = time.monotonic() - start
            logger.info(
                "Compilation failed",
                extra={
                    "submission": submission.name,
                    "exit_code": exit_code,
                    "elapsed_seconds": round(elapsed, 3),
                },
            )
            return CompileResult(
                success=False,
                diagnostics="".join(diagnostics),
                exit_code=exit_code,
                elapsed_seconds=elapsed,
            )

    elapsed = time.monotonic() - start
    logger.debug(
        "Compilation finished",
        extra={
            "submission": submission.name,
            "executable": str(executable),
            "warnings": bool(diagnostics),
            "elapsed_seconds": round(elapsed, 3),
        },
    )
    return CompileResult(
        success=True,
        executable=executable,
        diagnostics="".join(diagnostics),
        exit_code=0,
        elapsed_seconds=elapsed,
    )
