# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Custom per-submission scripts.

When the built-in checks aren't enough, instructors can list scripts in the
config. Each one runs inside every submission directory (after the tests)
through the same bounded process runner as student programs, and its exit
status and output are kept in the report. Scripts never change the score.

The compiled program lives in a private build directory, so a script finds
it through the environment:

    AUTOGRADE_SUBMISSION   the submission's name
    AUTOGRADE_EXECUTABLE   absolute path of the compiled program; only set
                           when the submission compiled

    valgrind --error-exitcode=1 "$AUTOGRADE_EXECUTABLE" < input
"""

from pathlib import Path
from typing import Iterable

from autograde.evaluation.runner.process import run_process
from autograde.evaluation.suite.models import ScriptResult, Submission
from autograde.logging.logger import get_logger

logger = get_logger(__name__)

SUBMISSION_ENV = "AUTOGRADE_SUBMISSION"
EXECUTABLE_ENV = "AUTOGRADE_EXECUTABLE"


def script_environment(submission: Submission, executable: Path | None) -> dict[str, str]:
    env = {SUBMISSION_ENV: submission.name}
    if executable is not None:
        env[EXECUTABLE_ENV] = str(executable.resolve())
    return env


def run_scripts(
    scripts: Iterable[Path],
    submission: Submission,
    timeout_seconds: float,
    executable: Path | None = None,
) -> tuple[ScriptResult, ...]:
    env = script_environment(submission, executable)
    results: list[ScriptResult] = []
    for script in scripts:
        execution = run_process(
            script,
            timeout_seconds=timeout_seconds,
            cwd=submission.directory,
            env=env,
        )
        if execution.launch_error or execution.timed_out or execution.exit_code:
            logger.warning(
                "Script did not succeed",
                extra={
                    "script": script.name,
                    "submission": submission.name,
                    "exit_code": execution.exit_code,
                    "timed_out": execution.timed_out,
                    "error": execution.launch_error,
                },
            )
        results.append(ScriptResult(script=script.name, execution=execution))
    return tuple(results)
